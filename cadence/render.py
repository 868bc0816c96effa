"""
cadence.render
==============

HTML email bodies.

Templates are plain ``str.format`` strings; every value coming from a
record is escaped before interpolation.
"""

from __future__ import annotations

from html import escape
from typing import Iterable

from .models import Record

_PAGE = """<html>
  <head>
    <meta charset="UTF-8">
  </head>
  <body style="font-family: Arial, sans-serif; padding: 20px;">
{content}
  </body>
</html>
"""

_BUTTON = (
    '<a href="{href}" style="background-color: {color}; color: white; padding: 12px 24px; '
    'text-decoration: none; border-radius: 4px; display: inline-block;">{label}</a>'
)

_TEMPLATES = {
    "reminder": """    <h2>Portfolio Update Reminder</h2>
    <p>Hi {owner},</p>
    <p>This is your reminder to provide an update for <strong>{name}</strong>.</p>
    <p>{button}</p>
    <p>Thank you!</p>""",
    "chase": """    <h2>Portfolio Updates Chase Report</h2>
    <p>Hi {owner},</p>
    <p>The following portfolio owners haven't updated their sections yet:</p>
    <ul style="line-height: 1.8;">
      {pending_list}
    </ul>
    <p><strong>Total pending: {pending} of {total}</strong></p>
    <p style="color: #666; font-size: 14px; margin-top: 30px;">This is an automated chase notification.</p>""",
    "review": """    <h2>Portfolio Updates Status Report</h2>
    <p>Hi {owner},</p>
    <h3 style="color: #28a745;">Completed Updates ({completed}/{total}):</h3>
    <ul style="line-height: 1.8;">
      {completed_list}
    </ul>
    <h3 style="color: #dc3545;">Pending Updates ({pending}/{total}):</h3>
    <ul style="line-height: 1.8;">
      {pending_list}
    </ul>
    <p style="color: #666; font-size: 14px; margin-top: 30px;">This is an automated review notification.</p>""",
    "final": """    <h2>Weekly Portfolio Tracker - Final Report</h2>
    <p>Hi {owner},</p>
    <div style="background: {banner}; padding: 15px; border-radius: 8px; margin: 20px 0;">
      <h3 style="margin: 0;">Completion Status: {rate}%</h3>
      <p style="margin: 5px 0 0 0; font-size: 18px;">
        <strong>{completed}</strong> of <strong>{total}</strong> updates completed
      </p>
    </div>
    <p style="margin: 30px 0;">{button}</p>
    <h3 style="color: #28a745;">Completed Updates ({completed}):</h3>
    <ul style="line-height: 1.8;">
      {completed_list}
    </ul>
{pending_section}
    <p style="color: #666; font-size: 14px; margin-top: 30px;">
      This is an automated final report for the weekly tracker update cycle.
    </p>""",
    "final_pending": """    <h3 style="color: #dc3545;">Pending Updates ({pending}):</h3>
    <ul style="line-height: 1.8;">
      {pending_list}
    </ul>""",
    "completion": """    <h2>Update Completed</h2>
    <p><strong>{owner}</strong> has marked the update for <strong>{name}</strong> as complete{via}.</p>
    <p>Time: {when}</p>""",
    "feedback": """    <h2>Feedback for {name}</h2>
    <p>Hi {owner},</p>
    <div style="background: #f0f8ff; border-left: 4px solid #007bff; padding: 15px; margin: 20px 0;">
      <h3 style="margin: 0 0 10px 0; color: #007bff;">Reviewer Feedback:</h3>
      <p style="white-space: pre-wrap; margin: 0; line-height: 1.6;">{text}</p>
    </div>
    <p style="margin-top: 30px;">{button}</p>
    <p style="color: #666; font-size: 14px; margin-top: 30px;">
      This feedback is from the weekly tracker review cycle.
    </p>""",
}


def button(href: str, label: str, color: str = "#4CAF50") -> str:
    return _BUTTON.format(href=escape(href, quote=True), label=escape(label), color=color)


def owner_list(records: Iterable[Record], color: str = "", empty: str = "None") -> str:
    """``<li>`` items of "owner - name" pairs, or a greyed placeholder."""
    style = f' style="color: {color};"' if color else ""
    items = [
        f"<li{style}><strong>{escape(r.owner)}</strong> - {escape(r.name)}</li>"
        for r in records
    ]
    if not items:
        return f'<li style="color: #999;">{escape(empty)}</li>'
    return "".join(items)


def fragment(template: str, **values) -> str:
    """Fill *template* without the page shell.

    String values are escaped unless their key ends in ``_list``,
    ``_section`` or is ``button`` (those are pre-rendered HTML).
    """
    safe = {}
    for key, value in values.items():
        if key == "button" or key.endswith(("_list", "_section")) or not isinstance(value, str):
            safe[key] = value
        else:
            safe[key] = escape(value)
    return _TEMPLATES[template].format(**safe)


def render(template: str, **values) -> str:
    """Fill *template* and wrap it in the common page shell."""
    return _PAGE.format(content=fragment(template, **values))


def page(title: str, message: str, color: str = "#4CAF50") -> str:
    """Small confirmation page for the HTTP layer."""
    return (
        '<html><head><meta charset="UTF-8"></head>'
        '<body style="font-family: Arial, sans-serif; padding: 40px; text-align: center;">'
        f'<h1 style="color: {color};">{escape(title)}</h1>'
        f'<p style="font-size: 18px;">{message}</p>'
        '<p style="color: #666;">You can close this window now.</p>'
        "</body></html>"
    )
