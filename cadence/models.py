"""
cadence.models
==============

Dataclasses and enums describing one tracked record, the monitored
document pointer and a rendered notification.  These objects carry **no**
external-library dependencies so the engine can be unit-tested in
isolation.

Records round-trip through :meth:`Record.from_dict` / :meth:`Record.to_dict`
using the camelCase keys of ``reminders.json``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Role(str, Enum):
    """Which notification stream a record participates in."""
    PORTFOLIO_OWNER = "portfolio_owner"
    CHASE = "chase"
    REVIEWER = "reviewer"
    FINAL = "final"

    def __str__(self) -> str:
        return self.value


class Status(str, Enum):
    """Life-cycle states of a portfolio owner's weekly update."""
    PENDING = "pending"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value


class Via(str, Enum):
    """How a completion was observed."""
    MANUAL = "manual"
    BOX = "box"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------
def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix accepted) into an aware datetime."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return as_utc(raw)
    text = str(raw)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value is not None else None


@dataclass
class Record:
    """
    One tracked entity: a portfolio company, or a team member on a
    distribution list.

    Parameters
    ----------
    id : str
        Stable unique identifier, used by the "Mark as Complete" link.
    name : str
        Display name of the tracked item (company name).
    owner : str
        Responsible person(s); may be a combined label such as "Matt/Shiju".
    email : str | list[str]
        One address or an ordered list of addresses.
    role : Role
        Notification stream.  Only ``PORTFOLIO_OWNER`` has a status.
    status : Status | None
        ``PENDING`` by default for owners, always ``None`` for other roles.
    last_updated : datetime | None
        Time of the last status change.
    completed_at, completed_by, completed_via
        Provenance, set only when the record transitions to ``COMPLETE``.
    """
    id: str
    name: str
    owner: str
    email: Union[str, List[str]]
    role: Role = Role.PORTFOLIO_OWNER
    status: Optional[Status] = None
    last_updated: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completed_via: Optional[Via] = None

    def __post_init__(self) -> None:
        self.role = Role(self.role)
        if self.role is Role.PORTFOLIO_OWNER:
            self.status = Status(self.status) if self.status else Status.PENDING
        else:
            # distribution-list entries never carry a lifecycle status
            self.status = None
        if self.completed_via is not None:
            self.completed_via = Via(self.completed_via)
        if not self.id:
            raise ValueError("record id cannot be empty")

    # Convenience helpers -------------------------------------------------
    @property
    def addresses(self) -> List[str]:
        """Email addresses as a list, whatever shape ``email`` has."""
        if isinstance(self.email, str):
            return [self.email] if self.email else []
        return [a for a in self.email if a]

    @property
    def is_owner(self) -> bool:
        return self.role is Role.PORTFOLIO_OWNER

    @property
    def is_pending(self) -> bool:
        return self.is_owner and self.status is Status.PENDING

    @property
    def is_complete(self) -> bool:
        return self.is_owner and self.status is Status.COMPLETE

    def clear_provenance(self) -> None:
        self.completed_at = None
        self.completed_by = None
        self.completed_via = None

    # Serialisation -------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        """Build a record from a ``reminders.json`` entry."""
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            owner=data.get("owner", ""),
            email=data.get("email", ""),
            role=data.get("role", Role.PORTFOLIO_OWNER.value),
            status=data.get("status"),
            last_updated=parse_timestamp(data.get("lastUpdated")),
            completed_at=parse_timestamp(data.get("completedAt")),
            completed_by=data.get("completedBy"),
            completed_via=data.get("completedVia"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "email": list(self.email) if isinstance(self.email, list) else self.email,
            "role": self.role.value,
        }
        if not self.is_owner:
            return out
        out["status"] = self.status.value
        out["lastUpdated"] = format_timestamp(self.last_updated)
        if self.completed_at is not None:
            out["completedAt"] = format_timestamp(self.completed_at)
        if self.completed_by is not None:
            out["completedBy"] = self.completed_by
        if self.completed_via is not None:
            out["completedVia"] = self.completed_via.value
        return out


@dataclass
class MonitoredDocument:
    """Pointer to the external document watched for edits."""
    document_id: str
    last_checked_at: Optional[datetime] = None
    last_modified_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonitoredDocument":
        return cls(
            document_id=str(data["documentId"]),
            last_checked_at=parse_timestamp(data.get("lastCheckedAt")),
            last_modified_at=data.get("lastModifiedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documentId": self.document_id,
            "lastCheckedAt": format_timestamp(self.last_checked_at),
            "lastModifiedAt": self.last_modified_at,
        }


@dataclass(frozen=True)
class EditSignal:
    """A detected edit on the monitored document."""
    modifier_name: str
    modified_at: datetime


class Kind(str, Enum):
    """Notification stream a payload belongs to."""
    REMINDER = "reminder"
    CHASE = "chase"
    REVIEW = "review"
    FINAL = "final"
    COMPLETION = "completion"
    FEEDBACK = "feedback"


@dataclass
class Notification:
    """A rendered message ready for the dispatcher."""
    kind: Kind
    record: Optional[Record]
    addresses: List[str]
    subject: str
    body: str
    context: Dict[str, Any] = field(default_factory=dict)
