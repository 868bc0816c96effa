"""
Cadence
=======

A small service that chases weekly portfolio updates: it reminds owners,
escalates to chase and review lists, sends a final report, and marks owners
complete when they click a link or edit the tracker document on Box.

Import structure
----------------
`import cadence` is intentionally cheap: only the stdlib-based
sub-modules are needed for the engine.  Adapters that pull in *httpx*,
*sqlmodel* or *apscheduler* are imported when you access them.

Sub-modules
~~~~~~~~~~~
- :pymod:`cadence.models`      – ``Record`` dataclass + :class:`~cadence.models.Status` / ``Role`` enums
- :pymod:`cadence.portfolio`   – ``RecordCollection`` id-keyed registry
- :pymod:`cadence.lifecycle`   – state-machine guard (`advance_status`) and reset helpers
- :pymod:`cadence.engine`      – reminder / chase / review / final batches
- :pymod:`cadence.reconciler`  – completion by id, Box edit matching, resets
- :pymod:`cadence.service`     – ``TrackerContext`` owning the collection
- :pymod:`cadence.store`, :pymod:`cadence.db` – record store adapters
- :pymod:`cadence.dispatch`    – email transports
- :pymod:`cadence.box`         – Box document monitor
- :pymod:`cadence.scheduler`   – APScheduler cycle clock

Quick start
-----------
>>> from datetime import datetime, timezone
>>> from cadence.engine import EscalationEngine
>>> from cadence.models import Record
>>> recs = [Record("acme", "Acme", "Ann", "ann@example.com")]
>>> batch = EscalationEngine("http://localhost:3001").reminder_batch(recs, datetime.now(timezone.utc))
>>> batch[0].subject
'Reminder: Acme Portfolio Update'

"""

__all__ = [
    "models",
    "portfolio",
    "lifecycle",
    "engine",
    "reconciler",
    "service",
]

__version__ = "0.1.0"
