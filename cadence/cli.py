"""
cadence.cli
===========

Command-line access to the tracker.

Examples
--------
$ python -m cadence.cli list
$ python -m cadence.cli send reminder
$ python -m cadence.cli complete acme
$ python -m cadence.cli reset --soft
$ python -m cadence.cli check-document
$ python -m cadence.cli serve-scheduler
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import List, Optional

from .errors import NotFound, TrackerError
from .models import Kind
from .service import TrackerContext
from .settings import Settings

BATCHES = [Kind.REMINDER.value, Kind.CHASE.value, Kind.REVIEW.value, Kind.FINAL.value]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cadence", description="Weekly portfolio update tracker")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="print every record as JSON")

    send = sub.add_parser("send", help="compute and dispatch one batch")
    send.add_argument("batch", choices=BATCHES)

    complete = sub.add_parser("complete", help="mark an owner complete")
    complete.add_argument("record_id")

    reset = sub.add_parser("reset", help="start a new cycle")
    reset.add_argument("--soft", action="store_true", help="status only, keep history")

    sub.add_parser("check-document", help="poll the Box document once")
    sub.add_parser("serve-scheduler", help="run the cron schedule in the foreground")
    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = settings or Settings()

    try:
        ctx = TrackerContext.from_settings(settings)
    except TrackerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "list":
            print(json.dumps([r.to_dict() for r in ctx.records()], indent=2))
        elif args.command == "send":
            report = ctx.run_batch(Kind(args.batch))
            print(json.dumps(report.to_dict()))
            return 0 if report.ok else 1
        elif args.command == "complete":
            rec, changed = ctx.complete(args.record_id)
            print(f"{rec.name}: {'marked complete' if changed else 'already complete'}")
        elif args.command == "reset":
            count = ctx.soft_reset() if args.soft else ctx.bulk_reset()
            print(f"reset {count} portfolio owners")
        elif args.command == "check-document":
            changed = ctx.check_document()
            print(f"completed {len(changed)} owner(s)")
        elif args.command == "serve-scheduler":
            from .scheduler import build_scheduler

            scheduler = build_scheduler(ctx, settings.mode, settings.box_poll_minutes)
            scheduler.start()
            try:
                while True:
                    time.sleep(60)
            except KeyboardInterrupt:
                scheduler.shutdown()
    except NotFound as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except TrackerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    finally:
        ctx.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
