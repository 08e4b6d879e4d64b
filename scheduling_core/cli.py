"""Command-line access to the scheduling core.

Usage:
    scheduling-core expand --rule '{"frequency": "weekly", "days_of_week": [1, 3], "occurrences": 4}' \
        --anchor 2026-03-01
    scheduling-core conflicts snapshot.json --booking-id evt-42
    scheduling-core availability snapshot.json --date 2026-03-02 --tz America/New_York
    scheduling-core recommend snapshot.json --date 2026-03-02 --duration 60
    scheduling-core rooms snapshot.json --start 2026-03-02T14:00Z --end 2026-03-02T15:00Z \
        --capacity 6

Results are written to stdout as JSON. Rejected input exits with status 2 and
a JSON error on stderr.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from scheduling_core.availability import build
from scheduling_core.conflicts import POOL_MARGIN, detect, detect_series
from scheduling_core.errors import SchedulingError
from scheduling_core.models import Booking, MonthlyOverflow, RecurrenceRule, TimeInterval
from scheduling_core.recommend import recommend
from scheduling_core.recurrence import describe, expand, materialize
from scheduling_core.rooms import filter_rooms
from scheduling_core.snapshot import (
    attach_room_bookings,
    bookings_by_member,
    load_snapshot,
)

log = logging.getLogger("scheduling_core.cli")

# Recurring bookings in a snapshot are expanded this far past the scan date.
DEFAULT_HORIZON_DAYS = 365


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _emit(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, default=_json_default)
    sys.stdout.write("\n")


def _parse_window(raw: str) -> tuple[time, time]:
    start, _, end = raw.partition("-")
    return time.fromisoformat(start.strip()), time.fromisoformat(end.strip())


def _parse_instant(raw: str) -> datetime:
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)


def _load_json_arg(raw: str) -> Any:
    """Inline JSON, or ``@path`` to read it from a file."""
    if raw.startswith("@"):
        with open(raw[1:], encoding="utf-8") as f:
            return json.load(f)
    return json.loads(raw)


# ── Commands ──────────────────────────────────────────────────────


def cmd_expand(args: argparse.Namespace) -> Any:
    rule = RecurrenceRule.model_validate(_load_json_arg(args.rule))
    overflow = MonthlyOverflow(args.overflow) if args.overflow else None
    dates = expand(rule, args.anchor, args.horizon, overflow=overflow)
    log.info("%s: %d occurrence(s)", describe(rule), len(dates))
    return {"description": describe(rule), "dates": dates}


def cmd_conflicts(args: argparse.Namespace) -> Any:
    snapshot = load_snapshot(args.snapshot)
    if args.candidate:
        candidate = Booking.model_validate(_load_json_arg(args.candidate))
    else:
        candidate = snapshot.booking(args.booking_id)
    pool = snapshot.all_bookings()

    if candidate.is_recurring:
        horizon = args.horizon or (candidate.start.date() + timedelta(days=DEFAULT_HORIZON_DAYS))
        reports = detect_series(candidate, pool, horizon, args.room)
        log.info("%d occurrence(s) of %s conflict", len(reports), candidate.id)
        return reports

    horizon = (args.horizon or candidate.end.date()) + POOL_MARGIN
    report = detect(candidate, materialize(pool, horizon), args.room)
    log.info("%s: %d conflict(s)", candidate.id, len(report.conflicts))
    return {
        "candidate_id": report.candidate_id,
        "has_conflicts": report.has_conflicts,
        "severity_counts": report.severity_counts(),
        "conflicts": report.conflicts,
    }


def _grid_for(args: argparse.Namespace):
    snapshot = load_snapshot(args.snapshot)
    members = snapshot.members
    if args.members:
        wanted = {m.strip() for m in args.members.split(",")}
        members = [m for m in members if m.id in wanted]
    horizon = args.date + timedelta(days=1)
    pools = bookings_by_member(materialize(snapshot.all_bookings(), horizon), members)
    return build(
        members,
        args.date,
        _parse_window(args.window) if args.window else None,
        args.granularity,
        pools,
        args.tz,
    )


def cmd_availability(args: argparse.Namespace) -> Any:
    grid = _grid_for(args)
    log.info("%d slot(s), %d best for meeting", len(grid), len(grid.best_slots()))
    return [
        {
            "start": slot.start,
            "end": slot.end,
            "available_count": slot.available_count,
            "total_count": slot.total_count,
            "best_for_meeting": slot.best_for_meeting,
            "members": slot.members,
        }
        for slot in grid
    ]


def cmd_recommend(args: argparse.Namespace) -> Any:
    grid = _grid_for(args)
    return recommend(grid, args.duration, args.quorum, args.max)


def cmd_rooms(args: argparse.Namespace) -> Any:
    snapshot = load_snapshot(args.snapshot)
    interval = TimeInterval(_parse_instant(args.start), _parse_instant(args.end))
    horizon = interval.end.date() + timedelta(days=1)
    rooms = attach_room_bookings(snapshot.rooms, materialize(snapshot.bookings, horizon))
    rooms = [
        r.model_copy(update={"bookings": materialize(r.bookings, horizon)}) for r in rooms
    ]
    result = filter_rooms(
        rooms,
        interval,
        args.capacity,
        required_amenities=args.amenity or (),
        exclude_booking_id=args.exclude,
    )
    return {
        "feasible": [{"id": r.id, "name": r.name, "capacity": r.capacity} for r in result.feasible],
        "rejections": list(result.rejections.values()),
    }


# ── Entry point ───────────────────────────────────────────────────


def _add_grid_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("snapshot", help="Snapshot JSON file")
    parser.add_argument("--date", type=date.fromisoformat, required=True, help="Scan date (YYYY-MM-DD)")
    parser.add_argument("--window", help="Day window, e.g. 09:00-17:00")
    parser.add_argument("--granularity", type=int, help="Slot width in minutes")
    parser.add_argument("--tz", help="Reference timezone for the date and window")
    parser.add_argument("--members", help="Comma-separated member ids (default: all)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Conflict checks, availability and room feasibility for bookings",
        prog="scheduling-core",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("expand", help="Expand a recurrence rule into dates")
    p.add_argument("--rule", required=True, help="Rule JSON or @file")
    p.add_argument("--anchor", type=date.fromisoformat, required=True)
    p.add_argument("--horizon", type=date.fromisoformat)
    p.add_argument("--overflow", choices=[o.value for o in MonthlyOverflow])
    p.set_defaults(func=cmd_expand)

    p = sub.add_parser("conflicts", help="Check a booking for conflicts")
    p.add_argument("snapshot", help="Snapshot JSON file")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--booking-id", help="Candidate taken from the snapshot")
    group.add_argument("--candidate", help="Candidate booking JSON or @file")
    p.add_argument("--room", help="Room id to check instead of the candidate's")
    p.add_argument("--horizon", type=date.fromisoformat, help="Last date for recurring bookings")
    p.set_defaults(func=cmd_conflicts)

    p = sub.add_parser("availability", help="Per-slot member availability")
    _add_grid_args(p)
    p.set_defaults(func=cmd_availability)

    p = sub.add_parser("recommend", help="Best meeting windows")
    _add_grid_args(p)
    p.add_argument("--duration", type=int, required=True, help="Meeting length in minutes")
    p.add_argument("--quorum", type=float, help="Fraction of members required")
    p.add_argument("--max", type=int, help="Maximum windows to return")
    p.set_defaults(func=cmd_recommend)

    p = sub.add_parser("rooms", help="Feasible rooms for an interval")
    p.add_argument("snapshot", help="Snapshot JSON file")
    p.add_argument("--start", required=True, help="ISO instant")
    p.add_argument("--end", required=True, help="ISO instant")
    p.add_argument("--capacity", type=int, required=True)
    p.add_argument("--amenity", action="append", help="Required amenity (repeatable)")
    p.add_argument("--exclude", help="Booking id to ignore (editing)")
    p.set_defaults(func=cmd_rooms)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
        stream=sys.stderr,
    )

    try:
        result = args.func(args)
    except SchedulingError as exc:
        json.dump({"error": exc.to_dict()}, sys.stderr, indent=2)
        sys.stderr.write("\n")
        return 2
    except ValidationError as exc:
        error = {"code": "invalid_input", "message": str(exc), "details": {}}
        json.dump({"error": error}, sys.stderr, indent=2)
        sys.stderr.write("\n")
        return 2
    except KeyError as exc:
        error = {"code": "not_found", "message": f"Unknown booking {exc.args[0]!r}", "details": {}}
        json.dump({"error": error}, sys.stderr, indent=2)
        sys.stderr.write("\n")
        return 2

    _emit(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
