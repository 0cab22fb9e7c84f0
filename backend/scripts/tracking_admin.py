#!/usr/bin/env python3
"""
Inspect or reset the tracking event logs without running the server.

Usage:
    # Aggregate statistics
    python tracking_admin.py --stats

    # Per-message report as JSON
    python tracking_admin.py --report

    # Truncate both event logs
    python tracking_admin.py --clear --yes

    # Use another data directory than DATA_DIR
    python tracking_admin.py --stats --data-dir /var/lib/mailtrack
"""

import argparse
import json
import sys
from pathlib import Path

from mailtrack.core.config import settings
from mailtrack.core.exceptions import PersistenceFailure
from mailtrack.services.aggregator import build_report, compute_stats
from mailtrack.services.event_store import EventStore


def open_store(data_dir=None) -> EventStore:
    """Load an event store from the configured (or given) data directory"""
    config = settings
    if data_dir:
        config = settings.model_copy(update={"DATA_DIR": Path(data_dir).resolve()})
    store = EventStore.from_settings(config)
    store.load()
    return store


def show_stats(data_dir=None) -> bool:
    store = open_store(data_dir)
    stats = compute_stats(store.snapshot())
    print(f"📨 Sent:          {stats['totalSent']}")
    print(f"👁  Opened:        {stats['totalOpened']}")
    print(f"   Unique opened: {stats['uniqueOpened']}")
    print(f"   Open rate:     {stats['openRate']}%")
    return True


def show_report(data_dir=None, recent: int = settings.REPORT_RECENT_OPENS) -> bool:
    store = open_store(data_dir)
    report = build_report(store.snapshot(), recent_limit=recent)
    report["recentOpens"] = [o.model_dump(mode="json", by_alias=True) for o in report["recentOpens"]]
    print(json.dumps(report, indent=2, default=str))
    return True


def clear_logs(data_dir=None) -> bool:
    store = open_store(data_dir)
    try:
        store.clear_all()
    except PersistenceFailure as e:
        print(f"❌ Error: {e}")
        return False
    print(f"✅ Cleared {store.sent_log.path} and {store.open_log.path}")
    return True


def main():
    parser = argparse.ArgumentParser(
        description='Inspect or reset the tracking event logs',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python %(prog)s --stats
  python %(prog)s --report --recent 25
  python %(prog)s --clear --yes
        """
    )

    parser.add_argument('--data-dir', help='Directory holding the event logs (defaults to DATA_DIR)')
    parser.add_argument('--stats', action='store_true', help='Print aggregate statistics')
    parser.add_argument('--report', action='store_true', help='Print the per-message report as JSON')
    parser.add_argument('--recent', type=int, default=settings.REPORT_RECENT_OPENS, help='Recent opens to include in the report')
    parser.add_argument('--clear', action='store_true', help='Truncate both event logs')
    parser.add_argument('--yes', action='store_true', help='Confirm --clear')

    args = parser.parse_args()

    actions = sum([args.stats, args.report, args.clear])

    if actions == 0:
        print("❌ Error: Must specify one action (--stats, --report, or --clear)")
        parser.print_help()
        sys.exit(1)

    if actions > 1:
        print("❌ Error: Can only specify one action at a time")
        sys.exit(1)

    if args.clear and not args.yes:
        print("❌ Error: --clear deletes all tracking data, pass --yes to confirm")
        sys.exit(1)

    if args.stats:
        success = show_stats(args.data_dir)
    elif args.report:
        success = show_report(args.data_dir, args.recent)
    else:
        success = clear_logs(args.data_dir)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
