#!/usr/bin/env python3

import argparse
from collections.abc import Sequence
from pathlib import Path

from busybee.cli import budget as handlers
from busybee.runtime.paths import get_paths, set_data_root


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="busybee",
        description="Daily allowance budgeting with rollover and savings streaks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  status [--date]             Today's limit, rollover, spending and remaining
  add <vendor> <amount>       Log an expense
  remove <id>                 Delete an expense (and its receipt)
  list [--filter]             Expenses grouped by day
  allowance [amount]          Show or set the allowance for the active period
  period [daily|weekly|monthly]
                              Show or switch the active period
  summary                     Piggy bank, streaks, and newly unlocked achievements
  achievements                Unlocked achievements
  month [YYYY-MM]             Monthly spending by category
  vendors                     Suggested vendors with category hints
  voice <text>                Parse a dictated expense ("12.50 at Starbucks")
  reminders                   Show or toggle reminders
  receipt attach|export|delete
                              Manage receipt photos
  export-history <csv>        Write the day-by-day history as CSV

Data lives in $BUSYBEE_HOME (default ~/.busybee).
""",
    )
    parser.add_argument("--data-dir", default=None, help="Data directory (overrides $BUSYBEE_HOME)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    status_parser = subparsers.add_parser("status", help="Show the budget for a day")
    status_parser.add_argument("--date", type=handlers.parse_day, default=None, help="Day (YYYY-MM-DD)")

    add_parser = subparsers.add_parser("add", help="Log an expense")
    add_parser.add_argument("vendor", help="Where the money went")
    add_parser.add_argument("amount", help="Amount spent")
    add_parser.add_argument(
        "--category",
        type=handlers.parse_category,
        default=None,
        help="Food, Shopping, Transportation, Entertainment, Personal or Other (guessed if omitted)",
    )
    add_parser.add_argument("--notes", default=None, help="Optional note")
    add_parser.add_argument(
        "--date", type=handlers.parse_timestamp, default=None, help="When (YYYY-MM-DD[THH:MM], default now)"
    )

    remove_parser = subparsers.add_parser("remove", help="Delete an expense")
    remove_parser.add_argument("expense_id", help="Expense id or unique prefix")

    list_parser = subparsers.add_parser("list", help="List expenses")
    list_parser.add_argument("--filter", choices=["today", "week", "month"], default=None)

    allowance_parser = subparsers.add_parser("allowance", help="Show or set the allowance")
    allowance_parser.add_argument("amount", nargs="?", default=None, help="Amount per active period")

    period_parser = subparsers.add_parser("period", help="Show or switch the budget period")
    period_parser.add_argument("period", nargs="?", choices=["daily", "weekly", "monthly"], default=None)

    subparsers.add_parser("summary", help="Savings metrics and achievements")
    subparsers.add_parser("achievements", help="List unlocked achievements")

    month_parser = subparsers.add_parser("month", help="Monthly summary")
    month_parser.add_argument("month", nargs="?", default=None, help="Month (YYYY-MM, default current)")

    vendors_parser = subparsers.add_parser("vendors", help="Suggested vendors")
    vendors_parser.add_argument("--limit", type=int, default=6)

    voice_parser = subparsers.add_parser("voice", help="Parse a dictated expense")
    voice_parser.add_argument("text", help='e.g. "12.50 at Starbucks - Food"')
    voice_parser.add_argument("--add", action="store_true", help="Log the parsed expense")

    reminders_parser = subparsers.add_parser("reminders", help="Show or toggle reminders")
    reminders_parser.add_argument("--morning", type=handlers.parse_toggle, default=None, help="on/off")
    reminders_parser.add_argument("--end-of-day", type=handlers.parse_toggle, default=None, help="on/off")

    receipt_parser = subparsers.add_parser("receipt", help="Manage receipt photos")
    receipt_subparsers = receipt_parser.add_subparsers(dest="receipt_command", help="Receipt command")
    attach_parser = receipt_subparsers.add_parser("attach", help="Attach a photo to an expense")
    attach_parser.add_argument("expense_id")
    attach_parser.add_argument("image", help="Path to image file")
    export_parser = receipt_subparsers.add_parser("export", help="Write an expense's receipt to a file")
    export_parser.add_argument("expense_id")
    export_parser.add_argument("output", help="Output JPEG path")
    delete_parser = receipt_subparsers.add_parser("delete", help="Delete an expense's receipt")
    delete_parser.add_argument("expense_id")

    history_parser = subparsers.add_parser("export-history", help="Export day history to CSV")
    history_parser.add_argument("output", help="CSV path")

    return parser


_HANDLERS = {
    "status": handlers.cmd_status,
    "add": handlers.cmd_add,
    "remove": handlers.cmd_remove,
    "list": handlers.cmd_list,
    "allowance": handlers.cmd_allowance,
    "period": handlers.cmd_period,
    "summary": handlers.cmd_summary,
    "achievements": handlers.cmd_achievements,
    "month": handlers.cmd_month,
    "vendors": handlers.cmd_vendors,
    "voice": handlers.cmd_voice,
    "reminders": handlers.cmd_reminders,
    "receipt": handlers.cmd_receipt,
    "export-history": handlers.cmd_export_history,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "receipt" and args.receipt_command is None:
        print("Error: receipt needs a subcommand: attach, export or delete")
        return 1

    if args.data_dir:
        set_data_root(Path(args.data_dir))

    service = handlers.open_service(get_paths())
    if service is None:
        return 1
    try:
        return handlers.run_command(_HANDLERS[args.command], args, service)
    finally:
        service.close()


if __name__ == "__main__":
    raise SystemExit(main())
