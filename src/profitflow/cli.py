"""
ProfitFlow - Command Line
==========================

Usage:
    profitflow import-orders orders.csv
    profitflow import-stock stock.csv
    profitflow set payment_fee_percent 1.5
    profitflow set-ads 2024-02-01 40
    profitflow set-cost "Blue Mug" 12.5
    profitflow report --start 2024-01-01 --end 2024-01-31 --export csv
    profitflow forecast --start 2024-01-01 --end 2024-01-31
    profitflow backup ledger-backup.json
    profitflow restore ledger-backup.json --yes
    profitflow dates

The ledger file comes from --ledger, else PROFITFLOW_LEDGER, else
./data/ledger.json.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from profitflow.config import Config
from profitflow.models.errors import ProfitFlowError
from profitflow.models.records import GlobalSettings, IngestStatus
from profitflow.services.cost_resolution import (
    CostRequest,
    CostResolver,
    ingest_until_resolved,
)
from profitflow.services.inventory_forecaster import InventoryForecaster
from profitflow.services.ledger import JsonFileStore, KeyValueLedger
from profitflow.services.order_ingestion import OrderIngestionPipeline, StockImporter
from profitflow.services.output_generator import (
    OutputGenerator,
    forecast_frame,
    report_daily_frame,
    report_orders_frame,
    report_summary_frame,
)
from profitflow.services.profit_calculator import ProfitCalculator
from profitflow.services.settings_timeline import AdsCostTimeline
from profitflow.utils.logger import configure_package_logging, get_logger
from profitflow.utils.validators import validate_iso_date

logger = get_logger(__name__)


def read_text(path: str) -> str:
    # Shop exports are often written with a BOM
    return Path(path).read_text(encoding='utf-8-sig')


def prompt_for_costs(requests: List[CostRequest]) -> Dict[str, Any]:
    """Ask for each missing cost on stdin; '#n' picks the n-th suggestion."""
    print(f"\nNo cost recorded for {len(requests)} products.")
    answers = {}
    for request in requests:
        print(f"\n  {request.name}")
        for i, suggestion in enumerate(request.suggestions, start=1):
            print(f"    #{i} {suggestion.name} ({suggestion.cost:g})")
        answers[request.name] = input("  Unit cost: ")
    return answers


def default_range(ledger: KeyValueLedger, args) -> Optional[tuple]:
    """Requested range, filled from the stored span where not given."""
    dates = ledger.available_dates()
    start = args.start or (dates[0] if dates else None)
    end = args.end or (dates[-1] if dates else None)
    if start is None or end is None:
        return None
    return start, end


def print_frame(frame: pd.DataFrame) -> None:
    if frame.empty:
        print("(no rows)")
        return
    with pd.option_context('display.max_rows', None, 'display.width', 160):
        print(frame.to_string(index=False, float_format=lambda v: f"{v:.2f}"))


# =============================================================================
# COMMANDS
# =============================================================================


def cmd_import_orders(ledger: KeyValueLedger, config: Config, args) -> int:
    pipeline = OrderIngestionPipeline(ledger, config)
    text = read_text(args.file)

    if args.no_prompt:
        result = pipeline.ingest(text)
    else:
        resolver = CostResolver(ledger, config=config)
        result = ingest_until_resolved(pipeline, text, resolver, prompt_for_costs)

    result.raise_for_format()
    if result.status is IngestStatus.NEEDS_COST_INPUT:
        print("Import not saved. Missing costs for:")
        for name in result.missing_names:
            print(f"  - {name}")
        return 2
    if result.status is IngestStatus.NO_DATA:
        print("No valid data found.")
        return 1

    print(f"Imported {result.days_imported} days of data "
          f"({result.dates[0]} to {result.dates[-1]}).")
    if result.rows_skipped:
        print(f"Skipped {result.rows_skipped} malformed rows.")
    return 0


def cmd_import_stock(ledger: KeyValueLedger, config: Config, args) -> int:
    today = validate_iso_date(args.date, "stock date") if args.date else None
    result = StockImporter(ledger, config).import_text(read_text(args.file), today=today)
    result.raise_for_format()
    print(f"Updated stock levels for {result.products_updated} products. "
          f"Last update: {result.update_date}")
    return 0


def cmd_set(ledger: KeyValueLedger, config: Config, args) -> int:
    settings = ledger.get_globals().to_dict()
    if args.name is None:
        for name, value in settings.items():
            print(f"{name:<26} {value:g}")
    elif args.value is None:
        print(f"{args.name:<26} {settings[args.name]:g}")
    else:
        ledger.set_global(args.name, args.value)
    return 0


def cmd_set_ads(ledger: KeyValueLedger, config: Config, args) -> int:
    timeline = AdsCostTimeline(ledger)
    if args.date is None:
        print(f"{'default':<12} {timeline.default():g}")
        for entry_date, value in timeline.entries():
            print(f"{entry_date:<12} {value:g}")
    elif args.value is None:
        day = validate_iso_date(args.date).isoformat()
        print(f"{day:<12} {timeline.resolve(day):g}")
    else:
        timeline.set_for(args.date, args.value)
    return 0


def cmd_set_cost(ledger: KeyValueLedger, config: Config, args) -> int:
    if args.name is None:
        for name, cost in ledger.product_costs().items():
            print(f"{cost:>10g}  {name}")
    elif args.value is None:
        cost = ledger.get_product_cost(args.name)
        print(f"{'?' if cost is None else format(cost, 'g'):>10}  {args.name}")
    else:
        ledger.set_product_cost(args.name, args.value)
    return 0


def cmd_report(ledger: KeyValueLedger, config: Config, args) -> int:
    bounds = default_range(ledger, args)
    if bounds is None:
        print("No data imported yet.")
        return 1

    report = ProfitCalculator(ledger, config).report(*bounds)
    print(f"\nProfit report {report.start} .. {report.end}\n")
    print_frame(report_daily_frame(report))
    print()
    print_frame(report_summary_frame(report))
    if args.orders:
        print()
        print_frame(report_orders_frame(report))

    if args.export:
        exported = OutputGenerator(args.output or config.output_path).export_report(
            report, formats=args.export)
        for path in exported.values():
            print(f"Wrote {path}")
    return 0


def cmd_forecast(ledger: KeyValueLedger, config: Config, args) -> int:
    bounds = default_range(ledger, args)
    if bounds is None:
        print("No data imported yet.")
        return 1

    rows = InventoryForecaster(ledger, config).forecast(*bounds)
    frame = forecast_frame(rows)
    if not frame.empty:
        frame = frame[['title', 'sold', 'cost', 'importance', 'stock',
                       'expected_stock_display', 'days_left_display', 'severity']]
    print(f"\nInventory forecast {bounds[0]} .. {bounds[1]}\n")
    print_frame(frame)

    if args.export:
        exported = OutputGenerator(args.output or config.output_path).export_forecast(
            rows, bounds[0], bounds[1], formats=args.export)
        for path in exported.values():
            print(f"Wrote {path}")
    return 0


def cmd_backup(ledger: KeyValueLedger, config: Config, args) -> int:
    payload = ledger.export_backup()
    if args.file:
        Path(args.file).write_text(payload, encoding='utf-8')
        print(f"Backup written to {args.file}")
    else:
        print(payload)
    return 0


def cmd_restore(ledger: KeyValueLedger, config: Config, args) -> int:
    if not args.yes:
        print("Restore replaces the whole ledger. Re-run with --yes to confirm.")
        return 1
    count = ledger.restore_backup(read_text(args.file))
    print(f"Restored {count} keys.")
    return 0


def cmd_dates(ledger: KeyValueLedger, config: Config, args) -> int:
    for stored in ledger.available_dates():
        print(stored)
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='profitflow',
        description='Shop profit and stock ledger'
    )
    parser.add_argument('--ledger', help='Ledger JSON file')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    parser.add_argument('--log-file', help='Also log to this file')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('import-orders', help='Import an orders export')
    p.add_argument('file')
    p.add_argument('--no-prompt', action='store_true',
                   help='Do not ask for missing costs; just list them')
    p.set_defaults(handler=cmd_import_orders)

    p = sub.add_parser('import-stock', help='Import a stock-level report')
    p.add_argument('file')
    p.add_argument('--date', help='Observation date (default: today)')
    p.set_defaults(handler=cmd_import_stock)

    p = sub.add_parser('set', help='Show or change a global setting')
    p.add_argument('name', nargs='?', choices=GlobalSettings.field_names())
    p.add_argument('value', nargs='?', type=float)
    p.set_defaults(handler=cmd_set)

    p = sub.add_parser('set-ads', help='Show or change the ads cost timeline')
    p.add_argument('date', nargs='?', help='Effective date YYYY-MM-DD')
    p.add_argument('value', nargs='?', type=float)
    p.set_defaults(handler=cmd_set_ads)

    p = sub.add_parser('set-cost', help='Show or record product unit costs')
    p.add_argument('name', nargs='?')
    p.add_argument('value', nargs='?', type=float)
    p.set_defaults(handler=cmd_set_cost)

    for name, handler, help_text in (
        ('report', cmd_report, 'Daily profit report'),
        ('forecast', cmd_forecast, 'Stock depletion forecast'),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('--start', help='First date (default: oldest stored)')
        p.add_argument('--end', help='Last date (default: newest stored)')
        p.add_argument('--export', nargs='+', choices=['csv', 'json'],
                       help='Also write the tables in these formats')
        p.add_argument('--output', help='Export directory')
        if name == 'report':
            p.add_argument('--orders', action='store_true', help='Print per-order breakdown')
        p.set_defaults(handler=handler)

    p = sub.add_parser('backup', help='Write the whole ledger as JSON')
    p.add_argument('file', nargs='?', help='Target file (default: stdout)')
    p.set_defaults(handler=cmd_backup)

    p = sub.add_parser('restore', help='Replace the whole ledger from a backup')
    p.add_argument('file')
    p.add_argument('--yes', action='store_true', help='Confirm replacing the ledger')
    p.set_defaults(handler=cmd_restore)

    p = sub.add_parser('dates', help='List dates with stored data')
    p.set_defaults(handler=cmd_dates)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    config = Config.from_env(
        ledger_path=args.ledger,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    configure_package_logging(config.log_level, config.log_file)

    ledger = KeyValueLedger(JsonFileStore(config.ledger_path))
    try:
        return args.handler(ledger, config, args)
    except ProfitFlowError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
