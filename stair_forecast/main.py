"""
Command-line entry point for the Stair Forecast system.

Provides database setup, demo seeding, sheet ingestion, staircase display,
workbook export and the HTTP API server.
"""
import argparse
import sys
from pathlib import Path

from tabulate import tabulate

from stair_forecast.config import config
from stair_forecast.db import db, session_scope
from stair_forecast.exceptions import StairForecastError
from stair_forecast.logging_setup import logger, get_logger, log_exception

log = get_logger('cli')


def init_application(database_url=None):
    """Initialize application components."""
    db.initialize(database_url)
    db.create_all_tables()

    app_log = logger.app_logger
    app_log.info("Stair Forecast system initialized")
    app_log.info(f"Using database: {database_url or config.get_db_url()}")
    return True


def init_db(args):
    """Create (or recreate) the database tables."""
    if args.drop:
        log.info("Dropping all existing tables...")
        db.drop_all_tables()
    db.create_all_tables()
    log.info("Database tables created successfully.")
    return True


def seed(args):
    """Load the demo dataset."""
    from stair_forecast.seed import seed_database

    with session_scope() as session:
        totals = seed_database(session, reset=not args.keep)

    print(f"SKUs: {totals['skus']}, versions: {totals['versions']}, entries: {totals['entries']}")
    return True


def ingest(args):
    """Ingest a CSV sheet."""
    from stair_forecast.services.ingest_service import IngestService

    with session_scope() as session:
        results = IngestService(session).ingest_file(args.file, args.version)

    print(f"SKUs created: {results['skus_created']}")
    print(f"Ship-tos created: {results['ship_tos_created']}")
    print(f"Entries created: {results['forecast_entries_created']}")
    print(f"Entries updated: {results['forecast_entries_updated']}")
    print(f"Versions used: {', '.join(str(v) for v in results['versions_used'])}")

    for error in results['errors']:
        print(f"Row {error['row']}: {error['message']}")

    return not results['errors']


def _format_cell(value, signed=False):
    if value is None:
        return '-'
    return f"{value:+,.0f}" if signed else f"{value:,.0f}"


def show(args):
    """Print the staircase (and deltas) for a SKU."""
    from stair_forecast.services.forecast_service import ForecastService
    from stair_forecast.services.sku_service import SKUService

    with session_scope() as session:
        sku_id = args.sku_id
        if args.part_number:
            sku = SKUService(session).find_by_part_number(args.part_number)
            if sku is None:
                log.error(f"SKU {args.part_number} not found")
                return False
            sku_id = sku.id

        result = ForecastService(session).get_staircase(
            sku_id=sku_id,
            ship_to=args.ship_to,
            version=args.version,
            by_ship_to=args.by_ship_to
        )

    leading = ['Ship To', 'Order Date'] if args.by_ship_to else ['Order Date']
    headers = leading + result['months']

    table = []
    for row in result['rows']:
        key = [row['order_date']]
        if args.by_ship_to:
            key.insert(0, row['ship_to']['code'] if row['ship_to'] else '')
        cells = row['deltas'] if args.delta else row['values']
        table.append(key + [_format_cell(value, signed=args.delta) for value in cells])

    print(tabulate(table, headers=headers, tablefmt='simple', stralign='right', disable_numparse=True))
    print(f"\nAvailable versions: {', '.join(str(v) for v in result['available_versions']) or '-'}")
    if result['fallback_months']:
        print(f"Fallback to latest for: {', '.join(result['fallback_months'])}")
    return True


def export(args):
    """Write the staircase workbook to disk."""
    from stair_forecast.services.export_service import ExportService, export_filename

    with session_scope() as session:
        content = ExportService(session).export_workbook(
            sku_id=args.sku_id,
            ship_to=args.ship_to,
            version=args.version,
            by_ship_to=args.by_ship_to
        )

    output = Path(args.output or export_filename())
    output.write_bytes(content)
    log.info(f"Exported workbook to {output}")
    return True


def serve(args):
    """Run the HTTP API."""
    from stair_forecast.api import create_app

    api_settings = config.api_config
    app = create_app(args.database_url)
    app.run(
        host=args.host or api_settings['host'],
        port=args.port or api_settings['port'],
        debug=api_settings['debug']
    )
    return True


def _add_view_arguments(parser):
    parser.add_argument('--sku-id', type=int, help='SKU id')
    parser.add_argument('--ship-to', default='all', help="Ship-to code or 'all'")
    parser.add_argument('--version', default='latest', help="Revision number or 'latest'")
    parser.add_argument('--by-ship-to', action='store_true', help='One row per ship-to')


def build_parser():
    parser = argparse.ArgumentParser(description='Stair Forecast system')
    parser.add_argument('--database-url', help='SQLAlchemy database URL (defaults to config)')

    subparsers = parser.add_subparsers(dest='command')
    subparsers.required = True

    init_parser = subparsers.add_parser('init-db', help='Create database tables')
    init_parser.add_argument('--drop', action='store_true', help='Drop existing tables first')
    init_parser.set_defaults(func=init_db)

    seed_parser = subparsers.add_parser('seed', help='Load the demo dataset')
    seed_parser.add_argument('--keep', action='store_true', help='Keep existing data')
    seed_parser.set_defaults(func=seed)

    ingest_parser = subparsers.add_parser('ingest', help='Ingest a CSV forecast sheet')
    ingest_parser.add_argument('file', help='CSV file path')
    ingest_parser.add_argument('--version', type=int, help='Default revision for rows without ORDER VERSION')
    ingest_parser.set_defaults(func=ingest)

    show_parser = subparsers.add_parser('show', help='Print the staircase for a SKU')
    _add_view_arguments(show_parser)
    show_parser.add_argument('--part-number', help='Select the SKU by part number')
    show_parser.add_argument('--delta', action='store_true', help='Show deltas instead of values')
    show_parser.set_defaults(func=show)

    export_parser = subparsers.add_parser('export', help='Export the staircase workbook')
    _add_view_arguments(export_parser)
    export_parser.add_argument('--output', help='Output .xlsx path')
    export_parser.set_defaults(func=export)

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', help='Bind address')
    serve_parser.add_argument('--port', type=int, help='Port')
    serve_parser.set_defaults(func=serve)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        init_application(args.database_url)
        success = args.func(args)
    except StairForecastError as e:
        log_exception('cli', e, f"{args.command} failed")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        log_exception('cli', e, f"{args.command} failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
