# stair_forecast/seed.py
"""Demo dataset: two finished goods with six monthly order snapshots.

Revision 10 is created for every target month; target months with an even
zero-based month index (Jan, Mar, Mei, Jul, Sep, Nov) also get revision 20
with values raised by 5%.
"""
from typing import Dict

from sqlalchemy.orm import Session

from stair_forecast.core.month_label import add_months, decode, encode, month_range
from stair_forecast.logging_setup import get_logger, logger as log_manager
from stair_forecast.models import SKU, ShipTo, ForecastVersion, ForecastEntry
from stair_forecast.services.forecast_service import ForecastService
from stair_forecast.services.sku_service import SKUService

logger = get_logger('seed')

BASE_VERSION = 10
UPLIFT_VERSION = 20
UPLIFT_FACTOR = 1.05

# {order date: values for the order month and the months after it}
SEED_DATA = [
    {
        'part_number': '001234',
        'part_name': 'FINISH GOOD 1',
        'order': 'ORDER001',
        'forecast': {
            'Jul-24': [3800, 4600, 4100, 3900, 3561, 3391],
            'Agu-24': [2700, 4300, 4500, 4200, 4000, 4000],
            'Sep-24': [3900, 3500, 4000, 4800, 4800, 4800],
            'Okt-24': [2900, 4500, 5800, 5800, 5800, 5800],
            'Nov-24': [2400, 4200, 2900, 3600, 3240, 3240],
            'Des-24': [4100, 2800, 3600, 3700, 3700, 3700],
        }
    },
    {
        'part_number': '001235',
        'part_name': 'FINISH GOOD 2',
        'order': 'ORDER002',
        'forecast': {
            'Jul-24': [3200, 3800, 3500, 3300, 3000, 2800],
            'Agu-24': [2200, 3600, 3800, 3500, 3300, 3300],
            'Sep-24': [3200, 2800, 3300, 4100, 4100, 4100],
        }
    }
]


def reset_database(session: Session):
    """Delete all forecast data and SKUs."""
    session.query(ForecastEntry).delete()
    session.query(ForecastVersion).delete()
    session.query(ShipTo).delete()
    session.query(SKU).delete()
    session.flush()
    session.expunge_all()
    logger.info("Database reset completed")


def seed_database(session: Session, reset: bool = True) -> Dict[str, int]:
    """Load the demo dataset.

    Args:
        session: Database session
        reset: Delete existing data first

    Returns:
        Dictionary with SKU, version and entry totals
    """
    with log_manager.batch('seed', {'reset': reset}) as totals:
        _load(session, reset)
        totals.update(
            skus=session.query(SKU).count(),
            versions=session.query(ForecastVersion).count(),
            entries=session.query(ForecastEntry).count()
        )

    for version in session.query(ForecastVersion).order_by(ForecastVersion.month, ForecastVersion.version):
        logger.info(f"{encode(version.month)} v{version.version}: {len(version.entries)} entries")

    return totals


def _load(session: Session, reset: bool):
    if reset:
        reset_database(session)

    sku_service = SKUService(session)
    forecast_service = ForecastService(session)

    for sku_data in SEED_DATA:
        sku, _ = sku_service.get_or_create_sku(
            sku_data['part_number'], sku_data['part_name'], sku_data['order']
        )
        ship_to, _ = sku_service.get_or_create_ship_to(sku)
        logger.info(f"Seeding SKU {sku.part_number} - {sku.part_name}")

        for order_date, values in sku_data['forecast'].items():
            order_month = decode(order_date)
            targets = month_range(order_month, add_months(order_month, len(values) - 1))
            for target_month, value in zip(targets, values):
                forecast_service.record_observation(
                    sku, ship_to, order_month, target_month, BASE_VERSION, value
                )
                if target_month.month_index % 2 == 0:
                    forecast_service.record_observation(
                        sku, ship_to, order_month, target_month, UPLIFT_VERSION,
                        max(0, round(value * UPLIFT_FACTOR))
                    )

    session.flush()
