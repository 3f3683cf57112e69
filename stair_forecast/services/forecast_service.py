# stair_forecast/services/forecast_service.py
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from stair_forecast.core.delta import compute_deltas
from stair_forecast.core.month_label import CalendarMonth, encode
from stair_forecast.core.staircase import Observation, ShipToKey, Staircase, build_staircase
from stair_forecast.core.version_resolution import (
    LATEST, VersionRecord, VersionResolution, resolve_versions
)
from stair_forecast.db import get_or_create
from stair_forecast.exceptions import StairForecastError, ValidationError
from stair_forecast.logging_setup import get_logger
from stair_forecast.models import SKU, ShipTo, ForecastVersion, ForecastEntry
from stair_forecast.services.sku_service import SKUService
from stair_forecast.utils.validation import (
    ForecastEntryRequest, parse_revision, validate_forecast_payload
)

logger = get_logger(__name__)

ALL_SHIP_TOS = 'all'

class ForecastService:
    """Service for reading, resolving and recording forecast observations."""

    def __init__(self, session: Session):
        """Initialize the forecast service.

        Args:
            session: Database session
        """
        self.session = session
        self.sku_service = SKUService(session)

    def get_forecast_versions(
        self,
        sku_id: Optional[int] = None,
        ship_to: Optional[str] = None
    ) -> List[VersionRecord]:
        """Get every forecast version with its (filtered) entries.

        Versions are returned even when the filters leave them without
        entries, so that revision availability does not depend on the
        selected SKU.

        Args:
            sku_id: Only include entries of this SKU
            ship_to: Only include entries of this ship-to, by code or numeric id ('all' for every ship-to)

        Returns:
            VersionRecord list ordered by target month then revision
        """
        versions = self.session.query(ForecastVersion).order_by(
            ForecastVersion.month.asc(),
            ForecastVersion.version.asc()
        ).all()

        query = self.session.query(ForecastEntry).options(
            joinedload(ForecastEntry.sku),
            joinedload(ForecastEntry.ship_to)
        )

        if sku_id is not None:
            query = query.filter(ForecastEntry.sku_id == sku_id)

        if ship_to and ship_to != ALL_SHIP_TOS:
            ship_to_id = parse_revision(ship_to)
            match = ShipTo.code == ship_to
            if ship_to_id is not None:
                match = or_(match, ShipTo.id == ship_to_id)
            query = query.join(ForecastEntry.ship_to).filter(match)

        entries_by_version: Dict[int, List[ForecastEntry]] = {}
        for entry in query.order_by(ForecastEntry.order_month.asc(), ForecastEntry.id.asc()).all():
            entries_by_version.setdefault(entry.forecast_version_id, []).append(entry)

        return [
            VersionRecord(
                month=CalendarMonth.from_date(version.month),
                version=version.version,
                entries=tuple(entries_by_version.get(version.id, ()))
            )
            for version in versions
        ]

    @staticmethod
    def to_observation(entry: ForecastEntry, record: VersionRecord) -> Observation:
        ship_to = None
        if entry.ship_to is not None:
            ship_to = ShipToKey(entry.ship_to.id, entry.ship_to.code, entry.ship_to.name)

        return Observation(
            snapshot_month=CalendarMonth.from_date(entry.order_month),
            target_month=record.month,
            value=entry.value,
            ship_to=ship_to,
            sku_id=entry.sku_id,
            version=record.version
        )

    def resolve_observations(
        self,
        sku_id: Optional[int] = None,
        ship_to: Optional[str] = None,
        version: Any = LATEST
    ) -> Tuple[VersionResolution, List[Tuple[ForecastEntry, Observation]]]:
        """Resolve the effective revision per month and collect its observations.

        Raises:
            InvalidVersionSelector: If the version selector is malformed
        """
        records = self.get_forecast_versions(sku_id, ship_to)
        resolution = resolve_versions(records, version)

        if resolution.fallback_months:
            logger.info(
                f"Version {resolution.requested_version} missing for "
                f"{', '.join(encode(month) for month in resolution.fallback_months)}; using latest"
            )

        resolved = []
        for record in resolution.effective_versions():
            for entry in record.entries:
                resolved.append((entry, self.to_observation(entry, record)))

        resolved.sort(key=lambda pair: (pair[1].target_month, pair[1].snapshot_month))
        return resolution, resolved

    def get_staircase(
        self,
        sku_id: Optional[int] = None,
        ship_to: Optional[str] = ALL_SHIP_TOS,
        version: Any = LATEST,
        by_ship_to: bool = False
    ) -> Dict:
        """Resolve and render the staircase for a SKU.

        Args:
            sku_id: SKU to render (None for every SKU combined)
            ship_to: Ship-to code or id filter, or 'all'
            version: Revision number or 'latest'
            by_ship_to: One row per ship-to and snapshot instead of summing ship-tos

        Returns:
            Dictionary with month axis, rows with deltas, flat entries and
            version resolution details
        """
        if sku_id is not None:
            self.sku_service.get_sku(sku_id)

        resolution, resolved = self.resolve_observations(sku_id, ship_to, version)
        staircase = build_staircase([observation for _, observation in resolved], by_ship_to)

        return {
            'sku_id': sku_id,
            'ship_to': ship_to or ALL_SHIP_TOS,
            'by_ship_to': by_ship_to,
            'months': staircase.column_labels,
            'rows': self.render_rows(staircase),
            'entries': [self._entry_to_dict(entry, observation) for entry, observation in resolved],
            'available_versions': resolution.available_versions,
            'requested_version': resolution.requested_version,
            'version_selection': {
                encode(month): selected for month, selected in resolution.version_selection.items()
            },
            'fallback_months': [encode(month) for month in resolution.fallback_months]
        }

    @staticmethod
    def render_rows(staircase: Staircase) -> List[Dict]:
        """Convert staircase rows and their deltas into dictionaries."""
        deltas = compute_deltas(staircase.rows)
        rows = []
        for row, row_deltas in zip(staircase.rows, deltas):
            rows.append({
                'order_date': row.label,
                'ship_to': {
                    'id': row.ship_to.identity,
                    'code': row.ship_to.code,
                    'name': row.ship_to.name
                } if row.ship_to is not None else None,
                'first_month': encode(row.first_month),
                'last_month': encode(row.last_month),
                'values': list(row.values),
                'deltas': list(row_deltas)
            })
        return rows

    @staticmethod
    def _entry_to_dict(entry: ForecastEntry, observation: Observation) -> Dict:
        return {
            'id': entry.id,
            'sku_id': entry.sku_id,
            'ship_to': observation.ship_to.code if observation.ship_to else None,
            'order_date': encode(observation.snapshot_month),
            'month': encode(observation.target_month),
            'value': observation.value,
            'version': observation.version,
            'sku': entry.sku.to_dict() if entry.sku is not None else None
        }

    def get_or_create_version(self, month: CalendarMonth, version: int) -> Tuple[ForecastVersion, bool]:
        """Find or create the (target month, revision) version record."""
        return get_or_create(
            self.session, ForecastVersion,
            month=month.to_date(),
            version=version
        )

    def record_observation(
        self,
        sku: SKU,
        ship_to: ShipTo,
        order_month: CalendarMonth,
        target_month: CalendarMonth,
        version: int,
        value: float
    ) -> Tuple[ForecastEntry, bool]:
        """Upsert one observation; an existing coordinate has its value overwritten.

        Returns:
            Tuple (entry, created)
        """
        version_record, _ = self.get_or_create_version(target_month, version)

        entry, created = get_or_create(
            self.session, ForecastEntry,
            defaults={'value': value},
            forecast_version_id=version_record.id,
            sku_id=sku.id,
            ship_to_id=ship_to.id,
            order_month=order_month.to_date()
        )
        if not created and entry.value != value:
            entry.value = value

        return entry, created

    def upsert_entry(self, request: ForecastEntryRequest) -> Dict:
        """Record a validated observation request.

        The SKU is looked up by id, or by part number (created on first
        reference when a part name is given); the ship-to is created when absent.

        Raises:
            NotFoundError: If the SKU id does not exist
            ValidationError: If an unknown part number comes without a part name
        """
        if request.sku_id is not None:
            sku = self.sku_service.get_sku(request.sku_id)
        else:
            if request.part_name is None and self.sku_service.find_by_part_number(request.part_number) is None:
                raise ValidationError(
                    f"partName is required to create SKU {request.part_number}",
                    details={'partNumber': request.part_number}
                )
            sku, _ = self.sku_service.get_or_create_sku(
                request.part_number, request.part_name, request.order
            )

        ship_to, _ = self.sku_service.get_or_create_ship_to(sku, request.ship_to, request.ship_to_name)
        entry, created = self.record_observation(
            sku, ship_to, request.order_month, request.month, request.version, request.value
        )
        self.session.flush()

        return {
            'id': entry.id,
            'sku_id': sku.id,
            'ship_to': ship_to.code,
            'order_date': encode(request.order_month),
            'month': encode(request.month),
            'value': entry.value,
            'version': request.version,
            'created': created,
            'sku': sku.to_dict()
        }

    def bulk_upsert(self, items: List[Dict]) -> Dict:
        """Record a list of observation payloads.

        Malformed items are skipped and reported by position; they do not
        stop the rest of the batch.

        Returns:
            Dictionary with processed count and per-item errors
        """
        if not isinstance(items, list) or not items:
            raise ValidationError("Invalid data format. Expected array of forecast entries")

        processed = 0
        errors = []
        for index, item in enumerate(items):
            try:
                with self.session.begin_nested():
                    self.upsert_entry(validate_forecast_payload(item))
                processed += 1
            except StairForecastError as e:
                errors.append({'index': index, 'message': e.message})

        logger.info(f"Bulk upsert processed {processed} of {len(items)} entries")
        return {
            'count': processed,
            'errors': errors
        }
