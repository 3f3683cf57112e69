# stair_forecast/services/sku_service.py
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from stair_forecast.config import config
from stair_forecast.db import get_or_create
from stair_forecast.exceptions import DuplicateError, NotFoundError, ValidationError
from stair_forecast.logging_setup import get_logger
from stair_forecast.models import SKU, ShipTo, DEFAULT_SHIP_TO_CODE

logger = get_logger(__name__)

class SKUService:
    """Service for SKU and ship-to catalogue operations."""

    def __init__(self, session: Session):
        """Initialize the SKU service.

        Args:
            session: Database session
        """
        self.session = session

    def list_skus(self) -> List[Dict]:
        """Get all SKUs ordered by part number."""
        skus = self.session.query(SKU).order_by(SKU.part_number.asc()).all()
        return [sku.to_dict() for sku in skus]

    def get_sku(self, sku_id: int) -> SKU:
        sku = self.session.query(SKU).filter(SKU.id == sku_id).first()
        if not sku:
            raise NotFoundError(f"SKU {sku_id} not found")
        return sku

    def find_by_part_number(self, part_number: str) -> Optional[SKU]:
        return self.session.query(SKU).filter(SKU.part_number == part_number).first()

    def create_sku(self, part_number: str, part_name: str, order: str) -> SKU:
        """Create a new SKU.

        Args:
            part_number: Unique part number
            part_name: Display name
            order: Order / program identifier

        Returns:
            Created SKU

        Raises:
            ValidationError: If a field is blank
            DuplicateError: If the part number already exists
        """
        if not part_number or not part_name or not order:
            raise ValidationError("Missing required fields: partNumber, partName, order")

        if self.find_by_part_number(part_number):
            raise DuplicateError(
                "SKU with this part number already exists",
                details={'part_number': part_number}
            )

        sku, created = get_or_create(
            self.session, SKU,
            defaults={'part_name': part_name, 'order': order},
            part_number=part_number
        )
        if not created:
            raise DuplicateError(
                "SKU with this part number already exists",
                details={'part_number': part_number}
            )

        logger.info(f"Created SKU {part_number} - {part_name}")
        return sku

    def get_or_create_sku(
        self,
        part_number: str,
        part_name: Optional[str] = None,
        order: Optional[str] = None
    ) -> Tuple[SKU, bool]:
        """Get a SKU by part number, creating it on first reference."""
        if not part_number:
            raise ValidationError("Part number is required")

        sku, created = get_or_create(
            self.session, SKU,
            defaults={'part_name': part_name or '', 'order': order or ''},
            part_number=part_number
        )
        if created:
            logger.info(f"Created SKU {part_number} on first reference")
        return sku, created

    def get_or_create_ship_to(
        self,
        sku: SKU,
        code: Optional[str] = None,
        name: Optional[str] = None
    ) -> Tuple[ShipTo, bool]:
        """Get a ship-to for a SKU, creating it if absent.

        A blank code maps to the DEFAULT ship-to.
        """
        ingest_settings = config.ingest_config
        code = (code or '').strip() or ingest_settings['default_ship_to'] or DEFAULT_SHIP_TO_CODE
        if not name and code == ingest_settings['default_ship_to']:
            name = ingest_settings['default_ship_to_name']

        ship_to, created = get_or_create(
            self.session, ShipTo,
            defaults={'name': name},
            sku_id=sku.id,
            code=code
        )
        if not created and name and not ship_to.name:
            ship_to.name = name
        return ship_to, created

    def list_ship_tos(self, sku_id: int) -> List[Dict]:
        """Get the ship-tos of a SKU ordered by code."""
        sku = self.get_sku(sku_id)
        ship_tos = sorted(sku.ship_tos, key=lambda ship_to: ship_to.code.casefold())
        return [ship_to.to_dict() for ship_to in ship_tos]
