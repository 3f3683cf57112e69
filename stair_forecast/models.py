# stair_forecast/models.py
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

DEFAULT_SHIP_TO_CODE = 'DEFAULT'

class SKU(Base):
    """Manufactured part tracked by the forecast staircase.

    The part number is the business key; name and order id may be corrected
    later but the record is never deleted outside of a reset.
    """
    __tablename__ = 'sku'

    id = Column(Integer, primary_key=True)
    part_number = Column(String(50), nullable=False, unique=True)
    part_name = Column(String(200), nullable=False, default='')
    order = Column(String(50), nullable=False, default='')
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    ship_tos = relationship("ShipTo", back_populates="sku", cascade="all, delete-orphan")
    entries = relationship("ForecastEntry", back_populates="sku", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            'id': self.id,
            'part_number': self.part_number,
            'part_name': self.part_name,
            'order': self.order
        }

class ShipTo(Base):
    """Delivery destination scoped to one SKU."""
    __tablename__ = 'ship_to'

    id = Column(Integer, primary_key=True)
    sku_id = Column(Integer, ForeignKey('sku.id'), nullable=False)
    code = Column(String(50), nullable=False)
    name = Column(String(200))
    created_at = Column(DateTime, default=func.now())

    sku = relationship("SKU", back_populates="ship_tos")
    entries = relationship("ForecastEntry", back_populates="ship_to")

    __table_args__ = (
        UniqueConstraint('sku_id', 'code', name='uq_ship_to_sku_code'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'sku_id': self.sku_id,
            'code': self.code,
            'name': self.name
        }

class ForecastVersion(Base):
    """Revision of the forecast for one target month."""
    __tablename__ = 'forecast_version'

    id = Column(Integer, primary_key=True)
    month = Column(Date, nullable=False)  # target month, first day
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())

    entries = relationship(
        "ForecastEntry",
        back_populates="forecast_version",
        cascade="all, delete-orphan",
        order_by="ForecastEntry.order_month"
    )

    __table_args__ = (
        UniqueConstraint('month', 'version', name='uq_forecast_version_month_version'),
    )

class ForecastEntry(Base):
    """Single observation: value forecast at order_month for the version's month."""
    __tablename__ = 'forecast_entry'

    id = Column(Integer, primary_key=True)
    forecast_version_id = Column(Integer, ForeignKey('forecast_version.id'), nullable=False)
    sku_id = Column(Integer, ForeignKey('sku.id'), nullable=False)
    ship_to_id = Column(Integer, ForeignKey('ship_to.id'), nullable=False)
    order_month = Column(Date, nullable=False)  # snapshot (as-of) month, first day
    value = Column(Float, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    forecast_version = relationship("ForecastVersion", back_populates="entries")
    sku = relationship("SKU", back_populates="entries")
    ship_to = relationship("ShipTo", back_populates="entries")

    __table_args__ = (
        UniqueConstraint(
            'forecast_version_id', 'sku_id', 'ship_to_id', 'order_month',
            name='uq_forecast_entry_coordinate'
        ),
        Index('ix_forecast_entry_sku', 'sku_id'),
    )
