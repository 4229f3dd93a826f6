from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class TripModel(Base):
    __tablename__ = 'trip'

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    route_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vessel_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default='scheduled')
    departure_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    fare_multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 3), nullable=False, default=1)
    # {"origin-destination": "price"}
    fare_overrides: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
