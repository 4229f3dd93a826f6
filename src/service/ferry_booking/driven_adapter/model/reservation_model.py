from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class ReservationModel(Base):
    __tablename__ = 'reservation'
    __table_args__ = (
        UniqueConstraint('trip_id', 'idempotency_key', name='uq_reservation_trip_idempotency_key'),
        Index('ix_reservation_trip_state', 'trip_id', 'state'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    trip_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    origin_index: Mapped[int] = mapped_column(Integer, nullable=False)
    destination_index: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_count: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[str] = mapped_column(String(16), nullable=False)
    hold_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    fare_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
