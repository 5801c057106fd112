"""
Reservations: a student's claim on one seat of an event.

Key design decisions:
- Partial unique index on (student_id, event_id) over non-cancelled rows
  prevents duplicate active bookings at the DB level, while cancelled rows
  stay around as history and do not block re-booking
- `is_cancelled` is a soft delete and never flips back
"""

from sqlalchemy import Column, String, Boolean, ForeignKey, Index, text

from ticketing.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

_ACTIVE_ONLY = text("NOT is_cancelled")


class Reservation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "reservations"

    event_id = Column(ForeignKey("events.id"), nullable=False, index=True)
    student_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    seat_number = Column(String(10), nullable=False)
    is_cancelled = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index(
            "uq_reservations_active_student_event",
            "student_id",
            "event_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, event={self.event_id}, seat={self.seat_number})>"


class GeneralReservation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "general_reservations"

    event_id = Column(ForeignKey("general_events.id"), nullable=False, index=True)
    student_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    seat_number = Column(String(10), nullable=False)
    is_cancelled = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index(
            "uq_general_reservations_active_student_event",
            "student_id",
            "event_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    def __repr__(self) -> str:
        return f"<GeneralReservation(id={self.id}, event={self.event_id}, seat={self.seat_number})>"
