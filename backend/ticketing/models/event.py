"""
Reservable events.

Key design decisions:
- Capacity is never stored as a running counter; availability is always
  computed from the live count of non-cancelled reservations
- `is_active` only ever goes from true to false (cancelled events are terminal)
- `version` is bumped by every reservation write; the bump is the statement
  that takes the event row lock, serializing check-then-insert per event
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import AddressMixin, Base, TimestampMixin, UUIDPrimaryKeyMixin


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A match between two teams at a stadium; capacity comes from the stadium."""

    __tablename__ = "events"

    name = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False, default="")
    start_datetime = Column(DateTime(timezone=True), nullable=False)
    end_datetime = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)

    sport_id = Column(ForeignKey("sports.id"), nullable=False)
    team_one_id = Column(ForeignKey("teams.id"), nullable=False)
    team_two_id = Column(ForeignKey("teams.id"), nullable=False)
    stadium_id = Column(ForeignKey("stadiums.id"), nullable=False)
    organizer_id = Column(ForeignKey("users.id"), nullable=False, index=True)

    stadium = relationship("Stadium", lazy="selectin")
    sport = relationship("Sport", lazy="selectin")
    team_one = relationship("Team", foreign_keys=[team_one_id], lazy="selectin")
    team_two = relationship("Team", foreign_keys=[team_two_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint("end_datetime > start_datetime", name="check_event_time_window"),
        CheckConstraint("team_one_id <> team_two_id", name="check_event_distinct_teams"),
        Index("ix_events_active_start", "is_active", "start_datetime"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, active={self.is_active})>"


class GeneralEvent(Base, UUIDPrimaryKeyMixin, TimestampMixin, AddressMixin):
    """A free-standing event with its own capacity and address."""

    __tablename__ = "general_events"

    name = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False, default="")
    start_datetime = Column(DateTime(timezone=True), nullable=False)
    end_datetime = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    capacity = Column(Integer, nullable=False)
    organizer_id = Column(ForeignKey("users.id"), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_general_event_capacity_positive"),
        CheckConstraint("end_datetime > start_datetime", name="check_general_event_time_window"),
        Index("ix_general_events_active_start", "is_active", "start_datetime"),
    )

    def __repr__(self) -> str:
        return f"<GeneralEvent(id={self.id}, name={self.name}, capacity={self.capacity})>"
