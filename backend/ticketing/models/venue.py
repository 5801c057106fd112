"""
Catalog entities referenced by sport events: stadiums, sports and teams.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import AddressMixin, Base, TimestampMixin, UUIDPrimaryKeyMixin


class Stadium(Base, UUIDPrimaryKeyMixin, TimestampMixin, AddressMixin):
    __tablename__ = "stadiums"

    name = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_stadium_capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<Stadium(id={self.id}, name={self.name}, capacity={self.capacity})>"


class Sport(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "sports"

    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(1000), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Sport(id={self.id}, name={self.name})>"


class Team(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "teams"

    name = Column(String(100), nullable=False)
    sport_id = Column(ForeignKey("sports.id"), nullable=False, index=True)

    sport = relationship("Sport", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name})>"
