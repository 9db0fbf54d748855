"""StationRule model for radio station service."""
import enum
from typing import Optional

from sqlalchemy import Column, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base

NO_RULE_VALUES = {"", "none"}


class RuleKind(str, enum.Enum):
    """How a tag constrains a station's songs."""
    REQUIRE = "require"  # track must carry every required tag
    INCLUDE = "include"  # track must carry at least one included tag
    EXCLUDE = "exclude"  # any excluded tag disqualifies the track

    @classmethod
    def parse(cls, value) -> Optional["RuleKind"]:
        """
        Convert a wire value into a rule kind.

        Returns None for the "no rule" markers (None, "" and "none").
        Raises ValueError for anything else that is not a known kind.
        """
        if value is None or isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in NO_RULE_VALUES:
            return None
        return cls(normalized)


class StationRule(Base):
    """One tag rule of a station; at most one per (station, tag)."""

    __tablename__ = "station_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    station_id = Column(Integer, ForeignKey("stations.id", ondelete="CASCADE"), nullable=False, index=True)
    # No foreign key: rules may outlive the tag they name and then never match.
    tag_id = Column(Integer, nullable=False, index=True)
    kind = Column(
        SQLEnum(RuleKind, name="rule_kind", values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint('station_id', 'tag_id', name='uq_station_rule_tag'),
    )

    # Relationships
    station = relationship("RadioStation", back_populates="rules")

    def __repr__(self) -> str:
        return f"<StationRule(station_id={self.station_id}, tag_id={self.tag_id}, kind='{self.kind.value}')>"
