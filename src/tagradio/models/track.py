"""Track model for radio station service."""
from typing import FrozenSet

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from ..core.database import Base, TimestampMixin

# Membership rows; a track carries each tag at most once.
track_tags = Table(
    "track_tags",
    Base.metadata,
    Column("track_id", Integer, ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id"), primary_key=True, index=True),
)


class Track(Base, TimestampMixin):
    """Track model representing an uploaded audio file."""

    __tablename__ = "tracks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    filename = Column(String(512), nullable=False, unique=True)  # Name in audio storage
    duration_seconds = Column(Integer, nullable=True)
    file_size_bytes = Column(Integer, nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    play_count = Column(Integer, nullable=False, default=0)

    # Relationships
    tags = relationship("Tag", secondary=track_tags, order_by="Tag.name")

    @property
    def tag_ids(self) -> FrozenSet[int]:
        return frozenset(tag.id for tag in self.tags)

    def __repr__(self) -> str:
        return f"<Track(id={self.id}, title='{self.title}', active={self.active})>"
