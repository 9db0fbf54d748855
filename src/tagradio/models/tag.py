"""Tag model for radio station service."""
from sqlalchemy import Column, Integer, String

from ..core.database import Base, TimestampMixin


class Tag(Base, TimestampMixin):
    """A label a track may carry; category only groups tags for display."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False, index=True)  # genre, mood, era, ...
    slug = Column(String(120), nullable=False, unique=True, index=True)
    display_order = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}', category='{self.category}')>"
