"""RadioStation model for radio station service."""
from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from ..core.database import Base, TimestampMixin


class RadioStation(Base, TimestampMixin):
    """A virtual playlist whose songs are selected by tag rules."""

    __tablename__ = "stations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(String(1000), nullable=True)
    background_video = Column(String(512), nullable=True)
    background_image = Column(String(512), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    # Relationships
    rules = relationship("StationRule", back_populates="station", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<RadioStation(id={self.id}, name='{self.name}', slug='{self.slug}')>"
