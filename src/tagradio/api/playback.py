"""Playback event tracking API endpoints."""
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.logging import get_logger
from ..metrics import playback_events_total
from ..services.station_service import RadioStationService
from ..services.track_service import TrackService

logger = get_logger(__name__)

router = APIRouter(prefix="/radio/playback", tags=["radio"])


class PlaybackEventRequest(BaseModel):
    """Playback event request model."""
    station_id: int
    track_id: int
    duration_seconds: Optional[int] = Field(None, ge=0)


class PlaybackEventResponse(BaseModel):
    """Playback event response model."""
    id: UUID
    station_id: int
    track_id: int
    timestamp: str
    duration_seconds: Optional[int] = None


@router.post("/events", response_model=PlaybackEventResponse, status_code=status.HTTP_201_CREATED)
async def create_playback_event(
    event: PlaybackEventRequest,
    db: AsyncSession = Depends(get_db),
) -> PlaybackEventResponse:
    """Record that the player started a track; increments the track's play count."""
    await RadioStationService(db).get_station_by_id(event.station_id)
    await TrackService(db).record_play(event.track_id)

    event_id = uuid4()
    timestamp = datetime.now(timezone.utc)
    playback_events_total.inc()

    logger.info(
        "playback_event_recorded",
        event_id=str(event_id),
        station_id=event.station_id,
        track_id=event.track_id,
        duration_seconds=event.duration_seconds,
    )

    return PlaybackEventResponse(
        id=event_id,
        station_id=event.station_id,
        track_id=event.track_id,
        timestamp=timestamp.isoformat(),
        duration_seconds=event.duration_seconds,
    )
