"""Radio station API endpoints for the player."""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.logging import get_logger
from ..services.playback_service import StationPlaybackService
from ..services.station_service import RadioStationService

logger = get_logger(__name__)

router = APIRouter(prefix="/radio/stations", tags=["radio"])


class StationInfo(BaseModel):
    """Station metadata shown by the player."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = Field(..., description="Station name")
    description: Optional[str] = Field(None, description="Station description")
    background_video: Optional[str] = Field(None, alias="backgroundVideo", description="Background video file")
    background_image: Optional[str] = Field(None, alias="backgroundImage", description="Background image file")


class StationListItem(StationInfo):
    """Station entry in the station directory."""
    slug: str = Field(..., description="URL-safe station identifier")


class SongResponse(BaseModel):
    """Song entry of a station playlist."""
    id: int
    title: str = Field(..., description="Track title")
    filename: str = Field(..., description="Audio file name in storage")
    duration: Optional[int] = Field(None, ge=0, description="Duration in seconds")


class StationPlaylistResponse(BaseModel):
    """Resolved station playlist, shuffled on every fetch."""
    station: StationInfo
    songs: List[SongResponse]
    total_songs: int = Field(..., ge=0)
    message: Optional[str] = Field(None, description="Empty-state message when no songs match")


@router.get(
    "",
    response_model=List[StationListItem],
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def list_stations(db: AsyncSession = Depends(get_db)) -> List[StationListItem]:
    """List all active radio stations."""
    service = RadioStationService(db)
    stations = await service.get_all_stations(active_only=True)

    logger.info("stations_listed", count=len(stations))
    return [
        StationListItem(
            id=station.id,
            name=station.name,
            slug=station.slug,
            description=station.description,
            background_video=station.background_video,
            background_image=station.background_image,
        )
        for station in stations
    ]


@router.get(
    "/{slug}",
    response_model=StationPlaylistResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_station_playlist(slug: str, db: AsyncSession = Depends(get_db)) -> StationPlaylistResponse:
    """
    Get a station with its matching songs.

    Songs are selected by the station's tag rules and come back in a new
    random order on every request.
    """
    logger.info("getting_station_playlist", slug=slug)

    playlist = await StationPlaybackService(db).fetch(slug)
    station = playlist.station

    return StationPlaylistResponse(
        station=StationInfo(
            id=station.id,
            name=station.name,
            description=station.description,
            background_video=station.background_video,
            background_image=station.background_image,
        ),
        songs=[
            SongResponse(
                id=track.id,
                title=track.title,
                filename=track.filename,
                duration=track.duration_seconds,
            )
            for track in playlist.songs
        ],
        total_songs=playlist.total_songs,
        message=playlist.message,
    )
