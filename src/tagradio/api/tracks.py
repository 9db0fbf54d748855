"""Track library admin endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.errors import ValidationError
from ..core.logging import get_logger
from ..models import Track
from ..services.track_service import TrackService
from .deps import require_admin

logger = get_logger(__name__)

router = APIRouter(prefix="/radio/tracks", tags=["tracks"], dependencies=[Depends(require_admin)])


class TrackTag(BaseModel):
    id: int
    name: str
    category: str


class TrackResponse(BaseModel):
    """Track response model."""
    id: int
    title: str = Field(..., description="Track title")
    filename: str = Field(..., description="Audio file name in storage")
    duration_seconds: Optional[int] = Field(None, ge=0, description="Track duration in seconds")
    file_size_bytes: Optional[int] = Field(None, ge=0, description="File size in bytes")
    active: bool
    play_count: int = Field(0, ge=0)
    tags: List[TrackTag] = Field(default_factory=list)


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class TrackListResponse(BaseModel):
    tracks: List[TrackResponse]
    pagination: Pagination


class TrackCreateRequest(BaseModel):
    """Registers an already stored audio file."""
    title: str = Field(..., min_length=1, max_length=255)
    filename: str = Field(..., min_length=1, max_length=512)
    duration_seconds: Optional[int] = Field(None, ge=0)
    file_size_bytes: Optional[int] = Field(None, ge=0)
    active: bool = True
    tag_ids: List[int] = Field(default_factory=list)


class TrackUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    active: Optional[bool] = None


class TrackTagsRequest(BaseModel):
    tag_ids: List[int]


class BulkDeleteRequest(BaseModel):
    track_ids: List[int] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted_count: int


class Aggregate(BaseModel):
    avg: Optional[float] = None
    min: Optional[int] = None
    max: Optional[int] = None
    total: Optional[int] = None


class TrackStatsResponse(BaseModel):
    total_tracks: int
    active_tracks: int
    total_plays: int
    duration_seconds: Aggregate
    file_size_bytes: Aggregate


def _track_response(track: Track) -> TrackResponse:
    return TrackResponse(
        id=track.id,
        title=track.title,
        filename=track.filename,
        duration_seconds=track.duration_seconds,
        file_size_bytes=track.file_size_bytes,
        active=track.active,
        play_count=track.play_count,
        tags=[TrackTag(id=tag.id, name=tag.name, category=tag.category) for tag in track.tags],
    )


@router.get("", response_model=TrackListResponse)
async def list_tracks(
    search: Optional[str] = Query(None, max_length=255, description="Title substring"),
    tag: Optional[str] = Query(None, description="Tag slug"),
    track_status: str = Query("all", alias="status", description="active, inactive or all"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> TrackListResponse:
    """List tracks with pagination."""
    tracks, total = await TrackService(db).list_tracks(
        search=search, tag_slug=tag, status=track_status, limit=limit, offset=offset
    )
    return TrackListResponse(
        tracks=[_track_response(track) for track in tracks],
        pagination=Pagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total),
    )


@router.get("/stats", response_model=TrackStatsResponse)
async def get_track_stats(db: AsyncSession = Depends(get_db)) -> TrackStatsResponse:
    """Library totals for the admin dashboard."""
    return TrackStatsResponse(**await TrackService(db).stats())


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_tracks(payload: BulkDeleteRequest, db: AsyncSession = Depends(get_db)) -> BulkDeleteResponse:
    """Delete several tracks; ids that do not exist are skipped."""
    deleted = await TrackService(db).bulk_delete_tracks(payload.track_ids)
    return BulkDeleteResponse(deleted_count=deleted)


@router.get("/{track_id}", response_model=TrackResponse)
async def get_track(track_id: int, db: AsyncSession = Depends(get_db)) -> TrackResponse:
    """Get a track with its tags."""
    return _track_response(await TrackService(db).get_track(track_id))


@router.post("", response_model=TrackResponse, status_code=status.HTTP_201_CREATED)
async def create_track(payload: TrackCreateRequest, db: AsyncSession = Depends(get_db)) -> TrackResponse:
    """Register a track for an uploaded file."""
    track = await TrackService(db).create_track(**payload.model_dump())
    return _track_response(track)


@router.patch("/{track_id}", response_model=TrackResponse)
async def update_track(track_id: int, payload: TrackUpdateRequest, db: AsyncSession = Depends(get_db)) -> TrackResponse:
    """Rename a track or change whether it is active."""
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(message="Empty update payload")

    track = await TrackService(db).update_track(track_id, **changes)
    return _track_response(track)


@router.put("/{track_id}/tags", response_model=TrackResponse)
async def set_track_tags(track_id: int, payload: TrackTagsRequest, db: AsyncSession = Depends(get_db)) -> TrackResponse:
    """Replace a track's tags."""
    track = await TrackService(db).set_track_tags(track_id, payload.tag_ids)
    return _track_response(track)


@router.delete("/{track_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_track(track_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    """Delete a track record; the audio file itself is left in storage."""
    await TrackService(db).delete_track(track_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
