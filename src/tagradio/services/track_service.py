"""Track service for managing music tracks and their tags."""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import NotFoundError, ValidationError
from ..core.logging import get_logger
from ..metrics import tracks_active_total
from ..models import Tag, Track, track_tags
from .transactions import atomic

logger = get_logger(__name__)

TRACK_STATUSES = ("active", "inactive", "all")


class TrackService:
    """Service for managing music tracks."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_active_tracks_with_tags(self) -> List[Track]:
        """Get every active track with its tag memberships loaded."""
        query = select(Track).where(Track.active.is_(True)).options(selectinload(Track.tags)).order_by(Track.id)

        result = await self.db.execute(query)
        tracks = list(result.scalars().all())

        logger.info("retrieved_active_tracks", count=len(tracks))
        return tracks

    async def get_track(self, track_id: int) -> Track:
        """Get a track by ID with its tags."""
        query = select(Track).where(Track.id == track_id).options(selectinload(Track.tags))

        result = await self.db.execute(query)
        track = result.scalar_one_or_none()

        if track is None:
            logger.warning("track_not_found", track_id=track_id)
            raise NotFoundError(message=f"Track {track_id} not found", details={"track_id": track_id})

        logger.info("retrieved_track", track_id=track_id, track_title=track.title)
        return track

    async def list_tracks(
        self,
        search: Optional[str] = None,
        tag_slug: Optional[str] = None,
        status: str = "all",
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Track], int]:
        """
        List tracks for the admin library view.

        Args:
            search: Case-insensitive substring of the title
            tag_slug: Only tracks carrying this tag
            status: ``active``, ``inactive`` or ``all``
            limit: Page size
            offset: Page start

        Returns:
            Tuple of (tracks on this page, total matching tracks)
        """
        if status not in TRACK_STATUSES:
            raise ValidationError(message=f"Unknown track status '{status}'", details={"allowed": list(TRACK_STATUSES)})

        conditions = []
        if search and search.strip():
            conditions.append(Track.title.ilike(f"%{search.strip()}%"))
        if tag_slug:
            tagged = (
                select(track_tags.c.track_id)
                .join(Tag, Tag.id == track_tags.c.tag_id)
                .where(Tag.slug == tag_slug)
            )
            conditions.append(Track.id.in_(tagged))
        if status == "active":
            conditions.append(Track.active.is_(True))
        elif status == "inactive":
            conditions.append(Track.active.is_(False))

        query = (
            select(Track)
            .where(*conditions)
            .options(selectinload(Track.tags))
            .order_by(Track.created_at.desc(), Track.id.desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = select(func.count()).select_from(Track).where(*conditions)

        tracks = list((await self.db.execute(query)).scalars().all())
        total = (await self.db.execute(count_query)).scalar_one()

        logger.info("listed_tracks", count=len(tracks), total=total, status=status, tag=tag_slug)
        return tracks, total

    async def create_track(
        self,
        title: str,
        filename: str,
        duration_seconds: Optional[int] = None,
        file_size_bytes: Optional[int] = None,
        active: bool = True,
        tag_ids: Iterable[int] = (),
    ) -> Track:
        """Register an already stored audio file as a track."""
        title = (title or "").strip()
        if not title or not filename:
            raise ValidationError(message="Title and filename are required")

        async with atomic(
            self.db, "track_create", conflict_message=f"A track for '{filename}' already exists", filename=filename
        ):
            tags = await self._load_tags(tag_ids)
            track = Track(
                title=title,
                filename=filename,
                duration_seconds=duration_seconds,
                file_size_bytes=file_size_bytes,
                active=active,
                play_count=0,
                tags=tags,
            )
            self.db.add(track)
            await self.db.flush()

        logger.info("track_created", track_id=track.id, title=title, tag_count=len(tags))
        await self._refresh_gauge()
        return track

    async def update_track(self, track_id: int, title: Optional[str] = None, active: Optional[bool] = None) -> Track:
        """Rename a track or toggle whether stations may play it."""
        async with atomic(self.db, "track_update", track_id=track_id):
            track = await self.get_track(track_id)
            if title is not None:
                if not title.strip():
                    raise ValidationError(message="Title cannot be empty")
                track.title = title.strip()
            if active is not None:
                track.active = active

        logger.info("track_updated", track_id=track_id, active=track.active)
        await self._refresh_gauge()
        return track

    async def set_track_tags(self, track_id: int, tag_ids: Iterable[int]) -> Track:
        """Replace the full tag membership of a track."""
        async with atomic(self.db, "track_tags_replace", track_id=track_id):
            track = await self.get_track(track_id)
            track.tags = await self._load_tags(tag_ids)

        logger.info("track_tags_replaced", track_id=track_id, tag_ids=sorted(track.tag_ids))
        return track

    async def record_play(self, track_id: int) -> None:
        """Increment a track's play count."""
        async with atomic(self.db, "track_play_record", track_id=track_id):
            result = await self.db.execute(
                update(Track).where(Track.id == track_id).values(play_count=Track.play_count + 1)
            )
            if result.rowcount == 0:
                raise NotFoundError(message=f"Track {track_id} not found", details={"track_id": track_id})

        logger.info("track_play_recorded", track_id=track_id)

    async def delete_track(self, track_id: int) -> None:
        """
        Delete a track record and its tag memberships.

        The stored audio file is not touched.
        """
        async with atomic(self.db, "track_delete", track_id=track_id):
            track = await self.get_track(track_id)
            await self.db.delete(track)

        logger.info("track_deleted", track_id=track_id, filename=track.filename)
        await self._refresh_gauge()

    async def bulk_delete_tracks(self, track_ids: Iterable[int]) -> int:
        """Delete several tracks at once; unknown ids are skipped. Returns how many were deleted."""
        wanted = set(track_ids)
        if not wanted:
            raise ValidationError(message="No tracks specified")

        async with atomic(self.db, "track_bulk_delete", count=len(wanted)):
            result = await self.db.execute(
                select(Track).where(Track.id.in_(wanted)).options(selectinload(Track.tags))
            )
            tracks = list(result.scalars().all())
            for track in tracks:
                await self.db.delete(track)

        logger.info("tracks_deleted", requested=len(wanted), deleted=len(tracks))
        await self._refresh_gauge()
        return len(tracks)

    async def stats(self) -> Dict[str, Any]:
        """Library totals: track counts, plays, and duration and file size aggregates."""
        counts = (
            await self.db.execute(
                select(
                    func.count(Track.id),
                    func.count(Track.id).filter(Track.active.is_(True)),
                    func.coalesce(func.sum(Track.play_count), 0),
                )
            )
        ).one()
        duration = (
            await self.db.execute(
                select(
                    func.avg(Track.duration_seconds),
                    func.min(Track.duration_seconds),
                    func.max(Track.duration_seconds),
                    func.sum(Track.duration_seconds),
                ).where(Track.duration_seconds.is_not(None))
            )
        ).one()
        size = (
            await self.db.execute(
                select(
                    func.avg(Track.file_size_bytes),
                    func.min(Track.file_size_bytes),
                    func.max(Track.file_size_bytes),
                    func.sum(Track.file_size_bytes),
                ).where(Track.file_size_bytes.is_not(None))
            )
        ).one()

        stats = {
            "total_tracks": counts[0],
            "active_tracks": counts[1],
            "total_plays": int(counts[2]),
            "duration_seconds": _aggregate(duration),
            "file_size_bytes": _aggregate(size),
        }
        logger.info("computed_track_stats", total_tracks=stats["total_tracks"])
        return stats

    async def _load_tags(self, tag_ids: Iterable[int]) -> List[Tag]:
        wanted = set(tag_ids)
        if not wanted:
            return []
        result = await self.db.execute(select(Tag).where(Tag.id.in_(wanted)))
        tags = list(result.scalars().all())
        missing = wanted - {tag.id for tag in tags}
        if missing:
            raise ValidationError(message="Unknown tag ids", details={"tag_ids": sorted(missing)})
        return tags

    async def _refresh_gauge(self) -> None:
        result = await self.db.execute(select(func.count()).select_from(Track).where(Track.active.is_(True)))
        tracks_active_total.set(result.scalar_one())


def _aggregate(row) -> Dict[str, Optional[float]]:
    avg, low, high, total = row
    return {
        "avg": float(avg) if avg is not None else None,
        "min": low,
        "max": high,
        "total": total,
    }
