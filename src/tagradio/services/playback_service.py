"""Station playback: look up a station, resolve its playlist, report the outcome."""
import random
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError, ValidationError
from ..core.logging import get_logger
from ..metrics import station_fetches_total, station_resolved_songs
from ..models import RadioStation, Track
from ..slugs import is_valid_slug
from .playlist_resolver import RuleSet, resolve
from .station_service import RadioStationService
from .track_service import TrackService

logger = get_logger(__name__)

NO_SONGS_MESSAGE = "No songs match this station"


@dataclass
class StationPlaylist:
    """A resolved station ready to be serialized for the player."""

    station: RadioStation
    songs: List[Track] = field(default_factory=list)

    @property
    def total_songs(self) -> int:
        return len(self.songs)

    @property
    def message(self) -> Optional[str]:
        return None if self.songs else NO_SONGS_MESSAGE


class StationPlaybackService:
    """Orchestrates a station fetch: lookup, rule load, track load, resolve."""

    def __init__(self, db: AsyncSession, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng
        self.stations = RadioStationService(db)
        self.tracks = TrackService(db)

    async def fetch(self, slug: str) -> StationPlaylist:
        """Resolve the current playlist of the active station ``slug``."""
        if not is_valid_slug(slug):
            station_fetches_total.labels(outcome="invalid").inc()
            raise ValidationError(message="Invalid station slug format", details={"slug": slug})

        try:
            station = await self.stations.get_station_by_slug(slug)
        except NotFoundError:
            station_fetches_total.labels(outcome="not_found").inc()
            raise

        rule_set = RuleSet.from_rules(await self.stations.get_rules(station.id))
        active_tracks = await self.tracks.get_active_tracks_with_tags()
        songs = resolve(active_tracks, rule_set, rng=self.rng)

        station_fetches_total.labels(outcome="ok" if songs else "empty").inc()
        station_resolved_songs.observe(len(songs))
        logger.info(
            "station_playlist_resolved",
            station_id=station.id,
            slug=slug,
            require=len(rule_set.require),
            include=len(rule_set.include),
            exclude=len(rule_set.exclude),
            candidates=len(active_tracks),
            song_count=len(songs),
        )
        return StationPlaylist(station=station, songs=songs)
