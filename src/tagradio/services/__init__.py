"""Services for radio station service."""
from .playback_service import StationPlaybackService, StationPlaylist
from .playlist_resolver import RuleSet, resolve
from .station_service import RadioStationService, parse_tag_rules
from .tag_service import TagService
from .track_service import TrackService

__all__ = [
    "RadioStationService",
    "RuleSet",
    "StationPlaybackService",
    "StationPlaylist",
    "TagService",
    "TrackService",
    "parse_tag_rules",
    "resolve",
]
