"""Models for radio station service."""
from .tag import Tag
from .track import Track, track_tags
from .radio_station import RadioStation
from .station_rule import RuleKind, StationRule

__all__ = ["Tag", "Track", "track_tags", "RadioStation", "RuleKind", "StationRule"]
