"""
Tag-rule playlist resolution.

A station's rules are partitioned into three tag-id sets:

* require - a track must carry every one of these tags
* include - a track must carry at least one of these tags
* exclude - a track carrying any of these tags is dropped

The conditions are AND-ed together, so an excluded tag always wins over a
required or included one. A station without rules plays every active track.

The resolver is pure: it never touches storage, never reasons about track
activation (callers pass active tracks only) and cannot fail. Tag ids that
no longer exist simply never match.
"""
import random
from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from ..models import RuleKind, StationRule

T = TypeVar("T")

RuleLike = Union[StationRule, Tuple[int, RuleKind]]


@dataclass(frozen=True)
class RuleSet:
    """A station's tag policy split by rule kind."""

    require: FrozenSet[int] = frozenset()
    include: FrozenSet[int] = frozenset()
    exclude: FrozenSet[int] = frozenset()

    @classmethod
    def from_rules(cls, rules: Iterable[RuleLike]) -> "RuleSet":
        """Build from StationRule rows or ``(tag_id, kind)`` pairs."""
        buckets = {kind: set() for kind in RuleKind}
        for rule in rules:
            if isinstance(rule, StationRule):
                tag_id, kind = rule.tag_id, rule.kind
            else:
                tag_id, kind = rule
            buckets[RuleKind(kind)].add(tag_id)
        return cls(
            require=frozenset(buckets[RuleKind.REQUIRE]),
            include=frozenset(buckets[RuleKind.INCLUDE]),
            exclude=frozenset(buckets[RuleKind.EXCLUDE]),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.require or self.include or self.exclude)

    def matches(self, tag_ids: AbstractSet[int]) -> bool:
        """Whether a track carrying ``tag_ids`` qualifies for the station."""
        if self.require and not self.require <= tag_ids:
            return False
        if self.include and self.include.isdisjoint(tag_ids):
            return False
        if self.exclude and not self.exclude.isdisjoint(tag_ids):
            return False
        return True


def resolve(
    tracks: Sequence[T],
    rules: Union[RuleSet, Iterable[RuleLike]],
    rng: Optional[random.Random] = None,
) -> List[T]:
    """
    Compute a station playlist.

    Args:
        tracks: Active tracks; each must expose a ``tag_ids`` set
        rules: A RuleSet, StationRule rows or ``(tag_id, kind)`` pairs
        rng: Random source for the shuffle (module ``random`` by default)

    Returns:
        The qualifying tracks in a fresh random order. Reshuffling on every
        call is intended: a station plays like radio, not like a fixed list.
    """
    rule_set = rules if isinstance(rules, RuleSet) else RuleSet.from_rules(rules)

    if rule_set.is_empty:
        playlist = list(tracks)
    else:
        playlist = [track for track in tracks if rule_set.matches(frozenset(track.tag_ids))]

    (rng or random).shuffle(playlist)
    return playlist
