"""Radio station service for managing stations and their tag rules."""
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..metrics import station_rule_replacements_total
from ..models import RadioStation, RuleKind, StationRule
from ..slugs import is_valid_slug, slugify
from .tag_service import TagService
from .transactions import atomic

logger = get_logger(__name__)

STATION_FIELDS = ("name", "slug", "description", "background_video", "background_image", "active", "display_order")


def parse_tag_rules(tag_rules: Mapping[Any, Any]) -> Dict[int, RuleKind]:
    """
    Validate a ``{tag_id: kind}`` mapping from the wire.

    "none", "" and None mean "no rule for this tag" and are dropped. Any other
    value that is not a rule kind rejects the whole mapping.
    """
    parsed: Dict[int, RuleKind] = {}
    invalid: Dict[str, Any] = {}
    for raw_tag_id, raw_kind in tag_rules.items():
        try:
            tag_id = int(raw_tag_id)
        except (TypeError, ValueError):
            invalid[str(raw_tag_id)] = "tag id must be an integer"
            continue
        try:
            kind = RuleKind.parse(raw_kind)
        except ValueError:
            invalid[str(raw_tag_id)] = f"unknown rule kind '{raw_kind}'"
            continue
        if kind is not None:
            parsed[tag_id] = kind

    if invalid:
        raise ValidationError(
            message="Invalid tag rules",
            details={"invalid": invalid, "allowed": [kind.value for kind in RuleKind]},
        )
    return parsed


class RadioStationService:
    """Service for managing radio stations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_all_stations(self, active_only: bool = True) -> List[RadioStation]:
        """Get all radio stations, optionally filtering by active status."""
        query = select(RadioStation).order_by(RadioStation.display_order, RadioStation.name)

        if active_only:
            query = query.where(RadioStation.active.is_(True))

        result = await self.db.execute(query)
        stations = result.scalars().all()

        logger.info("retrieved_stations", count=len(stations), active_only=active_only)
        return list(stations)

    async def get_station_by_id(self, station_id: int) -> RadioStation:
        """Get a radio station by ID, active or not."""
        station = await self.db.get(RadioStation, station_id)

        if station is None:
            logger.warning("station_not_found", station_id=station_id)
            raise NotFoundError(message=f"Station {station_id} not found", details={"station_id": station_id})

        logger.info("retrieved_station", station_id=station_id, station_name=station.name)
        return station

    async def get_station_by_slug(self, slug: str) -> RadioStation:
        """Get an active radio station by slug; inactive stations are not found."""
        query = select(RadioStation).where(RadioStation.slug == slug, RadioStation.active.is_(True))

        result = await self.db.execute(query)
        station = result.scalar_one_or_none()

        if station is None:
            logger.warning("station_not_found", slug=slug)
            raise NotFoundError(message="Station not found or is inactive", details={"slug": slug})

        logger.info("retrieved_station", station_id=station.id, slug=slug)
        return station

    async def get_rules(self, station_id: int) -> List[StationRule]:
        """Get the committed rule set of a station."""
        query = select(StationRule).where(StationRule.station_id == station_id).order_by(StationRule.tag_id)

        result = await self.db.execute(query)
        rules = list(result.scalars().all())

        logger.info("retrieved_station_rules", station_id=station_id, count=len(rules))
        return rules

    async def create_station(self, tag_rules: Optional[Mapping[Any, Any]] = None, **fields) -> RadioStation:
        """
        Create a station and, optionally, its initial rule set.

        The slug defaults to ``slugify(name)``. A slug already used by another
        station is rejected rather than renamed.
        """
        data = _station_fields(fields)
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError(message="Station name is required")
        data["name"] = name
        data["slug"] = _checked_slug(data.get("slug") or slugify(name))
        rules = parse_tag_rules(tag_rules) if tag_rules is not None else {}

        async with atomic(
            self.db, "station_create", conflict_message=f"The slug '{data['slug']}' is already in use", slug=data["slug"]
        ):
            await self._ensure_slug_free(data["slug"])
            station = RadioStation(**data)
            self.db.add(station)
            await self.db.flush()
            if rules:
                await self._write_rules(station.id, rules)

        logger.info("station_created", station_id=station.id, slug=station.slug, rule_count=len(rules))
        return station

    async def update_station(
        self,
        station_id: int,
        tag_rules: Optional[Mapping[Any, Any]] = None,
        **fields,
    ) -> RadioStation:
        """Update station details and, when given, replace its rules in the same transaction."""
        data = _station_fields(fields)
        nulled = sorted(key for key in ("active", "display_order") if key in data and data[key] is None)
        if nulled:
            raise ValidationError(message="Fields cannot be null", details={"fields": nulled})
        if "name" in data:
            data["name"] = (data["name"] or "").strip()
            if not data["name"]:
                raise ValidationError(message="Station name cannot be empty")
        if "slug" in data:
            data["slug"] = _checked_slug(data["slug"])
        rules = parse_tag_rules(tag_rules) if tag_rules is not None else None

        async with atomic(self.db, "station_update", conflict_message="Station slug is already in use", station_id=station_id):
            station = await self._lock_station(station_id)
            if "slug" in data and data["slug"] != station.slug:
                await self._ensure_slug_free(data["slug"], exclude_id=station.id)
            for key, value in data.items():
                setattr(station, key, value)
            if rules is not None:
                await self._write_rules(station.id, rules)

        logger.info("station_updated", station_id=station_id, fields=sorted(data), rules_replaced=rules is not None)
        return station

    async def replace_rules(self, station_id: int, tag_rules: Mapping[Any, Any]) -> List[StationRule]:
        """
        Replace a station's whole rule set.

        Existing rules are deleted and the new ones inserted in a single
        transaction, so readers see either the old set or the new one. On any
        failure the old set is kept. Replaying the same mapping is a no-op.
        """
        try:
            rules = parse_tag_rules(tag_rules)
        except ValidationError:
            station_rule_replacements_total.labels(outcome="rejected").inc()
            raise

        try:
            async with atomic(self.db, "station_rules_replace", station_id=station_id):
                await self._lock_station(station_id)
                await self._write_rules(station_id, rules)
        except (NotFoundError, ValidationError):
            station_rule_replacements_total.labels(outcome="rejected").inc()
            raise
        except Exception:
            station_rule_replacements_total.labels(outcome="rolled_back").inc()
            raise

        station_rule_replacements_total.labels(outcome="committed").inc()
        logger.info(
            "station_rules_replaced",
            station_id=station_id,
            rule_count=len(rules),
            kinds={kind.value: sum(1 for k in rules.values() if k is kind) for kind in RuleKind},
        )
        return await self.get_rules(station_id)

    async def _write_rules(self, station_id: int, rules: Mapping[int, RuleKind]) -> None:
        # Rules may only name existing tags when written; later deletions are tolerated.
        missing = set(rules) - await TagService(self.db).existing_tag_ids(rules)
        if missing:
            raise ValidationError(message="Unknown tag ids in rules", details={"tag_ids": sorted(missing)})

        await self.db.execute(delete(StationRule).where(StationRule.station_id == station_id))
        self.db.add_all(
            StationRule(station_id=station_id, tag_id=tag_id, kind=kind) for tag_id, kind in sorted(rules.items())
        )
        await self.db.flush()

    async def _lock_station(self, station_id: int) -> RadioStation:
        # Row lock serializes concurrent writers of the same station's rules.
        station = (await self.db.execute(station_for_update(station_id))).scalar_one_or_none()
        if station is None:
            logger.warning("station_not_found", station_id=station_id)
            raise NotFoundError(message=f"Station {station_id} not found", details={"station_id": station_id})
        return station

    async def _ensure_slug_free(self, slug: str, exclude_id: Optional[int] = None) -> None:
        query = select(RadioStation.id).where(RadioStation.slug == slug)
        if exclude_id is not None:
            query = query.where(RadioStation.id != exclude_id)
        if (await self.db.execute(query)).first() is not None:
            raise ConflictError(message=f"The slug '{slug}' is already in use by another station", details={"slug": slug})


def station_for_update(station_id: int) -> Select:
    """Select one station row, locked until the transaction ends (a no-op on SQLite)."""
    return select(RadioStation).where(RadioStation.id == station_id).with_for_update()


def _station_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(STATION_FIELDS)
    if unknown:
        raise ValidationError(message="Unknown station fields", details={"fields": sorted(unknown)})
    return dict(fields)


def _checked_slug(slug: str) -> str:
    slug = (slug or "").strip()
    if not is_valid_slug(slug):
        raise ValidationError(
            message="Slug must be lowercase letters, numbers, and hyphens only",
            details={"slug": slug},
        )
    return slug
