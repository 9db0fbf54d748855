"""Admin endpoints for stations and their tag rules."""
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.errors import ValidationError
from ..core.logging import get_logger
from ..models import RadioStation, StationRule
from ..services.station_service import RadioStationService
from .deps import require_admin

logger = get_logger(__name__)

router = APIRouter(prefix="/radio/admin/stations", tags=["admin"], dependencies=[Depends(require_admin)])

TagRules = Dict[int, Optional[str]]


class StationCreateRequest(BaseModel):
    """Station creation payload."""
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, description="Defaults to a slug derived from the name")
    description: Optional[str] = Field(None, max_length=1000)
    background_video: Optional[str] = None
    background_image: Optional[str] = None
    active: bool = True
    display_order: int = 0
    tag_rules: Optional[TagRules] = Field(None, description="Initial rules: tag id -> require|include|exclude")


class StationUpdateRequest(BaseModel):
    """Partial station update; tag_rules, when present, replaces the whole rule set."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    background_video: Optional[str] = None
    background_image: Optional[str] = None
    active: Optional[bool] = None
    display_order: Optional[int] = None
    tag_rules: Optional[TagRules] = None


class RuleUpdateRequest(BaseModel):
    """Rule replacement payload; a tag absent from tagRules gets no rule."""
    model_config = ConfigDict(populate_by_name=True)

    station_id: Optional[int] = Field(None, alias="stationId")
    tag_rules: TagRules = Field(..., alias="tagRules")


class RuleSetResponse(BaseModel):
    """A station's committed rule set."""
    model_config = ConfigDict(populate_by_name=True)

    station_id: int = Field(..., alias="stationId")
    tag_rules: Dict[int, str] = Field(..., alias="tagRules")


class StationDetailResponse(BaseModel):
    """Full station record for the admin UI."""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    background_video: Optional[str] = None
    background_image: Optional[str] = None
    active: bool
    display_order: int
    tag_rules: Dict[int, str]
    created_at: datetime
    updated_at: datetime


def _rules_map(rules: List[StationRule]) -> Dict[int, str]:
    return {rule.tag_id: rule.kind.value for rule in rules}


async def _detail(service: RadioStationService, station: RadioStation) -> StationDetailResponse:
    rules = await service.get_rules(station.id)
    return StationDetailResponse(
        id=station.id,
        name=station.name,
        slug=station.slug,
        description=station.description,
        background_video=station.background_video,
        background_image=station.background_image,
        active=station.active,
        display_order=station.display_order,
        tag_rules=_rules_map(rules),
        created_at=station.created_at,
        updated_at=station.updated_at,
    )


@router.get("", response_model=List[StationDetailResponse])
async def list_all_stations(
    active_only: bool = Query(False, description="Only list active stations"),
    db: AsyncSession = Depends(get_db),
) -> List[StationDetailResponse]:
    """List stations with their rules."""
    service = RadioStationService(db)
    stations = await service.get_all_stations(active_only=active_only)
    return [await _detail(service, station) for station in stations]


@router.post("", response_model=StationDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_station(payload: StationCreateRequest, db: AsyncSession = Depends(get_db)) -> StationDetailResponse:
    """Create a station, optionally with its initial tag rules."""
    logger.info("creating_station", name=payload.name, slug=payload.slug)

    service = RadioStationService(db)
    fields = payload.model_dump(exclude={"tag_rules"})
    station = await service.create_station(tag_rules=payload.tag_rules, **fields)
    return await _detail(service, station)


@router.get("/{station_id}", response_model=StationDetailResponse)
async def get_station(station_id: int, db: AsyncSession = Depends(get_db)) -> StationDetailResponse:
    """Get a station, active or not, with its rules."""
    service = RadioStationService(db)
    station = await service.get_station_by_id(station_id)
    return await _detail(service, station)


@router.patch("/{station_id}", response_model=StationDetailResponse)
async def update_station(
    station_id: int,
    payload: StationUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> StationDetailResponse:
    """Update station details; rules given here replace the old set atomically with the details."""
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(message="Empty update payload")

    tag_rules = changes.pop("tag_rules", None)
    logger.info("updating_station", station_id=station_id, fields=sorted(changes), rules=tag_rules is not None)

    service = RadioStationService(db)
    station = await service.update_station(station_id, tag_rules=tag_rules, **changes)
    return await _detail(service, station)


@router.get(
    "/{station_id}/rules",
    response_model=RuleSetResponse,
    response_model_by_alias=True,
)
async def get_station_rules(station_id: int, db: AsyncSession = Depends(get_db)) -> RuleSetResponse:
    """Get a station's tag rules."""
    service = RadioStationService(db)
    await service.get_station_by_id(station_id)
    rules = await service.get_rules(station_id)
    return RuleSetResponse(station_id=station_id, tag_rules=_rules_map(rules))


@router.put(
    "/{station_id}/rules",
    response_model=RuleSetResponse,
    response_model_by_alias=True,
)
async def replace_station_rules(
    station_id: int,
    payload: RuleUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> RuleSetResponse:
    """
    Replace a station's tag rules.

    The previous rules are cleared and the new ones stored in one transaction.
    An empty tagRules object leaves the station without rules, which plays
    every active track.
    """
    if payload.station_id is not None and payload.station_id != station_id:
        raise ValidationError(
            message="stationId does not match the station in the path",
            details={"path": station_id, "body": payload.station_id},
        )

    logger.info("replacing_station_rules", station_id=station_id, rule_count=len(payload.tag_rules))

    service = RadioStationService(db)
    rules = await service.replace_rules(station_id, payload.tag_rules)
    return RuleSetResponse(station_id=station_id, tag_rules=_rules_map(rules))
