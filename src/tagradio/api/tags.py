"""Tag API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.errors import ValidationError
from ..core.logging import get_logger
from ..services.tag_service import TagService
from .deps import require_admin

logger = get_logger(__name__)

router = APIRouter(prefix="/radio/tags", tags=["tags"])


class TagResponse(BaseModel):
    """Tag response model."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str = Field(..., description="Display name")
    category: str = Field(..., description="Grouping bucket, e.g. genre or mood")
    slug: str = Field(..., description="URL-safe form of the name")
    display_order: int = 0
    usage_count: Optional[int] = Field(None, description="Tracks carrying the tag (with_usage=true)")


class CategoryResponse(BaseModel):
    category: str
    tag_count: int
    total_usage: int


class TagUsage(BaseModel):
    id: int
    name: str
    usage_count: int


class TagStatsResponse(BaseModel):
    total_tags: int
    categories: int
    most_used: List[TagUsage]
    unused_tags: int


class TagCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=50)
    display_order: int = 0


class TagUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    display_order: Optional[int] = None


class TagOrder(BaseModel):
    id: int
    order: int


class TagReorderRequest(BaseModel):
    updates: List[TagOrder]


@router.get("", response_model=List[TagResponse], response_model_exclude_none=True)
async def list_tags(
    category: Optional[str] = Query(None, description="Only tags in this category"),
    with_usage: bool = Query(False, description="Include how many tracks carry each tag"),
    db: AsyncSession = Depends(get_db),
) -> List[TagResponse]:
    """List tags ordered by category, display order and name."""
    service = TagService(db)
    if with_usage:
        rows = await service.list_tags_with_usage(category)
        return [
            TagResponse.model_validate(tag).model_copy(update={"usage_count": usage})
            for tag, usage in rows
        ]
    return [TagResponse.model_validate(tag) for tag in await service.list_tags(category)]


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)) -> List[CategoryResponse]:
    """List tag categories with their tag counts and usage."""
    categories = await TagService(db).list_categories()
    return [CategoryResponse(**entry) for entry in categories]


@router.get("/search", response_model=List[TagResponse], response_model_exclude_none=True)
async def search_tags(
    query: str = Query(..., min_length=1, max_length=100, description="Name or slug substring"),
    db: AsyncSession = Depends(get_db),
) -> List[TagResponse]:
    """Search tags by name or slug."""
    return [TagResponse.model_validate(tag) for tag in await TagService(db).search_tags(query)]


@router.get("/stats", response_model=TagStatsResponse)
async def get_tag_stats(db: AsyncSession = Depends(get_db)) -> TagStatsResponse:
    """Tag totals and the most used tags."""
    return TagStatsResponse(**await TagService(db).stats())


@router.post(
    "",
    response_model=TagResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_tag(payload: TagCreateRequest, db: AsyncSession = Depends(get_db)) -> TagResponse:
    """Create a tag."""
    tag = await TagService(db).create_tag(payload.name, payload.category, payload.display_order)
    return TagResponse.model_validate(tag)


@router.patch(
    "/{tag_id}",
    response_model=TagResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def update_tag(tag_id: int, payload: TagUpdateRequest, db: AsyncSession = Depends(get_db)) -> TagResponse:
    """Update a tag; renaming regenerates its slug."""
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(message="Empty update payload")

    tag = await TagService(db).update_tag(tag_id, **changes)
    return TagResponse.model_validate(tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    """Delete a tag no track carries."""
    await TagService(db).delete_tag(tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reorder", dependencies=[Depends(require_admin)])
async def reorder_tags(payload: TagReorderRequest, db: AsyncSession = Depends(get_db)) -> dict:
    """Set display order for several tags at once."""
    count = await TagService(db).reorder_tags((item.id, item.order) for item in payload.updates)
    return {"updated_count": count}
