"""Tag service for managing tags and their categories."""
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..metrics import tags_total
from ..models import Tag, track_tags
from ..slugs import slugify
from .transactions import atomic

logger = get_logger(__name__)


class TagService:
    """Service for managing tags."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_tags(self, category: Optional[str] = None) -> List[Tag]:
        """List tags ordered for display, optionally within one category."""
        query = select(Tag).order_by(Tag.category, Tag.display_order, Tag.name)
        if category:
            query = query.where(Tag.category == category)

        result = await self.db.execute(query)
        tags = list(result.scalars().all())

        logger.info("retrieved_tags", count=len(tags), category=category)
        return tags

    async def list_tags_with_usage(self, category: Optional[str] = None) -> List[Tuple[Tag, int]]:
        """List tags together with the number of tracks carrying each."""
        usage = func.count(track_tags.c.track_id)
        query = (
            select(Tag, usage)
            .outerjoin(track_tags, track_tags.c.tag_id == Tag.id)
            .group_by(Tag.id)
            .order_by(Tag.category, Tag.display_order, Tag.name)
        )
        if category:
            query = query.where(Tag.category == category)

        result = await self.db.execute(query)
        rows = [(tag, count) for tag, count in result.all()]

        logger.info("retrieved_tags_with_usage", count=len(rows), category=category)
        return rows

    async def list_categories(self) -> List[Dict[str, object]]:
        """Summarize categories: how many tags each holds and how often they are used."""
        rows = await self.list_tags_with_usage()
        categories: Dict[str, Dict[str, object]] = {}
        for tag, usage in rows:
            entry = categories.setdefault(tag.category, {"category": tag.category, "tag_count": 0, "total_usage": 0})
            entry["tag_count"] += 1
            entry["total_usage"] += usage
        return [categories[name] for name in sorted(categories)]

    async def search_tags(self, query: str, limit: int = 20) -> List[Tag]:
        """Find tags whose name or slug contains ``query``."""
        query = (query or "").strip()
        if not query:
            raise ValidationError(message="Search query required")

        pattern = f"%{query}%"
        result = await self.db.execute(
            select(Tag).where(Tag.name.ilike(pattern) | Tag.slug.ilike(pattern)).order_by(Tag.name).limit(limit)
        )
        tags = list(result.scalars().all())

        logger.info("searched_tags", query=query, count=len(tags))
        return tags

    async def stats(self, top: int = 5) -> Dict[str, object]:
        """Tag totals, the most used tags and how many no track carries."""
        rows = await self.list_tags_with_usage()
        ranked = sorted(rows, key=lambda row: (-row[1], row[0].name))
        return {
            "total_tags": len(rows),
            "categories": len({tag.category for tag, _ in rows}),
            "most_used": [{"id": tag.id, "name": tag.name, "usage_count": usage} for tag, usage in ranked[:top]],
            "unused_tags": sum(1 for _, usage in rows if usage == 0),
        }

    async def get_tag(self, tag_id: int) -> Tag:
        """Get a tag by ID."""
        tag = await self.db.get(Tag, tag_id)
        if tag is None:
            logger.warning("tag_not_found", tag_id=tag_id)
            raise NotFoundError(message=f"Tag {tag_id} not found", details={"tag_id": tag_id})
        return tag

    async def existing_tag_ids(self, tag_ids: Iterable[int]) -> Set[int]:
        """Return the subset of ``tag_ids`` that exist."""
        wanted = set(tag_ids)
        if not wanted:
            return set()
        result = await self.db.execute(select(Tag.id).where(Tag.id.in_(wanted)))
        return set(result.scalars().all())

    async def count_usage(self, tag_id: int) -> int:
        """Number of tracks carrying the tag."""
        result = await self.db.execute(
            select(func.count()).select_from(track_tags).where(track_tags.c.tag_id == tag_id)
        )
        return result.scalar_one()

    async def create_tag(self, name: str, category: str, display_order: int = 0) -> Tag:
        """Create a tag; its slug is derived from the name."""
        name, category = _require_name_and_category(name, category)
        slug = _tag_slug(name)

        async with atomic(self.db, "tag_create", conflict_message=f"A tag with slug '{slug}' already exists", slug=slug):
            await self._ensure_slug_free(slug)
            tag = Tag(name=name, category=category, slug=slug, display_order=display_order)
            self.db.add(tag)
            await self.db.flush()

        logger.info("tag_created", tag_id=tag.id, name=name, category=category, slug=slug)
        await self._refresh_gauge()
        return tag

    async def update_tag(
        self,
        tag_id: int,
        name: Optional[str] = None,
        category: Optional[str] = None,
        display_order: Optional[int] = None,
    ) -> Tag:
        """Update a tag, regenerating its slug whenever the name changes."""
        async with atomic(self.db, "tag_update", conflict_message="Tag slug already in use", tag_id=tag_id):
            tag = await self.get_tag(tag_id)
            new_name, new_category = _require_name_and_category(
                tag.name if name is None else name,
                tag.category if category is None else category,
            )
            if new_name != tag.name:
                slug = _tag_slug(new_name)
                await self._ensure_slug_free(slug, exclude_id=tag.id)
                tag.name = new_name
                tag.slug = slug
            tag.category = new_category
            if display_order is not None:
                tag.display_order = display_order

        logger.info("tag_updated", tag_id=tag.id, name=tag.name, slug=tag.slug)
        return tag

    async def delete_tag(self, tag_id: int) -> None:
        """
        Delete a tag that no track carries.

        Station rules naming the tag are left in place; the resolver treats
        them as rules that never match.
        """
        async with atomic(self.db, "tag_delete", tag_id=tag_id):
            tag = await self.get_tag(tag_id)
            usage = await self.count_usage(tag_id)
            if usage > 0:
                raise ConflictError(
                    message=f"Cannot delete tag: it is used by {usage} track(s)",
                    details={"tag_id": tag_id, "usage_count": usage},
                )
            await self.db.delete(tag)

        logger.info("tag_deleted", tag_id=tag_id)
        await self._refresh_gauge()

    async def reorder_tags(self, orders: Iterable[Tuple[int, int]]) -> int:
        """Apply ``(tag_id, display_order)`` pairs in one transaction."""
        orders = list(orders)
        if not orders:
            raise ValidationError(message="No updates specified")

        async with atomic(self.db, "tag_reorder", count=len(orders)):
            missing = {tag_id for tag_id, _ in orders} - await self.existing_tag_ids(t for t, _ in orders)
            if missing:
                raise NotFoundError(message="Unknown tag ids", details={"tag_ids": sorted(missing)})
            for tag_id, order in orders:
                await self.db.execute(update(Tag).where(Tag.id == tag_id).values(display_order=order))

        logger.info("tags_reordered", count=len(orders))
        return len(orders)

    async def _ensure_slug_free(self, slug: str, exclude_id: Optional[int] = None) -> None:
        query = select(Tag.id).where(Tag.slug == slug)
        if exclude_id is not None:
            query = query.where(Tag.id != exclude_id)
        if (await self.db.execute(query)).first() is not None:
            raise ConflictError(message=f"A tag with slug '{slug}' already exists", details={"slug": slug})

    async def _refresh_gauge(self) -> None:
        result = await self.db.execute(select(func.count()).select_from(Tag))
        tags_total.set(result.scalar_one())


def _require_name_and_category(name: str, category: str) -> Tuple[str, str]:
    name = (name or "").strip()
    category = (category or "").strip()
    if not name or not category:
        raise ValidationError(message="Name and category are required")
    return name, category


def _tag_slug(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationError(message="Tag name must contain letters or digits", details={"name": name})
    return slug
