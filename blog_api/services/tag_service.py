"""
Tag service: the shared tag vocabulary.

``reconcile`` maps requested tag names to ids inside the caller's
transaction.  Missing tags are inserted under a SAVEPOINT; if a concurrent
transaction inserted the same name first, the unique constraint rejects
ours, the savepoint is rolled back and the winner's row is read instead.
"""
import logging
from typing import Iterable

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.cache import TAGS_KEY, cache
from blog_api.config import settings
from blog_api.database import violated_constraint
from blog_api.errors import ConflictOnTagCreate
from blog_api.models import UQ_TAGS_NAME, tags

logger = logging.getLogger(__name__)


async def _find_tag_ids(db: AsyncSession, names: list[str]) -> dict[str, int]:
    q = select(tags.c.name, tags.c.id).where(tags.c.name.in_(names))
    return {name: tag_id for name, tag_id in (await db.execute(q)).all()}


async def _insert_tag(db: AsyncSession, name: str) -> int:
    try:
        async with db.begin_nested():
            result = await db.execute(insert(tags).values(name=name))
            return result.inserted_primary_key[0]
    except IntegrityError as exc:
        if violated_constraint(exc) != UQ_TAGS_NAME:
            raise
        raise ConflictOnTagCreate(name) from exc


async def reconcile(db: AsyncSession, names: Iterable[str]) -> list[int]:
    """
    Return one tag id per distinct name in *names*, in request order,
    creating tags that do not exist yet.  Repeated names keep their first
    position.
    """
    wanted = list(dict.fromkeys(names))
    if not wanted:
        return []

    ids = await _find_tag_ids(db, wanted)
    for name in wanted:
        if name in ids:
            continue
        try:
            ids[name] = await _insert_tag(db, name)
        except ConflictOnTagCreate:
            logger.info("Tag %r was created concurrently; reusing the existing row", name)
            ids.update(await _find_tag_ids(db, [name]))
    return [ids[name] for name in wanted]


async def list_tag_names(db: AsyncSession) -> list[str]:
    """All tag names sorted alphabetically, served cache-aside."""
    cached = await cache.get(TAGS_KEY)
    if cached is not None:
        return cached

    names = list((await db.scalars(select(tags.c.name).order_by(tags.c.name))).all())
    await cache.set(TAGS_KEY, names, ttl=settings.CACHE_TTL_TAGS)
    return names


async def count_tags(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(tags))).scalar_one()
