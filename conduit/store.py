"""
Relational store helpers shared by every handler.

Lookups that must succeed raise ``NotFoundError``; lookups that may miss
return None.  ``insert_if_absent`` is the single place where a unique
constraint violation is turned into an ordinary outcome, which is what
keeps follow, favorite and tag creation idempotent under concurrent
requests.
"""
import logging

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from conduit.exceptions import NotFoundError
from conduit.models import Article, Person

logger = logging.getLogger(__name__)


async def find_person(db: AsyncSession, username: str | None) -> Person | None:
    if not username:
        return None
    result = await db.execute(select(Person).where(Person.username == username))
    return result.scalar_one_or_none()


async def require_person(db: AsyncSession, username: str | None) -> Person:
    person = await find_person(db, username)
    if person is None:
        raise NotFoundError("Profile", username)
    return person


def article_load_options() -> tuple:
    """Eager-load options needed to render an article envelope."""
    return (joinedload(Article.author), selectinload(Article.tags))


async def require_article(db: AsyncSession, slug: str, *options) -> Article:
    """
    Return the Article identified by *slug*, raising NotFoundError if absent.

    *options* are passed to ``Select.options`` so callers choose which
    relations to eager-load.
    """
    q = select(Article).where(Article.slug == slug)
    if options:
        q = q.options(*options)
    result = await db.execute(q)
    article = result.unique().scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article", slug)
    return article


async def insert_if_absent(db: AsyncSession, model, **values) -> bool:
    """
    INSERT one row of *model* inside a SAVEPOINT.

    Returns True when the row was written and False when a unique
    constraint reported that it already exists.  Only the savepoint is
    rolled back on conflict, so the caller's transaction stays usable.
    """
    try:
        async with db.begin_nested():
            await db.execute(insert(model).values(**values))
    except IntegrityError:
        logger.debug("%s row already present: %r", model.__tablename__, values)
        return False
    return True
