"""
Favorite handlers: idempotent person -> article edges.

Both return the article envelope with ``favoritesCount`` and ``favorited``
recomputed after the change.
"""
import logging

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.models import ArticleFavorite
from conduit.schemas import ArticleEnvelope
from conduit.services.article_service import article_envelope
from conduit.store import article_load_options, insert_if_absent, require_article, require_person

logger = logging.getLogger(__name__)


async def add(db: AsyncSession, slug: str, username: str) -> ArticleEnvelope:
    article = await require_article(db, slug, *article_load_options())
    person = await require_person(db, username)

    existing = await db.execute(
        select(ArticleFavorite).where(
            ArticleFavorite.person_id == person.id,
            ArticleFavorite.article_id == article.id,
        )
    )
    if existing.scalar_one_or_none() is None:
        if await insert_if_absent(
            db, ArticleFavorite, person_id=person.id, article_id=article.id
        ):
            logger.info("%s favorited %r", person.username, slug)

    return await article_envelope(db, article, person)


async def delete(db: AsyncSession, slug: str, username: str) -> ArticleEnvelope:
    article = await require_article(db, slug, *article_load_options())
    person = await require_person(db, username)

    result = await db.execute(
        sql_delete(ArticleFavorite).where(
            ArticleFavorite.person_id == person.id,
            ArticleFavorite.article_id == article.id,
        )
    )
    if result.rowcount:
        logger.info("%s unfavorited %r", person.username, slug)

    return await article_envelope(db, article, person)
