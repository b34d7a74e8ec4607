"""
Comment service: comments scoped to one article.

Every operation resolves the parent article first: a missing article is
always a NotFoundError, never an empty result.
"""
import logging

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload
from sqlalchemy.orm.attributes import set_committed_value

from conduit.exceptions import ForbiddenError, NotFoundError
from conduit.models import Comment, Person
from conduit.schemas import CommentCreate, CommentEnvelope, CommentResponse, CommentsEnvelope
from conduit.services.profile_service import followed_ids, to_profile
from conduit.store import find_person, require_article, require_person

logger = logging.getLogger(__name__)


def _to_response(comment: Comment, following: bool) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        body=comment.body,
        author=to_profile(comment.author, following),
    )


async def list_comments(
    db: AsyncSession, slug: str, viewer: str | None = None
) -> CommentsEnvelope:
    """Return the article's comments, oldest first."""
    article = await require_article(db, slug)

    q = (
        select(Comment)
        .where(Comment.article_id == article.id)
        .options(joinedload(Comment.author))
        .order_by(Comment.created_at, Comment.id)
    )
    comments = list((await db.execute(q)).unique().scalars().all())

    viewer_person = await find_person(db, viewer)
    following = await followed_ids(db, viewer_person, {c.author_id for c in comments})
    return CommentsEnvelope(
        comments=[_to_response(c, c.author_id in following) for c in comments]
    )


async def add_comment(
    db: AsyncSession, slug: str, data: CommentCreate, author: str
) -> CommentEnvelope:
    article = await require_article(db, slug)
    person = await require_person(db, author)

    comment = Comment(body=data.body, article_id=article.id, author_id=person.id)
    db.add(comment)
    await db.flush()
    set_committed_value(comment, "author", person)

    logger.info("Comment %d added to %r by %s", comment.id, slug, person.username)
    following = await followed_ids(db, person, {person.id})
    return CommentEnvelope(comment=_to_response(comment, person.id in following))


async def delete_comment(db: AsyncSession, slug: str, comment_id: int, author: str) -> None:
    """
    Delete comment *comment_id* from the article at *slug*.

    A comment that exists but belongs to another article is reported as
    not found.
    """
    article = await require_article(db, slug)
    person: Person = await require_person(db, author)

    result = await db.execute(
        select(Comment).where(Comment.id == comment_id, Comment.article_id == article.id)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment", comment_id)
    if comment.author_id != person.id:
        raise ForbiddenError("Comment", comment_id)

    await db.execute(sql_delete(Comment).where(Comment.id == comment.id))
    logger.info("Comment %d deleted from %r by %s", comment_id, slug, person.username)
