"""
Follow-graph handlers.

Both operations are idempotent: following twice leaves one edge, and
unfollowing someone you do not follow is a no-op.  Either way the target's
profile is returned so the caller sees the resulting state.
"""
import logging

from sqlalchemy import delete as sql_delete
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.models import FollowedPerson
from conduit.schemas import ProfileEnvelope
from conduit.services.profile_service import is_following, read_profile
from conduit.store import insert_if_absent, require_person

logger = logging.getLogger(__name__)


async def add(db: AsyncSession, username: str, observer: str) -> ProfileEnvelope:
    """Make *observer* follow *username*."""
    target = await require_person(db, username)
    follower = await require_person(db, observer)

    if not await is_following(db, follower.id, target.id):
        created = await insert_if_absent(
            db, FollowedPerson, observer_id=follower.id, target_id=target.id
        )
        if created:
            logger.info("%s now follows %s", follower.username, target.username)

    return await read_profile(db, target.username, follower.username)


async def delete(db: AsyncSession, username: str, observer: str) -> ProfileEnvelope:
    """Remove the *observer* -> *username* edge if there is one."""
    target = await require_person(db, username)
    follower = await require_person(db, observer)

    result = await db.execute(
        sql_delete(FollowedPerson).where(
            FollowedPerson.observer_id == follower.id,
            FollowedPerson.target_id == target.id,
        )
    )
    if result.rowcount:
        logger.info("%s unfollowed %s", follower.username, target.username)

    return await read_profile(db, target.username, follower.username)
