"""
Profile reader: public view of a Person relative to a viewer.

``following`` is true only when the viewer resolves to a Person and a
viewer -> target edge exists.  Anonymous and unknown viewers follow
nobody.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.models import FollowedPerson, Person
from conduit.schemas import Profile, ProfileEnvelope
from conduit.store import find_person, require_person


def to_profile(person: Person, following: bool = False) -> Profile:
    return Profile(
        username=person.username,
        bio=person.bio,
        image=person.image,
        following=following,
    )


async def is_following(db: AsyncSession, observer_id: int, target_id: int) -> bool:
    q = select(FollowedPerson).where(
        FollowedPerson.observer_id == observer_id,
        FollowedPerson.target_id == target_id,
    )
    result = await db.execute(q)
    return result.scalar_one_or_none() is not None


async def followed_ids(
    db: AsyncSession, viewer: Person | None, target_ids: set[int]
) -> set[int]:
    """Return the subset of *target_ids* that *viewer* follows, in one query."""
    if viewer is None or not target_ids:
        return set()
    q = select(FollowedPerson.target_id).where(
        FollowedPerson.observer_id == viewer.id,
        FollowedPerson.target_id.in_(target_ids),
    )
    result = await db.execute(q)
    return set(result.scalars().all())


async def read_profile(
    db: AsyncSession, username: str, viewer: str | None = None
) -> ProfileEnvelope:
    target = await require_person(db, username)
    observer = await find_person(db, viewer)
    following = observer is not None and await is_following(db, observer.id, target.id)
    return ProfileEnvelope(profile=to_profile(target, following))
