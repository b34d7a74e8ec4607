"""
Person service: registration and self-service profile edits.

Credentials are handled by the authentication gateway in front of the
API; a Person here is only the public identity used for authorship,
following and favoriting.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import ValidationError
from conduit.models import Person
from conduit.schemas import PersonCreate, PersonEnvelope, PersonResponse, PersonUpdate
from conduit.store import find_person, require_person

logger = logging.getLogger(__name__)


def _envelope(person: Person) -> PersonEnvelope:
    return PersonEnvelope(user=PersonResponse.model_validate(person))


async def register(db: AsyncSession, data: PersonCreate) -> PersonEnvelope:
    """
    Create a Person.  A taken username is a validation failure on the
    ``username`` field, whether caught by the pre-check or by the unique
    constraint when two registrations race.
    """
    if await find_person(db, data.username) is not None:
        raise ValidationError("has already been taken", field="username")

    person = Person(username=data.username, bio=data.bio, image=data.image)
    try:
        async with db.begin_nested():
            db.add(person)
            await db.flush()
    except IntegrityError as exc:
        raise ValidationError("has already been taken", field="username") from exc

    logger.info("Registered %s", person.username)
    return _envelope(person)


async def current(db: AsyncSession, username: str) -> PersonEnvelope:
    return _envelope(await require_person(db, username))


async def update(db: AsyncSession, username: str, data: PersonUpdate) -> PersonEnvelope:
    person = await require_person(db, username)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(person, field, value)
    await db.flush()
    return _envelope(person)
