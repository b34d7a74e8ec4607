from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.models import Tag
from conduit.schemas import TagsEnvelope


async def list_tags(db: AsyncSession) -> TagsEnvelope:
    """Return every known tag name in ascending order."""
    result = await db.execute(select(Tag.name).order_by(Tag.name))
    return TagsEnvelope(tags=list(result.scalars().all()))
