from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import get_viewer, require_user
from conduit.schemas import ProfileEnvelope
from conduit.services import follower_service, profile_service

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/{username}", response_model=ProfileEnvelope)
async def get_profile(
    username: str,
    viewer: str | None = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.read_profile(db, username, viewer)


@router.post("/{username}/follow", response_model=ProfileEnvelope)
async def follow(
    username: str,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await follower_service.add(db, username, user)


@router.delete("/{username}/follow", response_model=ProfileEnvelope)
async def unfollow(
    username: str,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await follower_service.delete(db, username, user)
