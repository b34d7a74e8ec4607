from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import require_user
from conduit.schemas import PersonCreateRequest, PersonEnvelope, PersonUpdateRequest
from conduit.services import person_service

router = APIRouter(prefix="/api", tags=["users"])


@router.post("/users", status_code=201, response_model=PersonEnvelope)
async def register(data: PersonCreateRequest, db: AsyncSession = Depends(get_db)):
    return await person_service.register(db, data.user)


@router.get("/user", response_model=PersonEnvelope)
async def current_user(user: str = Depends(require_user), db: AsyncSession = Depends(get_db)):
    return await person_service.current(db, user)


@router.put("/user", response_model=PersonEnvelope)
async def update_user(
    data: PersonUpdateRequest,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await person_service.update(db, user, data.user)
