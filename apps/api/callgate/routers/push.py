"""Push device registration and delivery endpoints."""
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.security import AuthenticatedUser, ensure_admin, ensure_self_or_admin, require_user
from ..db.session import get_session
from ..repositories import devices as devices_repo
from ..schemas import push as schemas
from ..services import push as push_service

router = APIRouter()


@router.put("/devices/{user_id}", response_model=schemas.DeviceResponse)
async def register_device(
    user_id: str,
    payload: schemas.DeviceRegistration,
    user: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.DeviceResponse:
    """Store the push token the mobile client reported for ``user_id``."""

    ensure_self_or_admin(user, user_id)
    async with session.begin():
        await devices_repo.upsert_push_token(session, user_id, payload.expo_push_token)
    return schemas.DeviceResponse(user_id=user_id, registered=True)


@router.delete("/devices/{user_id}", response_model=schemas.DeviceResponse)
async def unregister_device(
    user_id: str,
    user: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.DeviceResponse:
    ensure_self_or_admin(user, user_id)
    async with session.begin():
        await devices_repo.clear_push_token(session, user_id)
    return schemas.DeviceResponse(user_id=user_id, registered=False)


@router.post("/send/{user_id}", status_code=status.HTTP_202_ACCEPTED, response_model=schemas.PushAccepted)
async def send_push(
    user_id: str,
    payload: schemas.PushRequest,
    background_tasks: BackgroundTasks,
    user: AuthenticatedUser = Depends(require_user),
) -> schemas.PushAccepted:
    """Queue a fire-and-forget notification for ``user_id`` (admins only)."""

    ensure_admin(user)
    notification = push_service.PushNotification(title=payload.title, body=payload.body, data=payload.data)
    background_tasks.add_task(push_service.send_in_background, user_id, notification)
    return schemas.PushAccepted()
