# realtime_api/api/notifications.py

from fastapi import APIRouter, Depends, HTTPException, Query, status

from realtime_api.api.dependencies import (
    get_config,
    get_current_user,
    get_notification_interactor,
    require_service,
)
from realtime_api.config import AppConfig
from realtime_api.infrastructure import schemas
from realtime_api.interactors.notification_interactor import NotificationInteractor

router = APIRouter()


@router.post(
    "/",
    response_model=schemas.Notification,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_service)],
)
async def create_notification(
    notification: schemas.NotificationCreate,
    notification_interactor: NotificationInteractor = Depends(get_notification_interactor),
):
    new_notification = await notification_interactor.create(notification)
    if not new_notification:
        raise HTTPException(status_code=404, detail="Recipient not found")
    return new_notification


@router.get("/me", response_model=schemas.NotificationPage)
async def read_my_notifications(
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, alias="pageSize", ge=1, le=100),
    notification_interactor: NotificationInteractor = Depends(get_notification_interactor),
    current_user: schemas.User = Depends(get_current_user),
    config: AppConfig = Depends(get_config),
):
    return await notification_interactor.list_for_user(
        current_user.id, page=page, page_size=page_size or config.NOTIFICATION_PAGE_SIZE
    )


@router.patch("/read", response_model=schemas.BulkReadResult)
async def mark_notifications_read(
    body: schemas.MarkBulkRead,
    notification_interactor: NotificationInteractor = Depends(get_notification_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    updated = await notification_interactor.mark_bulk_as_read(body.ids, current_user.id)
    return schemas.BulkReadResult(updated=updated)


@router.patch("/{notification_id}/read", response_model=schemas.Notification)
async def mark_notification_read(
    notification_id: int,
    notification_interactor: NotificationInteractor = Depends(get_notification_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    notification = await notification_interactor.mark_as_read(
        notification_id, current_user.id
    )
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification
