# realtime_api/api/dependencies.py
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, WebSocket, status
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from realtime_api.config import AppConfig
from realtime_api.gateways.chat_gateway import ChatGateway
from realtime_api.gateways.delivery_gateway import DeliveryGateway
from realtime_api.gateways.message_gateway import MessageGateway
from realtime_api.gateways.notification_gateway import NotificationGateway
from realtime_api.gateways.user_gateway import UserGateway
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.socket_server import SocketServer
from realtime_api.infrastructure.uow import UnitOfWork
from realtime_api.interactors.chat_interactor import ChatInteractor
from realtime_api.interactors.delivery_interactor import DeliveryInteractor
from realtime_api.interactors.message_interactor import MessageInteractor
from realtime_api.interactors.notification_interactor import NotificationInteractor
from realtime_api.interactors.user_interactor import UserInteractor

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
service_key_header = APIKeyHeader(name="X-Service-Key", auto_error=False)


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_security_service(request: Request) -> SecurityService:
    return request.app.state.security_service


def get_realtime_dispatcher(request: Request) -> RealtimeDispatcher:
    return request.app.state.realtime_dispatcher


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_uow() -> UnitOfWork:
    return UnitOfWork()


async def get_user_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return UserGateway(session, uow)


async def get_chat_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return ChatGateway(session, uow)


async def get_message_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return MessageGateway(session, uow)


async def get_delivery_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return DeliveryGateway(session, uow)


async def get_notification_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return NotificationGateway(session, uow)


async def get_user_interactor(
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
):
    return UserInteractor(security_service, user_gateway)


async def get_delivery_interactor(
    uow: UnitOfWork = Depends(get_uow),
    delivery_gateway: DeliveryGateway = Depends(get_delivery_gateway),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    chat_gateway: ChatGateway = Depends(get_chat_gateway),
    dispatcher: RealtimeDispatcher = Depends(get_realtime_dispatcher),
):
    return DeliveryInteractor(
        uow, delivery_gateway, message_gateway, chat_gateway, dispatcher
    )


async def get_chat_interactor(
    uow: UnitOfWork = Depends(get_uow),
    chat_gateway: ChatGateway = Depends(get_chat_gateway),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    delivery_gateway: DeliveryGateway = Depends(get_delivery_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    dispatcher: RealtimeDispatcher = Depends(get_realtime_dispatcher),
):
    return ChatInteractor(
        uow, chat_gateway, message_gateway, delivery_gateway, user_gateway, dispatcher
    )


async def get_message_interactor(
    uow: UnitOfWork = Depends(get_uow),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    chat_gateway: ChatGateway = Depends(get_chat_gateway),
    delivery_gateway: DeliveryGateway = Depends(get_delivery_gateway),
    dispatcher: RealtimeDispatcher = Depends(get_realtime_dispatcher),
):
    return MessageInteractor(
        uow, message_gateway, chat_gateway, delivery_gateway, dispatcher
    )


async def get_notification_interactor(
    uow: UnitOfWork = Depends(get_uow),
    notification_gateway: NotificationGateway = Depends(get_notification_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    dispatcher: RealtimeDispatcher = Depends(get_realtime_dispatcher),
):
    return NotificationInteractor(uow, notification_gateway, user_gateway, dispatcher)


def get_socket_server(websocket: WebSocket) -> SocketServer:
    return websocket.app.state.socket_server


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
) -> schemas.User:
    user_id = security_service.decode_access_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_model = await user_gateway.get_user(user_id)
    if user_model is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user_model._model.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return schemas.User.model_validate(user_model._model)


async def require_service(
    service_key: str | None = Depends(service_key_header),
    security_service: SecurityService = Depends(get_security_service),
) -> None:
    """Admit calls from other backend services only."""
    if not security_service.verify_service_key(service_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service credentials required",
        )
