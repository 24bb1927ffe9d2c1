# realtime_api/interactors/user_interactor.py

from realtime_api.gateways.interfaces import IUserGateway
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.uow import UoWModel


class UserInteractor:
    def __init__(self, security_service: SecurityService, user_gateway: IUserGateway):
        self.security_service = security_service
        self.user_gateway = user_gateway

    async def get_user(self, user_id: int) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_user(user_id)
        return schemas.User.model_validate(user._model) if user else None

    async def create_user(self, user: schemas.UserCreate) -> schemas.User | None:
        new_user: UoWModel | None = await self.user_gateway.create_user(
            user, self.security_service
        )
        return schemas.User.model_validate(new_user._model) if new_user else None

    async def verify_user_password(
            self, login: str, password: str
    ) -> schemas.User | None:
        # the login form accepts either a username or an email address
        user: UoWModel | None = await self.user_gateway.get_by_username(login)
        if not user:
            user = await self.user_gateway.get_by_email(login)
        if not user or not user.is_active:
            return None
        if await self.user_gateway.verify_password(
                user, password, self.security_service
        ):
            return schemas.User.model_validate(user._model)
        return None
