# realtime_api/gateways/user_gateway.py
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from realtime_api.gateways.interfaces import IUserGateway
from realtime_api.infrastructure import models, schemas
from realtime_api.infrastructure.data_mappers import register_mappers
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.uow import UnitOfWork, UoWModel


class UserGateway(IUserGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        register_mappers(uow, session, models.User)

    async def get_user(self, user_id: int) -> UoWModel | None:
        stmt = select(models.User).filter(models.User.id == user_id)
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_email(self, email: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.email) == func.lower(email)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_username(self, username: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.username) == func.lower(username)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_existing_ids(self, user_ids: Sequence[int]) -> set[int]:
        if not user_ids:
            return set()
        stmt = select(models.User.id).filter(models.User.id.in_(set(user_ids)))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def create_user(
        self, user: schemas.UserCreate, security_service: SecurityService
    ) -> UoWModel | None:
        if await self.get_by_email(user.email):
            return None
        if await self.get_by_username(user.username):
            return None

        hashed_password = security_service.get_password_hash(user.password)
        db_user = models.User(
            **user.model_dump(exclude={"password"}), hashed_password=hashed_password
        )
        uow_user = self.uow.register_new(db_user)
        await self.uow.commit()
        return uow_user

    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        return security_service.verify_password(password, user._model.hashed_password)
