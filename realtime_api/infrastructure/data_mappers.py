# realtime_api/infrastructure/data_mappers.py

from typing import Protocol, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

ModelT_contra = TypeVar("ModelT_contra", contravariant=True)


class DataMapper(Protocol[ModelT_contra]):
    async def insert(self, model: ModelT_contra):
        raise NotImplementedError

    async def delete(self, model: ModelT_contra):
        raise NotImplementedError

    async def update(self, model: ModelT_contra):
        raise NotImplementedError


class SessionMapper:
    """Writes any ORM model through the request's session.

    Inserts and deletes are flushed right away so generated keys and
    cascades are visible to the next query in the same unit of work.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model):
        self.session.add(model)
        await self.session.flush()

    async def delete(self, model):
        await self.session.delete(model)
        await self.session.flush()

    async def update(self, model):
        if model in self.session:
            await self.session.flush()
        else:
            await self.session.merge(model)


def register_mappers(uow, session: AsyncSession, *model_types) -> None:
    uow.bind(session)
    mapper = SessionMapper(session)
    for model_type in model_types:
        uow.mappers.setdefault(model_type, mapper)
