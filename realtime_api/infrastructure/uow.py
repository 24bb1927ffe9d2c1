# realtime_api/infrastructure/uow.py

from typing import Any, Dict, Type

from realtime_api.infrastructure.data_mappers import DataMapper


class UoWModel:
    def __init__(self, model: Any, uow: "UnitOfWork"):
        self.__dict__["_model"] = model
        self.__dict__["_uow"] = uow

    def __getattr__(self, key):
        return getattr(self._model, key)

    def __setattr__(self, key, value):
        setattr(self._model, key, value)
        # pending inserts already carry the new value
        if id(self._model) not in self._uow.new:
            self._uow.register_dirty(self._model)


def unwrap(model: Any) -> Any:
    return model._model if isinstance(model, UoWModel) else model


class UnitOfWork:
    def __init__(self) -> None:
        self.new: Dict[int, Any] = {}
        self.dirty: Dict[int, Any] = {}
        self.deleted: Dict[int, Any] = {}
        self.mappers: Dict[Type, DataMapper] = {}
        self.sessions: Dict[int, Any] = {}

    def bind(self, session: Any) -> None:
        self.sessions[id(session)] = session

    def register_new(self, model: Any) -> UoWModel:
        model = unwrap(model)
        self.new[id(model)] = model
        return UoWModel(model, self)

    def register_dirty(self, model: Any) -> None:
        model = unwrap(model)
        model_id = id(model)
        if model_id not in self.new and model_id not in self.deleted:
            self.dirty[model_id] = model

    def register_deleted(self, model: Any) -> None:
        model = unwrap(model)
        model_id = id(model)
        if self.new.pop(model_id, None) is not None:
            # never reached the database
            return
        self.dirty.pop(model_id, None)
        self.deleted[model_id] = model

    def _mapper(self, model: Any) -> DataMapper:
        try:
            return self.mappers[type(model)]
        except KeyError:
            raise LookupError(f"No data mapper registered for {type(model).__name__}")

    async def commit(self) -> None:
        for model in list(self.new.values()):
            await self._mapper(model).insert(model)
        for model in list(self.dirty.values()):
            await self._mapper(model).update(model)
        for model in list(self.deleted.values()):
            await self._mapper(model).delete(model)

        self.new.clear()
        self.dirty.clear()
        self.deleted.clear()

    async def complete(self) -> None:
        """Flush pending changes and commit every bound session.

        Realtime events about a change are emitted only after this returns.
        """
        await self.commit()
        for session in self.sessions.values():
            await session.commit()
