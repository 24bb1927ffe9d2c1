# realtime_api/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import create_async_engine

from realtime_api.api import auth, chats, notifications, realtime
from realtime_api.config import AppConfig
from realtime_api.domain.events import InboundEvent
from realtime_api.infrastructure.connection_registry import ConnectionRegistry
from realtime_api.infrastructure.database import Database, create_database
from realtime_api.infrastructure.event_dispatcher import EventDispatcher
from realtime_api.infrastructure.inbound_handlers import InboundHandlers
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.redis_client import RedisClient
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.socket_server import SocketServer


class Application:
    def __init__(self, config: AppConfig, database: Optional[Database] = None):
        self.config = config
        self.logger = self.setup_logger()
        if database is None:
            engine = create_async_engine(config.DATABASE_URL, echo=False)
            database = create_database(engine)
        self.database = database
        self.redis_client = RedisClient(
            config.REDIS_HOST, config.REDIS_PORT, self.logger
        )
        self.security_service = SecurityService(config)
        self.registry = ConnectionRegistry()
        self.realtime_dispatcher = RealtimeDispatcher(
            self.registry, self.redis_client, self.logger
        )

        # Register inbound socket handlers
        self.inbound_handlers = InboundHandlers(
            self.database, self.registry, self.realtime_dispatcher, self.logger
        )
        self.event_dispatcher = EventDispatcher()
        self.event_dispatcher.register(
            InboundEvent.JOIN_CHAT, self.inbound_handlers.join_chat
        )
        self.event_dispatcher.register(
            InboundEvent.MESSAGE_RECEIVED, self.inbound_handlers.message_received
        )

        self.socket_server = SocketServer(
            self.database,
            self.security_service,
            self.registry,
            self.event_dispatcher,
            self.logger,
        )

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.database.connect()
        await self.redis_client.connect()
        yield
        await self.database.disconnect()
        await self.redis_client.disconnect()

    def setup_logger(self):
        logger = logging.getLogger("RealtimeAPI")
        logger.setLevel(self.config.LOG_LEVEL.upper())

        if not logger.handlers:
            c_handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            c_handler.setFormatter(formatter)
            logger.addHandler(c_handler)

        return logger

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title=self.config.PROJECT_NAME,
            version=self.config.PROJECT_VERSION,
            description=self.config.PROJECT_DESCRIPTION,
            openapi_url=f"{self.config.API_V1_STR}/openapi.json",
            lifespan=self.lifespan,
        )

        app.state.config = self.config
        app.state.security_service = self.security_service
        app.state.database = self.database
        app.state.redis_client = self.redis_client
        app.state.registry = self.registry
        app.state.realtime_dispatcher = self.realtime_dispatcher
        app.state.event_dispatcher = self.event_dispatcher
        app.state.socket_server = self.socket_server
        app.state.logger = self.logger

        app.include_router(
            auth.router, prefix=f"{self.config.API_V1_STR}/auth", tags=["auth"]
        )
        app.include_router(
            chats.router, prefix=f"{self.config.API_V1_STR}/chats", tags=["chats"]
        )
        app.include_router(
            notifications.router,
            prefix=f"{self.config.API_V1_STR}/notifications",
            tags=["notifications"],
        )
        app.include_router(
            realtime.router, prefix=self.config.API_V1_STR, tags=["realtime"]
        )

        @app.exception_handler(Exception)
        async def global_exception_handler(request: Request, exc: Exception):
            self.logger.error(f"Unhandled error on {request.url.path}: {exc!s}")
            return JSONResponse(
                status_code=500,
                content={"message": f"An unexpected error occurred: {str(exc)}"},
            )

        @app.get("/")
        async def root():
            return {"message": "Welcome to the Realtime API"}

        return app


def create():
    config = AppConfig()
    application = Application(config)
    app = application.create_app()
    application.logger.info("Application created and configured")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create(), host="127.0.0.1", port=8000)
