from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from litestar import Litestar
from litestar.di import Provide

from core.config import AppConfig
from core.auth import provide_current_user
from core.db import init_pool, close_pool, provide_connection
from core.realtime import init_channel, close_channel, provide_channel
from api.auth import AuthController
from api.health import HealthController, PingController
from api.clients import ClientsController
from api.pre_orders import PreOrdersController
from api.orders import OrdersController
from api.jobs import JobsController
from core.middleware import SessionMiddleware


config: AppConfig | None = None


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
    global config
    config = AppConfig.load()
    print(f"Config loaded: database={config.database.host}")

    if config.database.host:
        await init_pool(config.database.conninfo)
        print("Database pool initialized")

        if config.jobs.listen:
            await init_channel(config.database.conninfo, config.jobs.notify_channel)
            print(f"Listening for job updates on {config.jobs.notify_channel}")

    yield

    await close_channel()
    await close_pool()
    print("Database pool closed")


app = Litestar(
    route_handlers=[
        AuthController,
        HealthController,
        PingController,
        ClientsController,
        PreOrdersController,
        OrdersController,
        JobsController,
    ],
    dependencies={
        "conn": Provide(provide_connection),
        "channel": Provide(provide_channel),
        "current_user": Provide(provide_current_user),
    },
    middleware=[SessionMiddleware],
    lifespan=[lifespan],
)
