import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.coordination.src.coordination.config import settings
from services.coordination.src.coordination.core.escalation import EscalationSweeper
from services.coordination.src.coordination.core.identity import JwtIdentityResolver
from services.coordination.src.coordination.core.status import StatusEngine
from services.coordination.src.coordination.db.engine import dispose_engine, get_engine
from services.coordination.src.coordination.db.repository import (
    AuditEventRepository,
    SqlEntityStore,
)
from services.coordination.src.coordination.realtime.dispatcher import Dispatcher
from services.coordination.src.coordination.realtime.registry import ConnectionRegistry
from services.coordination.src.coordination.routes import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, wire the registry and dispatcher, start the sweeper."""
    if os.getenv("RUN_MIGRATIONS", "true").lower() == "true":
        from services.coordination.src.coordination.db.migrate import run_migrations
        run_migrations()

    app.state.registry = ConnectionRegistry()
    app.state.dispatcher = Dispatcher(app.state.registry)
    app.state.status_engine = StatusEngine()
    app.state.identity_resolver = JwtIdentityResolver()
    app.state.identity_fail_open = settings.identity_fail_open

    sweeper_task = None
    if os.getenv("RUN_SWEEPER", "true").lower() == "true":
        engine = get_engine()
        sweeper = EscalationSweeper(
            SqlEntityStore(engine),
            app.state.status_engine,
            app.state.dispatcher,
            AuditEventRepository(engine),
        )
        sweeper_task = asyncio.create_task(sweeper.run_periodic(settings.sweep_interval_seconds))

    yield

    if sweeper_task is not None:
        sweeper_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper_task
    dispose_engine()


app = FastAPI(title="Care Coordination API", lifespan=lifespan)

# CORS for frontend
cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "https://localhost:3000",
]

if settings.cors_origin:
    cors_origins.append(settings.cors_origin)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
def root() -> dict[str, str]:
    return {"service": "care-coordination-api", "docs": "/docs"}


@app.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "live_connections": len(app.state.registry.all_connections())}
