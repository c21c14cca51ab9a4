import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trellis.adapters.sqlite.migrator import SQLiteMigrator
from trellis.api.deps import get_settings, shutdown_dispatcher
from trellis.rules.loader import load_rules, validate_ops_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, validate and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        logging.basicConfig(
            level=rules.logging.level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        validate_ops_rules(rules)
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield

    shutdown_dispatcher()


app = FastAPI(
    title="Trellis Boards API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from trellis.api.routes import (  # noqa: E402
    auth,
    boards,
    invitations,
    lists,
    users,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(boards.router, prefix="/api/boards", tags=["Boards"])
app.include_router(invitations.board_router, prefix="/api/boards", tags=["Invitations"])
app.include_router(lists.router, prefix="/api/boards", tags=["Lists"])
app.include_router(invitations.router, prefix="/api/invitations", tags=["Invitations"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
