"""
Identity & account provisioning service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from api.users import router as user_router
from auth.jwt import TokenIssuer, build_token_issuer
from config.settings import config
from database.session import create_tables

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(token_issuer: Optional[TokenIssuer] = None) -> FastAPI:
    """
    Build the application.

    The token issuer is constructed here, once per process, so an unset
    ``JWT_SECRET`` fails at startup with ``ConfigurationError`` instead of
    on the first signup.
    """
    app = FastAPI(
        title="Identity & Account Service",
        version="1.0.0",
        description="User signup, signin, profile updates and directory search.",
    )
    app.state.token_issuer = token_issuer or build_token_issuer()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(user_router, prefix="/api/v1/user")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        if config.create_tables_on_startup:
            logger.info("Ensuring users / accounts tables exist…")
            await create_tables()
        logger.info("Application ready to accept requests.")

    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
