from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from course_platform import __version__
from course_platform.auth import bootstrap_admin_if_needed
from course_platform.config import Config, load_config
from course_platform.db import connect, init_db, seed_settings

from . import admin, public
from .responses import install_error_handlers


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    cfg = cfg or load_config()

    app = FastAPI(title="Course Platform", version=__version__)
    # Available to dependencies before startup runs.
    app.state.cfg = cfg

    # Before CORS, so CORS wraps the error envelopes too.
    install_error_handlers(app)

    # CORS is mainly needed for local development (Vite on :5173 -> API on :8000).
    # In production (single origin behind a reverse proxy) CORS is typically unnecessary.
    cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.on_event("startup")
    def _on_startup() -> None:
        # Ensure schema exists.
        init_db(cfg.DB_DSN)

        with connect(cfg.DB_DSN) as conn:
            if seed_settings(conn, name=cfg.SITE_NAME, copyright=cfg.SITE_COPYRIGHT):
                _debug("Seeded default site settings")

        # Bootstrap first admin if needed (only when users table is empty)
        if cfg.ENABLE_ADMIN_BOOTSTRAP:
            boot = bootstrap_admin_if_needed(cfg)
            if boot:
                _debug(
                    f"Bootstrapped initial admin user: username={boot.get('username')} role={boot.get('role')}"
                )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    app.include_router(public.router)
    app.include_router(admin.router)
    app.include_router(admin.guarded)
    return app


app = create_app()
