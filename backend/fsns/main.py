import os
from uuid import uuid4

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fsns.api.logs import router as logs_router
from fsns.api.namespace import router as namespace_router
from fsns.api.settings import router as settings_router
from fsns.config import backend_dir
from fsns.logging.ndjson import current_request_id, init_logging, log_event


def _load_dotenvs() -> None:
    """
    Load environment variables from:
    - backend/.env
    - repo-root/.env
    """
    backend = backend_dir()
    load_dotenv(backend / ".env")
    load_dotenv(backend.parent / ".env")


def create_app() -> FastAPI:
    _load_dotenvs()
    from fsns.db import init_db  # noqa: WPS433

    init_db()
    init_logging()
    app = FastAPI(title="fsns API", version="0.1.0")

    cors_origins = os.environ.get("FSNS_CORS_ORIGINS", "http://localhost:5173").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_origins if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.middleware("http")
    async def log_exceptions(request, call_next):  # type: ignore[no-untyped-def]
        token = current_request_id.set(request.headers.get("x-request-id") or uuid4().hex)
        try:
            return await call_next(request)
        except Exception as e:  # noqa: BLE001
            log_event(
                level="error",
                event="api.exception",
                data={"method": request.method, "path": str(request.url.path), "error": str(e)},
            )
            raise
        finally:
            current_request_id.reset(token)

    app.include_router(namespace_router)
    app.include_router(settings_router)
    app.include_router(logs_router)
    log_event(level="info", event="app.startup", data={"routes": len(app.routes)})
    return app
