import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from daycare.core.audit.service import AuditMiddleware
from daycare.core.incidents.router import router as incidents_router
from daycare.settings import get_settings

settings = get_settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Daycare Incidents API",
        version="0.1.0",
        docs_url="/docs" if settings.APP_DEBUG else None,
        redoc_url="/redoc" if settings.APP_DEBUG else None,
    )

    app.add_middleware(AuditMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(incidents_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
