import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.dependencies import ServiceContainer, build_services
from app.api.routes.ai_routes import router as ai_routes
from app.api.routes.doctor_routes import router as doctor_routes
from app.api.routes.email_routes import router as email_routes
from app.api.routes.prescription_routes import router as prescription_routes
from app.api.routes.user_routes import router as user_routes
from app.core.config import settings
from app.core.errors import ServiceError
from app.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = app.state.services is None
    if owned:
        app.state.services = build_services(settings)
    logger.info("Health services backend started")
    try:
        yield
    finally:
        if owned:
            await app.state.services.close()
            app.state.services = None


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the app. Pass a prepared container to skip building real clients."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Sansthapana Health Services",
        description="Doctor matching, diet coaching and prescription scanning backend",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
            status_code=400,
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Unknown error occurred"}, status_code=500)

    @app.get("/")
    def read_root():
        return {"message": "Sansthapana health services backend running"}

    app.include_router(doctor_routes)
    app.include_router(ai_routes)
    app.include_router(user_routes)
    app.include_router(prescription_routes)
    app.include_router(email_routes)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
