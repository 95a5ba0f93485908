# main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException

from electora.config import Settings, get_settings
from electora.exceptions import ElectoraError
from electora.routes.auth_routes import router as auth_router
from electora.routes.election_routes import router as election_router
from electora.routes.vote_routes import vote_router
from electora.storage import MemoryStorage, seed_demo_data

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ElectoraError)
    async def electora_error_handler(request: Request, exc: ElectoraError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else first.get("msg")
        else:
            message = "Invalid request"
        return _error(400, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, "Internal server error")


def create_app(settings: Optional[Settings] = None, storage: Optional[MemoryStorage] = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Electora - Election Management API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if storage is None:
        storage = MemoryStorage(strict_transitions=settings.strict_status_transitions)
        if settings.seed_demo_data:
            seed_demo_data(storage)
    app.state.settings = settings
    app.state.storage = storage

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(election_router)
    app.include_router(vote_router)

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Welcome to the Electora API"}

    @app.get("/health", tags=["Root"])
    def health_check():
        return {"status": "OK", "message": "Electora server is running"}

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    logger.info(f"Electora app initialized (seed_demo_data={settings.seed_demo_data}, "
                f"strict_status_transitions={settings.strict_status_transitions})")
    return app


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "3001")))
