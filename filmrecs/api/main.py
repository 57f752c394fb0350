import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from filmrecs.api.dependencies import get_pipeline
from filmrecs.common.db.session import build_session_factory, create_catalog_engine
from filmrecs.common.errors import RecommendationError
from filmrecs.common.observability import install_observability
from filmrecs.common.schemas import ErrorResponse, Film, HealthResponse
from filmrecs.common.settings import settings
from filmrecs.recommender.pipeline import RecommendationPipeline

SERVICE_NAME = "filmrecs"
INVALID_ROUTE_MESSAGE = "Invalid Route"

logger = logging.getLogger(SERVICE_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = create_catalog_engine(settings.database_url)
    app.state.session_factory = build_session_factory(engine)
    try:
        with engine.connect():
            logger.info("catalog_connected", extra={"db_path": settings.db_path})
    except SQLAlchemyError as exc:
        logger.error("catalog_unavailable", extra={"db_path": settings.db_path, "error": str(exc)})
    yield
    engine.dispose()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def create_app() -> FastAPI:
    app = FastAPI(title="Film Recommendations", version="0.1.0", lifespan=lifespan)
    install_observability(app, service_name=SERVICE_NAME)

    @app.exception_handler(RecommendationError)
    async def recommendation_error_handler(request: Request, exc: RecommendationError) -> JSONResponse:
        logger.warning(
            "recommendation_failed",
            extra={"trace_id": getattr(request.state, "trace_id", "n/a"), "error": str(exc)},
        )
        return _error(422, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        if "film_id" in request.path_params:
            message = f"{request.path_params['film_id']} key missing"
        else:
            message = "; ".join(str(error.get("msg", error)) for error in exc.errors())
        return _error(422, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            logger.info("missing_route", extra={"path": request.url.path})
            return _error(exc.status_code, INVALID_ROUTE_MESSAGE)
        return _error(exc.status_code, str(exc.detail))

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            service=SERVICE_NAME,
            details={
                "db_path": settings.db_path,
                "reviews_api_url": settings.reviews_api_url,
            },
        )

    @app.get(
        "/films/{film_id}/recommendations",
        response_model=list[Film],
        responses={422: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    )
    async def film_recommendations(
        film_id: int,
        pipeline: RecommendationPipeline = Depends(get_pipeline),
    ) -> list[Film]:
        return await pipeline.recommend(film_id)

    return app


app = create_app()


def run() -> None:
    logger.info("starting", extra={"host": settings.host, "port": settings.port})
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except Exception as exc:
        if settings.is_development:
            logger.exception("startup_failed")
        else:
            logger.error("startup_failed", extra={"error": str(exc)})
        raise SystemExit(1) from exc


if __name__ == "__main__":
    run()
