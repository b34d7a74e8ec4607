import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from conduit.config import settings
from conduit.exceptions import ConduitError
from conduit.middleware import TimingMiddleware
from conduit.routers import articles, profiles, tags, users

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Conduit API starting (env=%s)", settings.APP_ENV)
    yield
    logger.info("Conduit API stopped")


app = FastAPI(
    title="Conduit API",
    description="Social-blogging backend: articles, comments, favorites and follows",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping
@app.exception_handler(ConduitError)
async def conduit_error_handler(request: Request, exc: ConduitError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.debug("%s %s -> %s: %s", request.method, request.url.path, exc.kind.value, exc)
    errors = {key: [value] for key, value in exc.details.items()} or {exc.kind.value: [exc.message]}
    return JSONResponse(status_code=exc.status_code, content={"errors": errors})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        # Keyed by the innermost field name, e.g. body.article.title -> "title".
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        field = loc[-1] if loc else "body"
        errors.setdefault(field, []).append(error["msg"])
    return JSONResponse(status_code=422, content={"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Identity 401s and routing errors share the errors body.
    return JSONResponse(
        status_code=exc.status_code,
        content={"errors": {"request": [str(exc.detail)]}},
        headers=getattr(exc, "headers", None),
    )


# Routers
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)
app.include_router(tags.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
