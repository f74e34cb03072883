import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import create_schema
from .domain.errors import UnauthenticatedError
from .routers import labs, teams, tournaments, watch_parties
from .utils.request_id import REQUEST_ID_HEADER, resolve_request_id, set_request_id

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if get_settings().create_schema:
        logger.info("creating database schema")
        await create_schema()
    yield


app = FastAPI(title="Esports Hub API", lifespan=lifespan)


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def unauthenticated_handler(request: Request, exc: Exception) -> JSONResponse:
    message = exc.message if isinstance(exc, UnauthenticatedError) else str(exc)
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


app.middleware("http")(request_id_middleware)
app.add_exception_handler(UnauthenticatedError, unauthenticated_handler)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(teams.router)
app.include_router(labs.router)
app.include_router(tournaments.router)
app.include_router(watch_parties.router)
