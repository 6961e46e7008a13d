import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.responses import Response

from skillpath.core.config import settings
from skillpath.core.errors import SkillPathError
from skillpath.core.responses import error_response
from skillpath.db.base import Base
from skillpath.db.sessions import engine
from skillpath.routes import auth, progress, quiz, sessions, skills, teams
from skillpath.services.cache import ReadCache

# Import all models to ensure they're registered with Base
import skillpath.models  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("skillpath")


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers successful preflight requests with 204 No Content."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != status.HTTP_200_OK:
            return response
        headers = {
            k: v for k, v in response.headers.items()
            if k.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=headers)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Skill assessments, quizzes, progress tracking and team upskilling"
)
app.state.cache = ReadCache(maxsize=settings.CACHE_MAX_ENTRIES, ttl=settings.CACHE_TTL_SECONDS)

# CORS configuration
app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Register routers
app.include_router(auth.router)
app.include_router(skills.router)
app.include_router(quiz.router)
app.include_router(progress.router)
app.include_router(sessions.router)
app.include_router(teams.router)


@app.exception_handler(SkillPathError)
async def skillpath_error_handler(request: Request, exc: SkillPathError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, unanswered=getattr(exc, "unanswered", None))


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    fields = ", ".join(".".join(str(p) for p in e["loc"] if p != "body") for e in errors)
    return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid or missing fields: {fields}")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.on_event("startup")
def startup_event():
    Base.metadata.create_all(bind=engine)
    logger.info("%s v%s starting", settings.APP_NAME, settings.APP_VERSION)


@app.get("/health")
def health():
    return {"status": "ok"}


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("skillpath.main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())
