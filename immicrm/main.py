import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from immicrm.auth.router import router as auth_router
from immicrm.auth.router import users_router
from immicrm.cases.router import notes_router as case_notes_router
from immicrm.cases.router import router as cases_router
from immicrm.clients.router import router as clients_router
from immicrm.common.exceptions import AuthenticationError, DomainError
from immicrm.config import settings
from immicrm.dashboard.router import router as dashboard_router
from immicrm.documents.router import router as documents_router
from immicrm.interactions.router import router as interactions_router
from immicrm.middleware import CorrelationIDMiddleware
from immicrm.tasks.router import router as tasks_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables on a fresh SQLite file, then bootstrap the admin user
    from immicrm.auth.service import bootstrap_admin
    from immicrm.database import Base, engine

    if engine.dialect.name == "sqlite":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    await bootstrap_admin()
    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    yield
    await engine.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if exc.status_code >= 500:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error", "error": exc.kind})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "error": exc.kind}, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors()), "error": "validation_error"},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Constraint violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Request conflicts with existing data", "error": "conflict"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # Runs outside CorrelationIDMiddleware, so copy the id it stored on the request
    correlation_id = getattr(request.state, "correlation_id", None)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error": "internal"},
        headers={"X-Request-ID": correlation_id} if correlation_id else None,
    )


# Routers
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(clients_router, prefix="/api/clients", tags=["Clients"])
app.include_router(cases_router, prefix="/api/cases", tags=["Cases"])
app.include_router(case_notes_router, prefix="/api/case-notes", tags=["Case Notes"])
app.include_router(tasks_router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(documents_router, prefix="/api/documents", tags=["Documents"])
app.include_router(interactions_router, prefix="/api/interactions", tags=["Interactions"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "version": settings.app_version}
