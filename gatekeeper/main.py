from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from gatekeeper.core import config
from gatekeeper.core.database.engine import AsyncSessionLocal, init_db
from gatekeeper.features.authorization.decision import Authorizer
from gatekeeper.features.authorization.errors import AuthorizationError, Forbidden
from gatekeeper.features.authorization.resolver import PermissionResolver
from gatekeeper.features.authorization.routes import router as authorization_router
from gatekeeper.features.authorization.schemas import ErrorResponse
from gatekeeper.features.conditions.registry import ConditionRegistry
from gatekeeper.features.roles.store import SqlAlchemyRoleStore
from gatekeeper.utils import configure_logging, get_logger


log = get_logger(__name__)


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.gatekeeper.features."), timing=timing, tags=tags))


async def forbidden_handler(_request: Request, exc: Forbidden) -> JSONResponse:
    return JSONResponse(ErrorResponse(detail=exc.message).model_dump(), status_code=403)


async def authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    log.error(f"Authorization failure on {request.url.path}: {exc!r}", exc_info=exc)
    return JSONResponse(ErrorResponse(detail="Internal authorization failure").model_dump(), status_code=500)


def create_app(authorizer: Authorizer | None = None, registry: ConditionRegistry | None = None) -> FastAPI:
    """
    Build the application around an authorizer.

    Without an authorizer, one is built from the database-backed role store
    and `registry` (an empty, frozen registry by default), and tables are
    created on startup.
    """
    owns_database = authorizer is None
    if authorizer is None:
        if registry is None:
            registry = ConditionRegistry()
            registry.freeze()
        authorizer = Authorizer(PermissionResolver(SqlAlchemyRoleStore(AsyncSessionLocal)), registry)

    app = FastAPI(
        title="Gatekeeper",
        description="Role-based authorization decisions",
        version="0.1.0",
        docs_url="/docs" if config.ENABLE_DOCS else None,
        redoc_url="/redoc" if config.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if config.ENABLE_DOCS else None
    )
    app.state.authorizer = authorizer

    app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

    if config.ENABLE_DOCS:
        log.warning("Docs enabled")
    if config.ALLOW_ORIGIN:
        log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[config.ALLOW_ORIGIN],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Handlers are matched along the exception MRO, so Forbidden wins over its base
    app.add_exception_handler(AuthorizationError, authorization_error_handler)
    app.add_exception_handler(Forbidden, forbidden_handler)

    if owns_database:
        @app.on_event("startup")
        async def startup():
            """Initialize database on application startup."""
            log.info("Initializing database...")
            await init_db()
            log.info("Database initialized successfully")

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(authorization_router, prefix="/authorization", tags=["authorization"])

    return app


def build_default_app() -> FastAPI:
    configure_logging(config.LOG_LEVEL)
    log.info("Initializing server")
    return create_app()
