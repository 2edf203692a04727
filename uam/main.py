from typing import Optional

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from uam.core import config
from uam.core.database.engine import Store
from uam.core.errors import StoreError, UAMError, Unauthenticated, ValidationError
from uam.features.access_requests.routes import router as access_request_router
from uam.features.auth.routes import router as auth_router
from uam.features.groups.routes import router as group_router
from uam.features.permissions.routes import router as permission_router
from uam.features.policies.routes import router as policy_router
from uam.features.users.dependencies import get_authorization_header
from uam.features.users.routes import router as user_router
from uam.utils import get_logger


log = get_logger(__name__)

VERSION = "0.1.0"


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.uam.features."), timing=timing, tags=tags))


def create_app(store: Optional[Store] = None, rate_limit: Optional[str] = None) -> FastAPI:
    """
    Build the application.

    When ``store`` is given it is used as-is (tests pass an in-memory store);
    otherwise the store at ``config.STORE_PATH`` is opened on startup.
    """
    log.info("Initializing server")
    app = FastAPI(
        title="UAM Backend",
        description="User access management: users, groups, policies and access requests",
        version=VERSION,
        docs_url="/docs" if config.ENABLE_DOCS else None,
        redoc_url="/redoc" if config.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if config.ENABLE_DOCS else None
    )
    app.state.store = store

    limiter = Limiter(
        key_func=get_authorization_header,
        default_limits=[rate_limit or config.RATE_LIMIT],
        enabled=config.RATE_LIMIT_ENABLED,
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

    if config.ENABLE_DOCS:
        log.warning("Docs enabled")
    if config.ALLOW_ORIGIN:
        log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
        origins = [config.ALLOW_ORIGIN]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(UAMError)
    async def uam_exception_handler(request: Request, exc: UAMError):
        if isinstance(exc, StoreError):
            log.error(f"{request.method} {request.url.path}: {exc.message}")
        else:
            log.info(f"{request.method} {request.url.path}: {exc.status_code} {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError):
        errors = dict()
        first = None
        for error in exc.errors():
            if "loc" not in error or "msg" not in error:
                continue
            key = str(error["loc"][-1])
            if key == "__root__":
                key = "root"
            errors[key] = error["msg"]
            if first is None:
                kind = ValidationError.MISSING if error.get("type") == "missing" else ValidationError.FORMAT
                first = ValidationError(error["msg"], field=key, kind=kind)
        if first is None:
            first = ValidationError("Invalid request")
        log.info("Request validation error %s", errors)
        return JSONResponse(status_code=400, content=jsonable_encoder({**first.to_dict(), "errors": errors}))

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
        return JSONResponse({"error": "You are going too fast"}, status_code=429)

    @app.on_event("startup")
    def startup():
        """Open the store on application startup."""
        if app.state.store is None:
            log.info(f"Opening store at {config.STORE_PATH}...")
            app.state.store = Store.open(config.STORE_PATH)
            app.state.owns_store = True
            log.info("Store opened successfully")

    @app.on_event("shutdown")
    def shutdown():
        if getattr(app.state, "owns_store", False):
            app.state.store.close()

    @app.get("/")
    def root():
        """Root endpoint - API health check."""
        return {
            "message": "UAM Backend API",
            "version": VERSION,
            "status": "online",
            "docs": "/docs" if config.ENABLE_DOCS else None,
            "authentication": {
                "info": "Protected endpoints require Bearer token in Authorization header",
                "login": "/auth/login",
            },
            "endpoints": {
                "auth": "/auth",
                "users": "/users",
                "groups": "/groups",
                "policies": "/policies",
                "access_requests": "/access-requests",
                "permissions": "/permissions",
            },
        }

    @app.get("/health")
    def health():
        """Health check endpoint."""
        store = app.state.store
        return {"status": "healthy" if store is not None and not store.closed else "unavailable"}

    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(user_router, prefix="/users", tags=["users"])
    app.include_router(group_router, prefix="/groups", tags=["groups"])
    app.include_router(policy_router, prefix="/policies", tags=["policies"])
    app.include_router(access_request_router, prefix="/access-requests", tags=["access-requests"])
    app.include_router(permission_router, prefix="/permissions", tags=["permissions"])

    return app


app = create_app()
