"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from funnelboard_service.auth.errors import WorkspaceAccessError, WorkspaceContextRequiredError
from funnelboard_service.db.engine import close_db, init_db
from funnelboard_service.middleware.routing import WorkspaceRoutingMiddleware
from funnelboard_service.rest.routes.health import router as health_router
from funnelboard_service.rest.routes.webhooks import router as webhooks_router
from funnelboard_service.rest.routes.workspaces import router as workspaces_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    yield
    await close_db()


async def _access_error_handler(request: Request, exc: WorkspaceAccessError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def _context_required_handler(
    request: Request, exc: WorkspaceContextRequiredError
) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkspaceAccessError, _access_error_handler)
    app.add_exception_handler(WorkspaceContextRequiredError, _context_required_handler)


def include_routers(app: FastAPI) -> None:
    # Public routes
    app.include_router(health_router, tags=["health"])

    # Webhooks are public at the routing layer and verified by signature
    app.include_router(webhooks_router, prefix="/api")

    # Session + workspace scoped routes
    app.include_router(workspaces_router, prefix="/api", tags=["workspaces"])


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Funnelboard API",
        description="Multi-tenant marketing analytics service",
        version="0.1.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(WorkspaceRoutingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    include_routers(app)
    return app
