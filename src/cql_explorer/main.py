"""Main entry point for CQL Explorer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from cql_explorer import __version__
from cql_explorer.api.routes.health import router as health_router
from cql_explorer.api.routes.schema import router as schema_router
from cql_explorer.catalog.service import reset_catalog_service
from cql_explorer.observability import setup_opentelemetry, shutdown_opentelemetry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - setup and shutdown."""
    setup_opentelemetry(app)
    yield
    reset_catalog_service()
    shutdown_opentelemetry()


app = FastAPI(
    title="CQL Explorer",
    description="Read-only exploration of Cassandra keyspaces, tables and their key structure",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(schema_router)


def main() -> None:
    """Run the application server."""
    import uvicorn

    from cql_explorer.config import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
