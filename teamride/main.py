from contextlib import asynccontextmanager

from fastapi import FastAPI

from teamride.api.practices import router as practices_router
from teamride.config.settings import settings
from teamride.core.logger import setup_logger
from teamride.db.repository import SqlRepository
from teamride.db.session import init_db
from teamride.groups.layout_cache import LayoutCache
from teamride.repository.base import Repository


def create_app(repository: Repository | None = None) -> FastAPI:
    """Build the API app.

    Without a repository the SQL repository is used and its tables are
    created on startup.
    """
    setup_logger(level=settings.log_level, log_file=settings.log_file or None, json_logs=settings.log_json)
    use_sql = repository is None

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if use_sql:
            init_db()
        yield

    app = FastAPI(title="TeamRide Practice Planner", lifespan=lifespan)
    app.state.repository = repository if repository is not None else SqlRepository()
    app.state.layout_cache = LayoutCache()
    app.include_router(practices_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
