from typing import Optional

from fastapi import FastAPI

from marking_tree.api import nodes_router, settings_router
from marking_tree.exceptions import register_exception_handlers
from marking_tree.sources.registry import SourceRegistry, default_source_registry


def create_app(sources: Optional[SourceRegistry] = None) -> FastAPI:
    app = FastAPI(
        title="Marking Tree",
        description="Navigation and counts of unmarked work for the grading dashboard",
    )
    app.state.sources = sources or default_source_registry()

    register_exception_handlers(app)

    app.include_router(nodes_router, tags=["nodes"])
    app.include_router(settings_router, prefix="/settings", tags=["settings"])
    return app


app = create_app()
