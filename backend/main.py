"""
FastAPI Backend for Page Forge - AI page generator

Architecture:
- Page: a generated React component stored under GENERATED_PAGES_DIR
- Generation job: background task (model → persist → build → broadcast)
- Page messages: per-page broadcast over WebSocket or SSE

API Structure:
- /api/pages/* - Page initialization, generation, content and bundles
- /api/pages/{id}/events - SSE page message stream
- /ws - WebSocket page subscriptions (join_page / leave_page)
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from agents.core.builder import CompilerRunner
from agents.pipeline import PipelineConfig, build_pipeline_config, create_component_builder
from routers import pages, realtime
from services.event_service import PageBroadcaster
from services.generation_service import GenerationCoordinator
from services.page_store import FilePageStore

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


def configure_logging(level: str = config.LOG_LEVEL, log_dir: Optional[Path] = config.LOGS_DIR) -> None:
    """Console logging plus a persistent log file"""
    handlers = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "backend.log", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def create_app(
    pipeline_config: Optional[PipelineConfig] = None,
    runner: Optional[CompilerRunner] = None,
    pages_dir: Optional[Path] = None,
    templates_dir: Optional[Path] = None,
    build_workspace_root: Optional[Path] = None,
) -> FastAPI:
    """
    Build the application

    Args:
        pipeline_config: Model clients and retry budget (from settings when omitted)
        runner: Bundler runner (``npx webpack`` when omitted)
        pages_dir: Page store root
        templates_dir: Page-type templates
        build_workspace_root: Root of the per-build workspaces
    """
    templates_dir = templates_dir or config.TEMPLATES_DIR
    pipeline_config = pipeline_config or build_pipeline_config(templates_dir)

    model_router = pipeline_config.model_router()
    store = FilePageStore(pages_dir or config.GENERATED_PAGES_DIR, templates_dir)
    broadcaster = PageBroadcaster()
    builder = create_component_builder(
        pipeline_config,
        runner=runner,
        model_router=model_router,
        workspace_root=build_workspace_root,
    )
    coordinator = GenerationCoordinator(
        store=store,
        builder=builder,
        broadcaster=broadcaster,
        model_router=model_router,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"[startup] Pages dir: {store.root}, model: {pipeline_config.model_name}")
        yield
        await coordinator.shutdown()

    app = FastAPI(
        title="Page Forge API",
        description="AI-powered React page generator",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.page_store = store
    app.state.broadcaster = broadcaster
    app.state.coordinator = coordinator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(pages.router)
    app.include_router(realtime.router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Page Forge API",
            "version": APP_VERSION,
            "endpoints": {
                "pages": "/api/pages",
                "events": "/api/pages/{id}/events",
                "websocket": "/ws",
            },
            "docs": "/docs"
        }

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "ai": "ready" if pipeline_config.primary_client is not None else "fallback",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    configure_logging()

    print(f"""
    ╔════════════════════════════════════════════════════╗
    ║  Page Forge API                                    ║
    ║  AI-Powered React Page Generation                  ║
    ╚════════════════════════════════════════════════════╝

    🚀 Starting server...
    📡 API: http://{config.HOST}:{config.PORT}
    📖 Docs: http://{config.HOST}:{config.PORT}/docs

    Endpoints:
    - POST /api/pages/initialize - Create a page from a template
    - POST /api/pages/generate - Start a generation job
    - GET  /api/pages/{{id}}/events - SSE page messages
    - WS   /ws - Join page rooms

    Press Ctrl+C to stop
    """)

    uvicorn.run(
        create_app(),
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower()
    )
