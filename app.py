"""
Page Summary API

Run with:
    uvicorn app:app --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from config import APP_TITLE, APP_VERSION, LLM_BACKEND, DEFAULT_MODEL
from logs.logging_config import setup_logging, get_logger
from pipeline import PipelineState, create_pipeline_state
from summarization import router as summary_router

logger = get_logger("app")


def create_app(state: Optional[PipelineState] = None, log_to_files: bool = True) -> FastAPI:
    """
    Build the application.

    Args:
        state: Prebuilt pipeline state (tests); created at startup when None
        log_to_files: Whether logging also writes rotating log files
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(log_to_files=log_to_files)
        app.state.pipeline_state = state or create_pipeline_state()
        logger.info(f"[APP] Started | backend={LLM_BACKEND} | model={DEFAULT_MODEL}")
        try:
            yield
        finally:
            await app.state.pipeline_state.close()
            logger.info("[APP] Stopped")

    app = FastAPI(title=APP_TITLE, version=APP_VERSION, lifespan=lifespan)
    app.include_router(summary_router)

    @app.get("/healthz")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
