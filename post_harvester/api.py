"""HTTP read/trigger surface over the post store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .context import AppContext
from .logging_conf import configure_logging


def _context(request: Request) -> AppContext:
    return request.app.state.context


def create_app(context: AppContext) -> FastAPI:
    logger = configure_logging().bind(component="api")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context.start_background()
        logger.info("server_started", bind=context.config.bind_address)
        try:
            yield
        finally:
            context.close()
            logger.info("server_stopped")

    app = FastAPI(title="post-harvester", lifespan=lifespan)
    app.state.context = context

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/posts")
    def list_posts(request: Request):
        try:
            posts = _context(request).store.list_all()
        except Exception as exc:  # noqa: BLE001
            logger.error("list_posts_failed", error=str(exc))
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return {"count": len(posts), "posts": [post.to_api() for post in posts]}

    @app.post("/scrape")
    def trigger_scrape(request: Request):
        logger.info("manual_scrape_triggered")
        try:
            summary = _context(request).orchestrator.run_pass()
        except Exception as exc:  # noqa: BLE001
            logger.error("manual_scrape_failed", error=str(exc))
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return {"message": "Scrape completed", "new_posts": summary.found}

    return app


__all__ = ["create_app"]
