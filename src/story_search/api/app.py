"""
FastAPI application exposing story search.

Routes:
    POST /api/stories/search   ranked search (lexical | semantic | hybrid)
    GET  /api/stories          all stories
    GET  /api/stories/{id}     one story
    GET  /health               liveness

Search failures come back as problem JSON with a short message; stack
traces stay in the server log.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request
from starlette.responses import JSONResponse

from story_search.api.schemas import Problem, SearchBody, SearchHitOut, StoryOut
from story_search.config import Settings, get_settings
from story_search.core.errors import ProviderError, StoreError
from story_search.core.protocols import DocumentStore
from story_search.observability import init_tracing, shutdown_tracing
from story_search.retrieval import SearchRequest, SearchService
from story_search.wiring import build_search_service, build_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stories")


def _problem(status: int, title: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=Problem(title=title, status=status, detail=detail).model_dump(),
        media_type="application/problem+json",
    )


@router.post("/search", response_model=list[SearchHitOut])
async def search_stories(body: SearchBody, request: Request):
    service: SearchService = request.app.state.search_service
    logger.info(f"Search request: query={body.query!r} mode={body.mode.value} limit={body.limit}")

    if not body.query.strip():
        raise HTTPException(status_code=400, detail="Query cannot be empty.")

    hits = await service.search(SearchRequest(query=body.query, mode=body.mode, limit=body.limit))
    return [SearchHitOut.from_hit(hit) for hit in hits]


@router.get("", response_model=list[StoryOut])
async def list_stories(request: Request):
    store: DocumentStore = request.app.state.store
    return [StoryOut.from_document(doc) for doc in await store.list_documents()]


@router.get("/{story_id}", response_model=StoryOut)
async def get_story(story_id: int, request: Request):
    store: DocumentStore = request.app.state.store
    doc = await store.get_document(story_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"Story {story_id} not found")
    return StoryOut.from_document(doc)


async def _provider_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Search provider error: {exc}")
    return _problem(500, "Embedding or summarization provider failed", str(exc))


async def _store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Store error: {exc}")
    return _problem(500, "Document store query failed", str(exc))


async def _timeout_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Search deadline exceeded")
    return _problem(504, "Search timed out", "The search did not complete before its deadline.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProviderError, _provider_error_handler)
    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(TimeoutError, _timeout_handler)


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    search_service: SearchService | None = None,
) -> FastAPI:
    """
    Build the API.

    Components not passed in are built from settings (env by default).
    The store is opened on startup and closed on shutdown.
    """
    settings = settings or get_settings()
    store = store or build_store(settings)
    search_service = search_service or build_search_service(settings, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_tracing(settings)
        await store.open()
        try:
            yield
        finally:
            await store.close()
            shutdown_tracing()

    app = FastAPI(title="Story Search", lifespan=lifespan)
    app.state.store = store
    app.state.search_service = search_service
    app.include_router(router)
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
