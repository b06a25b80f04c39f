from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictBool, StrictInt, ValidationError

from devops_ai.backends import Backend, get_backend
from devops_ai.catalog import DEFAULT_CATALOG, TopicCatalog
from devops_ai.config import TutorConfig, load_config
from devops_ai.core.errors import BadInput, InvalidTopic, ProviderError, TutorError
from devops_ai.runtime import ConversationManager, ProgressManager
from devops_ai.store import KeyValueStore, open_store

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"
CORS_MAX_AGE = "86400"


class ProgressUpdate(BaseModel):
    completed_step: StrictInt | None = Field(default=None, ge=0)
    reset: StrictBool = False


class ChatRequest(BaseModel):
    message: str


def _error_body(status: int, message: str) -> JSONResponse:
    return JSONResponse({"status": status, "message": message}, status_code=status)


def _cors_headers(origin: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Max-Age": CORS_MAX_AGE,
    }


def require_topic(request: Request, topic_id: str) -> str:
    catalog: TopicCatalog = request.app.state.catalog
    if topic_id not in catalog:
        raise InvalidTopic(topic_id)
    return topic_id


async def json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise BadInput("Invalid JSON input") from exc


def _parse(model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise BadInput("Invalid JSON input") from exc


def create_app(
    config: TutorConfig | None = None,
    *,
    store: KeyValueStore | None = None,
    backend: Backend | None = None,
    catalog: TopicCatalog | None = None,
) -> FastAPI:
    config = config or load_config()
    if store is None:
        store = open_store(config.store, config.store_root)
    if backend is None:
        backend = get_backend(config.backend, **config.backend_kwargs())
    catalog = catalog or DEFAULT_CATALOG

    app = FastAPI(title="DevOps AI API")
    app.state.config = config
    app.state.catalog = catalog
    app.state.store = store
    app.state.progress = ProgressManager(store, catalog)
    app.state.conversations = ConversationManager(
        store, backend, catalog, max_messages=config.history_limit
    )
    cors_headers = _cors_headers(config.allowed_origin)

    @app.middleware("http")
    async def _cors_middleware(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception:  # noqa: BLE001
                logger.exception("unhandled error on %s %s", request.method, request.url.path)
                response = _error_body(500, "Internal server error")
        response.headers.update(cors_headers)
        return response

    @app.exception_handler(TutorError)
    async def _tutor_error_handler(request: Request, exc: TutorError) -> JSONResponse:
        if isinstance(exc, ProviderError):
            logger.error("provider failure on %s: %s", request.url.path, exc)
            return _error_body(exc.status_code, exc.public_message)
        if exc.status_code >= 500:
            logger.error("request to %s failed: %s", request.url.path, exc)
            return _error_body(exc.status_code, exc.public_message)
        logger.info("rejected %s %s: %s", request.method, request.url.path, exc.message)
        message = exc.public_message if isinstance(exc, InvalidTopic) else exc.message
        return _error_body(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("invalid request to %s: %s", request.url.path, exc.errors())
        return _error_body(400, "Invalid JSON input")

    @app.get("/api/topics")
    def api_topics() -> list[dict[str, Any]]:
        return [topic.to_dict() for topic in catalog.list_topics()]

    @app.get("/api/topics/{topic_id}")
    def api_topic(topic_id: str = Depends(require_topic)) -> dict[str, Any]:
        return catalog.get_topic(topic_id).to_dict()

    @app.get("/api/progress/{topic_id}")
    def api_get_progress(topic_id: str = Depends(require_topic)) -> dict[str, Any]:
        return app.state.progress.get_progress(topic_id).to_dict()

    @app.post("/api/progress/{topic_id}")
    def api_post_progress(
        topic_id: str = Depends(require_topic), body: Any = Depends(json_body)
    ) -> dict[str, Any]:
        update = _parse(ProgressUpdate, body)
        manager: ProgressManager = app.state.progress
        if update.reset:
            manager.reset_progress(topic_id)
            return {"status": 200, "message": f"Progress reset for topic {topic_id}."}
        if update.completed_step is None:
            raise BadInput("Invalid JSON input")
        _progress, changed = manager.apply_completed_step(topic_id, update.completed_step)
        if not changed:
            return {
                "status": 200,
                "message": f"Step {update.completed_step} already completed for topic {topic_id}.",
            }
        return {"status": 200, "message": f"Progress updated for topic {topic_id}."}

    @app.get("/api/conversation/{topic_id}")
    def api_get_conversation(topic_id: str = Depends(require_topic)) -> dict[str, Any]:
        return app.state.conversations.get_conversation(topic_id).to_dict()

    @app.post("/api/chat/{topic_id}")
    def api_chat(
        topic_id: str = Depends(require_topic), body: Any = Depends(json_body)
    ) -> dict[str, Any]:
        request = _parse(ChatRequest, body)
        reply = app.state.conversations.post_message(topic_id, request.message)
        return {"response": reply}

    @app.post("/api/reset/{topic_id}")
    def api_reset(topic_id: str = Depends(require_topic)) -> dict[str, Any]:
        app.state.progress.reset_progress(topic_id)
        app.state.conversations.reset_conversation(topic_id)
        return {
            "status": 200,
            "message": f"Progress and conversation reset for topic {topic_id}.",
        }

    @app.get("/api/health")
    def api_health() -> dict[str, Any]:
        return {"ok": True}

    return app
