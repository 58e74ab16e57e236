"""HTTP API for answering queries and managing context documents.

Why: Consumable API without business logic; pure delegation to use cases.
     Rate-limit status travels in X-RateLimit-* headers on every response.
"""

import base64
import binascii
import math
from datetime import datetime
from typing import Any

try:
    from fastapi import FastAPI, Header, Request, Response
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel
except ImportError as err:
    raise ImportError(
        "FastAPI not installed. Install with: pip install 'survival-assistant'"
    ) from err

from survival_assistant.application.dto.answer_dto import AnswerRequest
from survival_assistant.application.dto.media_dto import ImageRequest, VoiceRequest
from survival_assistant.application.ports.speech_port import ENGLISH_INDIA
from survival_assistant.application.use_cases.transcribe_query import TYPE_INSTEAD
from survival_assistant.config.compose import Container
from survival_assistant.domain.errors import (
    CapabilityUnavailable,
    DomainError,
    NotFoundError,
    RateLimitExceeded,
    ValidationError,
)
from survival_assistant.domain.models import (
    Coordinates,
    ImageInterpretation,
    RateDecision,
    RecommendationCandidate,
    ResponseEnvelope,
    SessionPreferences,
)


# Pydantic models for request/response validation
class LocationModel(BaseModel):
    lat: float
    lng: float


class QueryRequestModel(BaseModel):
    """Request model for /v1/query. Omitted fields come from the session."""

    query: str
    persona: str | None = None
    context_enabled: bool | None = None
    active_document_ids: list[str] | None = None
    location: LocationModel | None = None


class RecommendationModel(BaseModel):
    name: str
    address: str
    rating: float
    distance_meters: int | None = None
    price_level: int | None = None
    categories: list[str] = []
    source_id: str = ""
    reasoning: str
    cultural_note: str | None = None
    context_factors: list[str] = []


class QueryResponseModel(BaseModel):
    text: str
    used_document_ids: list[str]
    persona: str
    context_was_active: bool
    generative_powered: bool
    recommendations: list[RecommendationModel] | None = None


class DocumentModel(BaseModel):
    id: str
    name: str
    domain: str
    is_loaded: bool


class SessionModel(BaseModel):
    session_id: str
    persona: str
    active_document_ids: list[str]
    context_enabled: bool


class SessionUpdateModel(BaseModel):
    persona: str | None = None
    active_document_ids: list[str] | None = None
    context_enabled: bool | None = None


class ImageRequestModel(BaseModel):
    """Request model for /v1/image: sign text, or a base64-encoded photo."""

    text: str | None = None
    image_base64: str | None = None
    context_enabled: bool | None = None
    active_document_ids: list[str] | None = None


class ImageResponseModel(BaseModel):
    extracted_text: str
    translated_text: str | None = None
    detected_language: str | None = None
    local_meaning: str
    cultural_significance: str
    associated_behavior: str
    practical_implications: str
    generative_powered: bool
    used_document_ids: list[str]


class VoiceRequestModel(BaseModel):
    audio_base64: str
    mime_type: str
    language_code: str = ENGLISH_INDIA


class VoiceResponseModel(BaseModel):
    text: str
    confidence: float
    language: str
    speech_powered: bool
    suggestion: str | None = None


class ErrorResponseModel(BaseModel):
    error: str
    detail: str


# ===== Mapping helpers =====


def _recommendation(r: RecommendationCandidate) -> RecommendationModel:
    return RecommendationModel(
        name=r.name,
        address=r.address,
        rating=r.rating,
        distance_meters=r.distance_meters,
        price_level=r.price_level,
        categories=sorted(r.categories),
        source_id=r.source_id,
        reasoning=r.reasoning,
        cultural_note=r.cultural_note,
        context_factors=list(r.context_factors),
    )


def _envelope(env: ResponseEnvelope) -> QueryResponseModel:
    return QueryResponseModel(
        text=env.text,
        used_document_ids=list(env.used_document_ids),
        persona=env.persona.value,
        context_was_active=env.context_was_active,
        generative_powered=env.generative_powered,
        recommendations=(
            [_recommendation(r) for r in env.recommendations]
            if env.recommendations is not None
            else None
        ),
    )


def _interpretation(i: ImageInterpretation) -> ImageResponseModel:
    return ImageResponseModel(
        extracted_text=i.extracted_text,
        translated_text=i.translated_text,
        detected_language=i.detected_language,
        local_meaning=i.local_meaning,
        cultural_significance=i.cultural_significance,
        associated_behavior=i.associated_behavior,
        practical_implications=i.practical_implications,
        generative_powered=i.generative_powered,
        used_document_ids=list(i.used_document_ids),
    )


def _decode(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as ex:
        raise ValidationError(f"{field} is not valid base64") from ex


def _session(prefs: SessionPreferences) -> SessionModel:
    return SessionModel(
        session_id=prefs.session_id,
        persona=prefs.persona.value,
        active_document_ids=list(prefs.active_document_ids),
        context_enabled=prefs.context_enabled,
    )


def _epoch_seconds(at: datetime) -> int:
    return math.ceil(at.timestamp())


def rate_headers(decision: RateDecision) -> dict[str, str]:
    return {
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(_epoch_seconds(decision.reset_at)),
    }


def _error(status: int, error: str, detail: str, headers: dict[str, str]) -> JSONResponse:
    body = ErrorResponseModel(error=error, detail=detail)
    return JSONResponse(status_code=status, content=body.model_dump(), headers=headers)


def _too_many(ex: RateLimitExceeded) -> JSONResponse:
    retry_after = max(1, math.ceil(ex.retry_after.total_seconds()))
    headers = {
        "Retry-After": str(retry_after),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str(_epoch_seconds(ex.reset_at)),
    }
    return _error(429, "rate_limited", str(ex), headers)


def _failure(error: DomainError | None, headers: dict[str, str]) -> JSONResponse:
    if isinstance(error, RateLimitExceeded):
        return _too_many(error)
    if isinstance(error, ValidationError):
        return _error(400, "validation_error", str(error), headers)
    if isinstance(error, CapabilityUnavailable):
        return _error(503, "capability_unavailable", str(error), headers)
    return _error(500, type(error).__name__, str(error), headers)


def _identifier(request: Request, session_id: str | None) -> str:
    if session_id and session_id.strip():
        return session_id.strip()
    if request.client is not None and request.client.host:
        return request.client.host
    return "anonymous"


# ===== App factory =====


def _default_container() -> Container:
    from dotenv import load_dotenv

    from survival_assistant.config.compose import build_container
    from survival_assistant.config.logging_config import configure_logging
    from survival_assistant.config.settings import AppSettings

    load_dotenv()
    settings = AppSettings()
    configure_logging(settings.log_level)
    return build_container(settings)


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app; without a container one is wired from the env."""
    if container is None:
        container = _default_container()
    c = container

    app = FastAPI(title="Survival Assistant API", version="1.0.0")
    app.state.container = c
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(c.settings.allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "validation_error", str(exc.errors()), {})

    def admit(resource: str, identifier: str) -> RateDecision | JSONResponse:
        c.sweep_rate_windows()
        decision = c.get_admission_controller().check(resource, identifier)
        if not decision.allowed:
            assert decision.retry_after is not None
            return _too_many(RateLimitExceeded(resource, decision.retry_after, decision.reset_at))
        return decision

    def active_ids(requested: list[str] | None, identifier: str) -> tuple[str, ...]:
        if requested is not None:
            return tuple(requested)
        if c.get_session_store().get(identifier) is not None:
            return c.get_manage_session().get(identifier).active_document_ids
        return tuple(d.id for d in c.get_list_documents().execute() if d.is_loaded)

    @app.post("/v1/query", response_model=QueryResponseModel)
    def query(
        req: QueryRequestModel,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        """Answer one query.

        Example:
            POST /v1/query
            {"query": "What is sakkath?", "persona": "newbie"}
        """
        identifier = _identifier(request, x_session_id)
        prefs = c.get_manage_session().get(identifier)
        dto = AnswerRequest(
            query=req.query,
            persona=req.persona if req.persona is not None else prefs.persona,
            context_enabled=(
                req.context_enabled if req.context_enabled is not None else prefs.context_enabled
            ),
            active_document_ids=active_ids(req.active_document_ids, identifier),
            location=Coordinates(req.location.lat, req.location.lng) if req.location else None,
            identifier=identifier,
        )
        c.sweep_rate_windows()
        result = c.get_answer_use_case().execute(dto)
        headers = rate_headers(c.get_admission_controller().peek("query", identifier))
        if not result.ok or result.value is None:
            return _failure(result.error, headers)
        response.headers.update(headers)
        return _envelope(result.value)

    @app.post("/v1/image", response_model=ImageResponseModel)
    def image(
        req: ImageRequestModel,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        """Explain a sign, menu or notice.

        Example:
            POST /v1/image
            {"text": "Meals ready"}   or   {"image_base64": "<jpeg bytes>"}
        """
        identifier = _identifier(request, x_session_id)
        prefs = c.get_manage_session().get(identifier)
        try:
            data = _decode(req.image_base64, "image_base64") if req.image_base64 else None
        except ValidationError as ex:
            return _error(400, "validation_error", str(ex), {})
        dto = ImageRequest(
            image=data,
            text=req.text,
            active_document_ids=active_ids(req.active_document_ids, identifier),
            context_enabled=(
                req.context_enabled if req.context_enabled is not None else prefs.context_enabled
            ),
            identifier=identifier,
        )
        c.sweep_rate_windows()
        result = c.get_interpret_image().execute(dto)
        headers = rate_headers(c.get_admission_controller().peek("image", identifier))
        if not result.ok or result.value is None:
            return _failure(result.error, headers)
        response.headers.update(headers)
        return _interpretation(result.value)

    @app.post("/v1/voice", response_model=VoiceResponseModel)
    def voice(
        req: VoiceRequestModel,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        """Transcribe a spoken question; the text can then be sent to /v1/query."""
        identifier = _identifier(request, x_session_id)
        try:
            audio = _decode(req.audio_base64, "audio_base64")
        except ValidationError as ex:
            return _error(400, "validation_error", str(ex), {})
        dto = VoiceRequest(
            audio=audio,
            mime_type=req.mime_type,
            language_code=req.language_code,
            identifier=identifier,
        )
        c.sweep_rate_windows()
        result = c.get_transcribe_query().execute(dto)
        headers = rate_headers(c.get_admission_controller().peek("voice", identifier))
        if not result.ok or result.value is None:
            return _failure(result.error, headers)
        response.headers.update(headers)
        t = result.value
        return VoiceResponseModel(
            text=t.text,
            confidence=t.confidence,
            language=t.language,
            speech_powered=t.speech_powered,
            suggestion=None if t.speech_powered else TYPE_INSTEAD,
        )

    @app.get("/v1/contexts", response_model=list[DocumentModel])
    def list_contexts(
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        decision = admit("contexts", _identifier(request, x_session_id))
        if isinstance(decision, JSONResponse):
            return decision
        response.headers.update(rate_headers(decision))
        return [DocumentModel(**d.__dict__) for d in c.get_list_documents().execute()]

    @app.post("/v1/contexts/{document_id}/toggle", response_model=DocumentModel)
    def toggle_context(
        document_id: str,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        decision = admit("contexts", _identifier(request, x_session_id))
        if isinstance(decision, JSONResponse):
            return decision
        headers = rate_headers(decision)
        result = c.get_toggle_document().execute(document_id, session_id=x_session_id)
        if not result.ok or result.value is None:
            if isinstance(result.error, NotFoundError):
                return _error(404, "not_found", str(result.error), headers)
            return _error(500, "internal_error", str(result.error), headers)
        response.headers.update(headers)
        return DocumentModel(**result.value.__dict__)

    @app.get("/v1/session", response_model=SessionModel)
    def get_session(
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        identifier = _identifier(request, x_session_id)
        decision = admit("session", identifier)
        if isinstance(decision, JSONResponse):
            return decision
        response.headers.update(rate_headers(decision))
        return _session(c.get_manage_session().get(identifier))

    @app.put("/v1/session", response_model=SessionModel)
    def put_session(
        body: SessionUpdateModel,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        identifier = _identifier(request, x_session_id)
        decision = admit("session", identifier)
        if isinstance(decision, JSONResponse):
            return decision
        headers = rate_headers(decision)
        result = c.get_manage_session().update(
            identifier,
            persona=body.persona,
            active_document_ids=body.active_document_ids,
            context_enabled=body.context_enabled,
        )
        if not result.ok or result.value is None:
            return _error(400, "validation_error", str(result.error), headers)
        response.headers.update(headers)
        return _session(result.value)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check with the capability summary."""
        return {
            "status": "healthy",
            "service": "survival-assistant",
            "capabilities": c.get_registry().describe(),
        }

    return app


def main() -> None:
    """Serve the API with uvicorn (``survival-assistant-api``)."""
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
