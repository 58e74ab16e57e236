# survival_assistant/application/use_cases/answer_query.py
from __future__ import annotations

import logging
from survival_assistant.application.dto.answer_dto import MAX_QUERY_CHARS, AnswerRequest
from survival_assistant.application.services.admission_controller import AdmissionController
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.application.services.geo_recommender import GeoRecommender
from survival_assistant.application.use_cases.answer_strategies import (
    AnswerContext,
    AnswerStrategy,
    StrategyAnswer,
)
from survival_assistant.domain.errors import (
    DomainError,
    LLMError,
    RateLimitExceeded,
    ValidationError,
)
from survival_assistant.domain.models import Capability, Intent, ResponseEnvelope
from survival_assistant.domain.services.intent import detect_food_category, detect_intent
from survival_assistant.domain.services.personas import parse_persona
from survival_assistant.domain.types import Result

logger = logging.getLogger(__name__)

QUERY_RESOURCE = "query"
GENERATIVE_RESOURCE = "generative"


class AnswerQuery:
    """
    Application use case producing a ResponseEnvelope for one query.
    Only validation failures and rate limiting come back as errors; every
    upstream problem is absorbed by the fallback strategy.
    """

    def __init__(
        self,
        store: DocumentStore,
        admission: AdmissionController,
        registry: CapabilityRegistry,
        fallback: AnswerStrategy,
        generative: AnswerStrategy | None = None,
        geo: GeoRecommender | None = None,
    ) -> None:
        self.store = store
        self.admission = admission
        self.registry = registry
        self.fallback = fallback
        self.generative = generative
        self.geo = geo

    def execute(self, req: AnswerRequest) -> Result[ResponseEnvelope, DomainError]:
        # 1) Validate
        query = (req.query or "").strip()
        if not query:
            return Result.failure(ValidationError("query must not be empty"))
        if len(query) > MAX_QUERY_CHARS:
            return Result.failure(
                ValidationError(f"query must be at most {MAX_QUERY_CHARS} characters")
            )
        persona = parse_persona(req.persona)
        if persona is None:
            return Result.failure(ValidationError(f"unknown persona '{req.persona}'"))
        if req.location is not None and not req.location.is_valid():
            return Result.failure(
                ValidationError("location must have lat in [-90, 90] and lng in [-180, 180]")
            )

        # 2) Admission
        decision = self.admission.check(QUERY_RESOURCE, req.identifier)
        if not decision.allowed:
            assert decision.retry_after is not None
            return Result.failure(
                RateLimitExceeded(
                    resource=QUERY_RESOURCE,
                    retry_after=decision.retry_after,
                    reset_at=decision.reset_at,
                )
            )

        # 3) Context documents (request order, loaded on demand)
        documents = self.store.documents(req.active_document_ids) if req.context_enabled else ()
        active_ids = tuple(d.id for d in documents)

        # 4) Recommendations for food questions with a location
        intent = detect_intent(query)
        recommendations = None
        if req.location is not None and intent is Intent.FOOD and self.geo is not None:
            recommendations = tuple(
                self.geo.recommend(
                    req.location,
                    category_hint=detect_food_category(query),
                    persona=persona,
                    active_ids=active_ids,
                )
            )

        ctx = AnswerContext(
            query=query,
            persona=persona,
            context_enabled=req.context_enabled,
            intent=intent,
            documents=documents,
            recommendations=recommendations,
        )

        # 5) Strategy selection
        answer: StrategyAnswer | None = None
        if self._generative_allowed(req.identifier):
            assert self.generative is not None
            try:
                answer = self.generative.answer(ctx)
            except LLMError as ex:
                logger.warning("Generative answer failed, using fallback: %s", ex)
        generative_powered = answer is not None
        if answer is None:
            answer = self.fallback.answer(ctx)

        return Result.success(
            ResponseEnvelope(
                text=answer.text,
                used_document_ids=answer.used_document_ids if req.context_enabled else (),
                persona=persona,
                context_was_active=req.context_enabled,
                generative_powered=generative_powered,
                recommendations=recommendations,
            )
        )

    def _generative_allowed(self, identifier: str) -> bool:
        if self.generative is None or not self.registry.is_available(Capability.GENERATIVE_TEXT):
            logger.debug("Generative text unavailable; fallback strategy selected")
            return False
        if not self.admission.check(GENERATIVE_RESOURCE, identifier).allowed:
            logger.debug("Generative budget exhausted for %s; using fallback", identifier)
            return False
        return True
