# survival_assistant/application/use_cases/interpret_image.py
from __future__ import annotations

import logging

from survival_assistant.application.dto.answer_dto import MAX_QUERY_CHARS
from survival_assistant.application.dto.media_dto import MAX_IMAGE_BYTES, ImageRequest
from survival_assistant.application.ports.llm_port import ChatMessage, LLMPort
from survival_assistant.application.ports.vision_port import VisionPort
from survival_assistant.application.services.admission_controller import AdmissionController
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.application.services.retrieval_engine import matching_sections
from survival_assistant.domain.errors import (
    CapabilityUnavailable,
    DomainError,
    LLMError,
    RateLimitExceeded,
    ValidationError,
    VisionError,
)
from survival_assistant.domain.models import Capability, Document, ImageInterpretation, SignText
from survival_assistant.domain.services.sign_reading import SignReading, read_sign, split_reply
from survival_assistant.domain.types import Result

logger = logging.getLogger(__name__)

IMAGE_RESOURCE = "image"
GENERATIVE_RESOURCE = "generative"

SIGN_PROMPT = (
    "You are the Bangalore Survival Assistant helping users understand local signage, "
    "menus, and notices in Bangalore, India."
)
SIGN_STEPS = (
    "When interpreting text from images:\n"
    "1. Explain what the text means literally\n"
    "2. Provide cultural context and local significance\n"
    "3. Give practical implications for the user"
)
NOTHING_READ = SignReading(
    local_meaning="No text could be extracted from the image.",
    cultural_significance="Unable to determine cultural significance without text.",
    associated_behavior="No specific behavior guidance available.",
    practical_implications="Try uploading a clearer image with visible text.",
)


def build_sign_messages(
    text: str, context: list[tuple[Document, dict[str, str]]]
) -> list[ChatMessage]:
    system = SIGN_PROMPT
    if context:
        block = "\n\n".join(
            f"--- {doc.domain.upper()} ---\n" + "\n\n".join(sections.values())
            for doc, sections in context
        )
        system += f"\n\nUse the following local knowledge to provide cultural context:\n{block}"
    system += f"\n\n{SIGN_STEPS}"
    user = (
        f'Please interpret this text extracted from an image in Bangalore:\n\n"{text}"\n\n'
        "Provide the local meaning, cultural significance, and any practical implications."
    )
    return [ChatMessage("system", system), ChatMessage("user", user)]


class InterpretImage:
    """
    Explain a photographed sign, menu or notice for a newcomer.

    Steps:
    1) validate, 2) admit on the ``image`` resource, 3) read the text (caller
    supplied, else the vision capability), 4) interpret with the generative
    capability when allowed, else rule-based over the active documents.

    Reading an image has no offline substitute, so a missing or failing vision
    capability is reported as CapabilityUnavailable. Interpretation failures
    always fall back.
    """

    def __init__(
        self,
        store: DocumentStore,
        admission: AdmissionController,
        registry: CapabilityRegistry,
        vision: VisionPort | None = None,
        llm: LLMPort | None = None,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> None:
        self.store = store
        self.admission = admission
        self.registry = registry
        self.vision = vision
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    def execute(self, req: ImageRequest) -> Result[ImageInterpretation, DomainError]:
        # 1) Validate
        text = (req.text or "").strip()
        if not text and not req.image:
            return Result.failure(ValidationError("provide an image or the sign text"))
        if len(text) > MAX_QUERY_CHARS:
            return Result.failure(
                ValidationError(f"sign text must be at most {MAX_QUERY_CHARS} characters")
            )
        if not text and req.image is not None and len(req.image) > MAX_IMAGE_BYTES:
            return Result.failure(ValidationError("image is larger than 10MB"))

        # 2) Admission
        decision = self.admission.check(IMAGE_RESOURCE, req.identifier)
        if not decision.allowed:
            assert decision.retry_after is not None
            return Result.failure(
                RateLimitExceeded(IMAGE_RESOURCE, decision.retry_after, decision.reset_at)
            )

        # 3) Sign text
        if text:
            sign = SignText(text=text)
        else:
            assert req.image is not None
            read = self._read(req.image)
            if not read.ok or read.value is None:
                return Result.failure(read.error or CapabilityUnavailable("vision"))
            sign = read.value

        if not sign.text.strip():
            return Result.success(self._envelope(sign, NOTHING_READ, generative=False))

        # 4) Interpretation
        documents = self.store.documents(req.active_document_ids) if req.context_enabled else ()
        reading = None
        if documents and self._generative_allowed(req.identifier):
            try:
                reading = self._generate(sign.for_interpretation, documents)
            except LLMError as ex:
                logger.warning("Generative sign reading failed, using documents: %s", ex)
        generative = reading is not None
        if reading is None:
            reading = read_sign(sign.for_interpretation, documents)
        return Result.success(self._envelope(sign, reading, generative=generative))

    def _read(self, image: bytes) -> Result[SignText, CapabilityUnavailable]:
        if self.vision is None or not self.registry.is_available(Capability.VISION):
            return Result.failure(
                CapabilityUnavailable(
                    "image text recognition is not configured; type the sign text instead"
                )
            )
        try:
            return Result.success(self.vision.read_text(image))
        except VisionError as ex:
            logger.warning("Vision text extraction failed: %s", ex)
            return Result.failure(
                CapabilityUnavailable(
                    "could not read text from the image; try a clearer photo or type the text"
                )
            )

    def _generative_allowed(self, identifier: str) -> bool:
        if self.llm is None or not self.registry.is_available(Capability.GENERATIVE_TEXT):
            return False
        return self.admission.check(GENERATIVE_RESOURCE, identifier).allowed

    def _generate(self, text: str, documents: tuple[Document, ...]) -> SignReading:
        assert self.llm is not None
        context = matching_sections(text, documents)
        resp = self.llm.chat(
            build_sign_messages(text, context),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not (resp.text or "").strip():
            raise LLMError("empty completion")
        reading = split_reply(resp.text)
        return SignReading(
            local_meaning=reading.local_meaning,
            cultural_significance=reading.cultural_significance,
            associated_behavior=reading.associated_behavior,
            practical_implications=reading.practical_implications,
            used_document_ids=tuple(doc.id for doc, _ in context),
        )

    @staticmethod
    def _envelope(sign: SignText, reading: SignReading, generative: bool) -> ImageInterpretation:
        return ImageInterpretation(
            extracted_text=sign.text,
            local_meaning=reading.local_meaning,
            cultural_significance=reading.cultural_significance,
            associated_behavior=reading.associated_behavior,
            practical_implications=reading.practical_implications,
            generative_powered=generative,
            used_document_ids=reading.used_document_ids,
            translated_text=sign.translated_text,
            detected_language=sign.detected_language,
        )
