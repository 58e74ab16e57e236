"""Dependency injection container with environment-driven wiring.

Why: Single place for wiring; all other layers remain pure. Components are
     built lazily and shared for the life of the process.
"""

from datetime import timedelta

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.application.ports.session_store_port import SessionStorePort
from survival_assistant.application.services.admission_controller import AdmissionController
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.application.use_cases.answer_query import AnswerQuery
from survival_assistant.application.use_cases.interpret_image import InterpretImage
from survival_assistant.application.use_cases.manage_documents import ListDocuments, ToggleDocument
from survival_assistant.application.use_cases.manage_session import ManageSession
from survival_assistant.application.use_cases.transcribe_query import TranscribeQuery
from survival_assistant.config import composition
from survival_assistant.config.settings import AppSettings


class Container:
    """Dependency injection container for application components.

    Responsibilities:
    1. Read settings from environment (via AppSettings)
    2. Decide capabilities once (CapabilityRegistry)
    3. Share stateful services (documents, rate windows, sessions)
    4. Inject dependencies into use cases
    """

    def __init__(self, settings: AppSettings | None = None, clock: ClockPort | None = None) -> None:
        self.settings = settings or AppSettings()
        self.clock = clock or composition.build_clock()
        self._registry: CapabilityRegistry | None = None
        self._store: DocumentStore | None = None
        self._admission: AdmissionController | None = None
        self._sessions: SessionStorePort | None = None
        self._answer: AnswerQuery | None = None
        self._interpret_image: InterpretImage | None = None
        self._transcribe: TranscribeQuery | None = None
        self._next_sweep = self.clock.now()

    # ===== Shared services =====

    def get_registry(self) -> CapabilityRegistry:
        if self._registry is None:
            self._registry = CapabilityRegistry.from_settings(self.settings)
        return self._registry

    def get_document_store(self) -> DocumentStore:
        if self._store is None:
            self._store = composition.build_document_store(self.settings, self.clock)
        return self._store

    def get_admission_controller(self) -> AdmissionController:
        if self._admission is None:
            self._admission = composition.build_admission_controller(self.settings, self.clock)
        return self._admission

    def get_session_store(self) -> SessionStorePort:
        if self._sessions is None:
            self._sessions = composition.build_session_store()
        return self._sessions

    def sweep_rate_windows(self, interval: timedelta = timedelta(seconds=60)) -> int:
        """Evict idle rate windows at most once per ``interval``."""
        now = self.clock.now()
        if now < self._next_sweep:
            return 0
        self._next_sweep = now + interval
        return self.get_admission_controller().evict_idle()

    # ===== Use cases =====

    def get_answer_use_case(self) -> AnswerQuery:
        if self._answer is None:
            self._answer = composition.build_answer_use_case(
                self.settings,
                self.get_document_store(),
                self.get_admission_controller(),
                self.get_registry(),
            )
        return self._answer

    def get_interpret_image(self) -> InterpretImage:
        if self._interpret_image is None:
            self._interpret_image = composition.build_interpret_image_use_case(
                self.settings,
                self.get_document_store(),
                self.get_admission_controller(),
                self.get_registry(),
            )
        return self._interpret_image

    def get_transcribe_query(self) -> TranscribeQuery:
        if self._transcribe is None:
            self._transcribe = composition.build_transcribe_use_case(
                self.settings, self.get_admission_controller(), self.get_registry()
            )
        return self._transcribe

    def get_list_documents(self) -> ListDocuments:
        return ListDocuments(self.get_document_store())

    def get_toggle_document(self) -> ToggleDocument:
        return ToggleDocument(self.get_document_store(), self.get_session_store())

    def get_manage_session(self) -> ManageSession:
        return ManageSession(self.get_session_store())


def build_container(settings: AppSettings | None = None) -> Container:
    """Build a container and preload the document catalogue."""
    container = Container(settings)
    container.get_document_store().load_all()
    return container
