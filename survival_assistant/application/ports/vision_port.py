from typing import Protocol, runtime_checkable

from survival_assistant.domain.models import SignText


@runtime_checkable
class VisionPort(Protocol):
    def read_text(self, image: bytes) -> SignText:
        """OCR the image; non-English text also comes back translated to English.

        Raises:
            VisionError: on any provider failure or timeout.
        """
        ...
