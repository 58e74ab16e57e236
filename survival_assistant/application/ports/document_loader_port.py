from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class DocumentPayload:
    text: str
    source_path: Optional[str] = None


class DocumentLoaderPort(Protocol):
    def load(self, path: str) -> DocumentPayload:
        """Read a document; raises DocumentError when the file is missing or unreadable."""
        ...
