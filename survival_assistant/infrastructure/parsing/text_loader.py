from __future__ import annotations

from dataclasses import dataclass

from survival_assistant.application.ports.document_loader_port import (
    DocumentLoaderPort,
    DocumentPayload,
)
from survival_assistant.domain.errors import DocumentError


@dataclass
class PlainTextLoaderAdapter(DocumentLoaderPort):
    encoding: str = "utf-8"

    def load(self, path: str) -> DocumentPayload:  # type: ignore[override]
        try:
            with open(path, encoding=self.encoding) as f:
                text = f.read().strip()
        except (OSError, UnicodeDecodeError) as ex:
            raise DocumentError(f"text load failed for {path}: {ex}") from ex
        return DocumentPayload(text=text, source_path=path)
