from __future__ import annotations
import json
from dataclasses import asdict, dataclass
from typing import Any


class ThriveStreamError(RuntimeError):
    """Error base de la librería."""


@dataclass(slots=True)
class StreamAPIError(ThriveStreamError):
    """
    Error HTTP devuelto por el endpoint de streaming antes de abrir el stream.

    Las rutas de la app responden con un JSON de la forma:
    {
        "error": "Health concern is required",
        "details": "..."
    }
    o, en algunos casos, con un objeto anidado:
    {
        "error": {"code": "...", "message": "..."}
    }

    Los campos estructurados se parsean automáticamente para facilitar debugging.
    """
    status_code: int
    message: str
    body: str | None = None

    # Campos estructurados (opcionales)
    error_code: str | None = None
    details: Any | None = None

    def __str__(self) -> str:
        # StreamAPIError 400 [CODE]: mensaje (details: ...)
        text = f"StreamAPIError {self.status_code}"
        if self.error_code:
            text += f" [{self.error_code}]"
        text += f": {self.message}"
        if self.details not in (None, "", [], {}):
            details = self.details if isinstance(self.details, str) else json.dumps(self.details, default=str)
            text += f" (details: {details})"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Campos del error como dict, para logging estructurado."""
        return asdict(self)

    @property
    def is_client_error(self) -> bool:
        return self.status_code // 100 == 4

    @property
    def is_server_error(self) -> bool:
        return self.status_code // 100 == 5

class AssistantRunError(ThriveStreamError):
    """Eventos `error` recibidos dentro del stream (p. ej. "Run failed")."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Assistant run failed")
