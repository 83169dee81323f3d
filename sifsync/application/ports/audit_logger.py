from typing import Any, Dict, Optional, Protocol


class AuditLogger(Protocol):
    def log(self, action: str, user_id: Optional[str], subject_id: Optional[str] = None, reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        ...
