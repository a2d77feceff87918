import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class ScenarioStatus(str, Enum):
    """Final result status of a scenario"""
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"
    UNDEFINED = "undefined"
    SKIPPED = "skipped"

    @classmethod
    def from_value(cls, value: Union["ScenarioStatus", str]) -> "ScenarioStatus":
        """Normalize a status coming from the runner or a hook"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown scenario status: {value!r}")

    @property
    def is_failure(self) -> bool:
        return self is ScenarioStatus.FAILED


class LifecycleState(Enum):
    """Lifecycle of the browser resources owned by one scenario"""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass
class Attachment:
    """Binary evidence attached to a scenario's report record"""
    data: bytes
    media_type: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'media_type': self.media_type,
            'data': base64.b64encode(self.data).decode('ascii'),
        }
