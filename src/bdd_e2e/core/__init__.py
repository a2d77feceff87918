from .base import (
    ScenarioStatus,
    LifecycleState,
    Attachment,
)
from .config import (
    ConfigManager,
    BrowserSettings,
    SUPPORTED_BROWSERS,
    load_environment,
    parse_bool,
)
from .exceptions import (
    BDDE2EError,
    ConfigurationError,
    BrowserLaunchError,
    ResourceUnavailableError,
    NoBrowserAvailableError,
    NoSessionAvailableError,
    NoPageAvailableError,
    ExecutionError,
    UndefinedStepError,
    PendingStepError,
    StepTimeoutError,
    ReportError,
)

__all__ = [
    # Statuses
    "ScenarioStatus",
    "LifecycleState",
    "Attachment",

    # Configuration
    "ConfigManager",
    "BrowserSettings",
    "SUPPORTED_BROWSERS",
    "load_environment",
    "parse_bool",

    # Exceptions
    "BDDE2EError",
    "ConfigurationError",
    "BrowserLaunchError",
    "ResourceUnavailableError",
    "NoBrowserAvailableError",
    "NoSessionAvailableError",
    "NoPageAvailableError",
    "ExecutionError",
    "UndefinedStepError",
    "PendingStepError",
    "StepTimeoutError",
    "ReportError",
]
