"""
bdd-e2e - Gherkin scenarios driven through Playwright
"""

__version__ = "0.1.0"
__author__ = "bdd-e2e Contributors"

from .core import (
    ScenarioStatus,
    LifecycleState,
    BrowserSettings,
    ConfigManager,
    PendingStepError,
)
from .executor import (
    TestExecutor,
    ExecutorConfig,
    ScenarioLifecycle,
    ScenarioWorld,
    given,
    when,
    then,
    step,
    before_scenario,
    after_scenario,
)

__all__ = [
    "ScenarioStatus",
    "LifecycleState",
    "BrowserSettings",
    "ConfigManager",
    "PendingStepError",
    "TestExecutor",
    "ExecutorConfig",
    "ScenarioLifecycle",
    "ScenarioWorld",
    "given",
    "when",
    "then",
    "step",
    "before_scenario",
    "after_scenario",
]
