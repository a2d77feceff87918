from .executor import TestExecutor, ExecutorConfig
from .step_definitions import StepDefinitionRegistry, given, when, then, step
from .hooks import HookRegistry, before_scenario, after_scenario
from .lifecycle import ScenarioLifecycle
from .world import ScenarioWorld
from .report_collector import ReportCollector

__all__ = [
    'TestExecutor',
    'ExecutorConfig',
    'StepDefinitionRegistry',
    'HookRegistry',
    'ScenarioLifecycle',
    'ScenarioWorld',
    'ReportCollector',
    'given',
    'when',
    'then',
    'step',
    'before_scenario',
    'after_scenario',
]

# Module metadata
__description__ = 'Scenario runner - Execute Gherkin feature files with Playwright'
