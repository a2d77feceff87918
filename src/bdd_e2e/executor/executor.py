import asyncio
import re
from typing import Dict, List, Any, Optional, Union, Callable, Iterable, Tuple
from pathlib import Path
from datetime import datetime
import logging
from dataclasses import dataclass, field, fields

# Playwright imports
try:
    from playwright.async_api import async_playwright
except ImportError:
    raise ImportError("Playwright is not installed. Run: pip install playwright && playwright install")

# Behave imports
try:
    from behave.parser import parse_feature
    from behave.model import Feature, Scenario, ScenarioOutline, Step
except ImportError:
    raise ImportError("Behave is not installed. Run: pip install behave")

from cucumber_tag_expressions import parse as parse_tag_expression

from ..core.base import Attachment, ScenarioStatus
from ..core.config import BrowserSettings, ConfigManager
from ..core.exceptions import (
    ConfigurationError,
    ReportError,
    PendingStepError,
    StepTimeoutError,
    UndefinedStepError,
)
from . import steps as builtin_steps
from .hooks import HookRegistry
from .lifecycle import ScenarioLifecycle
from .report_collector import ReportCollector
from .step_definitions import StepDefinitionRegistry, load_modules, snippet_for
from .world import ScenarioWorld

logger = logging.getLogger(__name__)

FAILING_STATUSES = {ScenarioStatus.FAILED}
STRICT_FAILING_STATUSES = FAILING_STATUSES | {ScenarioStatus.PENDING, ScenarioStatus.UNDEFINED}

# Profile options holding lists; a single string counts as a one-item list
LIST_OPTIONS = ("formats", "paths", "require", "names")


@dataclass
class ExecutorConfig:
    """Runner profile for Test Executor"""
    parallel: int = 1
    formats: List[str] = field(default_factory=list)
    paths: List[str] = field(default_factory=lambda: ["features/**/*.feature"])
    require: List[str] = field(default_factory=lambda: [
        "features/support/**/*.py",
        "features/steps/**/*.py",
    ])
    retry: int = 0
    timeout: int = 30000
    names: List[str] = field(default_factory=list)
    tags: Optional[str] = None
    fail_fast: bool = False
    strict: bool = True
    builtin_steps: bool = True
    base_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutorConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown runner options: {', '.join(sorted(unknown))}")
        options = {k: v for k, v in data.items() if k in known}
        for key in LIST_OPTIONS:
            if isinstance(options.get(key), str):
                options[key] = [options[key]]
        return cls(**options)

    @classmethod
    def from_config_manager(cls, manager: ConfigManager, **overrides) -> "ExecutorConfig":
        data = dict(manager.get_module_config('runner'))
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)


class TestExecutor:
    """
    Executes Gherkin feature files against Playwright.

    Every scenario gets its own ScenarioWorld; the scenario lifecycle opens
    browser, session and page around the steps and user hooks from support
    modules run in between.
    """
    __test__ = False

    def __init__(
            self,
            config: Optional[Union[Dict, ExecutorConfig]] = None,
            settings: Optional[BrowserSettings] = None,
            playwright_factory: Callable[[], Any] = async_playwright,
            report_collector: Optional[ReportCollector] = None
    ):
        if isinstance(config, dict):
            self.config = ExecutorConfig.from_dict(config)
        else:
            self.config = config or ExecutorConfig()

        self.settings = settings
        self.playwright_factory = playwright_factory
        self.step_registry = StepDefinitionRegistry()
        self.hooks = HookRegistry()
        self.report_collector = report_collector or ReportCollector()
        self.tag_expression = parse_tag_expression(self.config.tags) if self.config.tags else None
        self._name_patterns = [re.compile(name) for name in self.config.names]
        self._glue_loaded = False
        self._stop_requested = False

    @property
    def base_dir(self) -> Path:
        return Path(self.config.base_dir) if self.config.base_dir else Path.cwd()

    def load_glue(self) -> None:
        """Import support and step modules and register their hooks and steps"""
        if self._glue_loaded:
            return

        modules = load_modules(self.config.require, self.base_dir)
        for module in modules:
            self.step_registry.register_from_module(module)
            self.hooks.register_from_module(module)

        # Project steps take precedence over built-in ones
        if self.config.builtin_steps:
            self.step_registry.register_from_module(builtin_steps)

        self._glue_loaded = True
        logger.info(
            f"Loaded {len(modules)} glue modules, "
            f"{len(self.step_registry.definitions)} step definitions"
        )

    def discover_features(self, paths: Optional[Iterable[Union[str, Path]]] = None) -> List[Path]:
        """Resolve feature files from explicit paths, directories or glob patterns"""
        found: List[Path] = []
        for entry in paths or self.config.paths:
            path = Path(entry)
            if not path.is_absolute():
                path = self.base_dir / path

            if path.is_dir():
                candidates = sorted(path.glob('**/*.feature'))
            elif path.is_file():
                candidates = [path]
            else:
                candidates = sorted(p for p in self.base_dir.glob(str(entry)) if p.is_file())
                if not candidates:
                    logger.warning(f"No feature files matched: {entry}")

            for candidate in candidates:
                if candidate not in found:
                    found.append(candidate)

        return found

    def parse_feature_file(self, feature_path: Union[str, Path]) -> Optional[Feature]:
        """Parse a single feature file"""
        feature_path = Path(feature_path)

        if not feature_path.exists():
            raise FileNotFoundError(f"Feature file not found: {feature_path}")

        with open(feature_path, 'r', encoding='utf-8') as f:
            feature_content = f.read()

        return parse_feature(feature_content, filename=str(feature_path))

    def collect_scenarios(self, feature: Feature) -> List[Scenario]:
        """Expand scenario outlines and apply name and tag filters"""
        selected = []
        for scenario in feature.scenarios:
            if isinstance(scenario, ScenarioOutline):
                candidates = scenario.scenarios
            else:
                candidates = [scenario]

            selected.extend(c for c in candidates if self._should_run_scenario(c))
        return selected

    def _should_run_scenario(self, scenario: Scenario) -> bool:
        """Check if scenario should be executed based on names and tags"""
        if self._name_patterns and not any(p.search(scenario.name) for p in self._name_patterns):
            return False

        if self.tag_expression is not None:
            tags = getattr(scenario, 'effective_tags', scenario.tags)
            return self.tag_expression.evaluate([f"@{tag}" for tag in tags])

        return True

    async def run(self, paths: Optional[Iterable[Union[str, Path]]] = None) -> Dict[str, Any]:
        """Run all selected scenarios and write the configured reports"""
        self.load_glue()
        self._stop_requested = False

        results = {
            'features': [],
            'summary': {},
            'start_time': datetime.now().isoformat(),
        }

        jobs: List[Tuple[Dict[str, Any], Feature, Scenario]] = []
        for feature_file in self.discover_features(paths):
            feature = self.parse_feature_file(feature_file)
            if feature is None:
                logger.warning(f"Empty feature file: {feature_file}")
                continue

            feature_result = {
                'feature': feature.name,
                'file': str(feature_file),
                'tags': [str(tag) for tag in feature.tags],
                'scenarios': [],
                'start_time': datetime.now().isoformat(),
                'status': ScenarioStatus.SKIPPED.value,
            }
            results['features'].append(feature_result)
            jobs.extend((feature_result, feature, s) for s in self.collect_scenarios(feature))

        if jobs:
            scenario_results = await self._run_jobs(jobs)
            for (feature_result, _, _), scenario_result in zip(jobs, scenario_results):
                feature_result['scenarios'].append(scenario_result)
        else:
            logger.warning("No scenarios selected")

        for feature_result in results['features']:
            feature_result['status'] = self._feature_status(feature_result['scenarios'])
            feature_result['end_time'] = datetime.now().isoformat()

        results['end_time'] = datetime.now().isoformat()
        results['summary'] = self._summarize(results['features'])

        if self.config.formats:
            results['reports'] = self.report_collector.write_all(results, self.config.formats)

        return results

    async def _run_jobs(self, jobs) -> List[Dict[str, Any]]:
        semaphore = asyncio.Semaphore(max(1, self.config.parallel))

        async with self.playwright_factory() as playwright:
            lifecycle = ScenarioLifecycle(playwright, settings=self.settings)
            hooks = self._build_hooks(lifecycle)

            async def run_job(feature: Feature, scenario: Scenario) -> Dict[str, Any]:
                async with semaphore:
                    if self._stop_requested:
                        return self._skipped_result(feature, scenario)
                    return await self._run_scenario_with_retry(hooks, feature, scenario)

            return await asyncio.gather(*(run_job(feature, scenario) for _, feature, scenario in jobs))

    def _build_hooks(self, lifecycle: ScenarioLifecycle) -> HookRegistry:
        """Lifecycle setup runs before user hooks, lifecycle teardown after them"""
        hooks = HookRegistry()

        async def open_browser(world: ScenarioWorld, scenario: Scenario):
            await lifecycle.setup(world, scenario.name)

        async def close_browser(world: ScenarioWorld, scenario: Scenario, status: ScenarioStatus):
            await lifecycle.teardown(world, status)

        hooks.add_hook('before_scenario', open_browser)
        hooks.add_hook('after_scenario', close_browser)
        hooks.before.extend(self.hooks.before)
        hooks.after.extend(self.hooks.after)
        return hooks

    async def _run_scenario_with_retry(self, hooks: HookRegistry, feature: Feature,
                                       scenario: Scenario) -> Dict[str, Any]:
        attempt = 0
        while True:
            result = await self._execute_scenario(hooks, feature, scenario)
            result['attempts'] = attempt + 1

            if result['status'] != ScenarioStatus.FAILED.value or attempt >= self.config.retry:
                break

            attempt += 1
            logger.warning(f"Scenario '{scenario.name}' failed, retrying ({attempt}/{self.config.retry})")

        if self.config.fail_fast and result['status'] in self._failing_values():
            self._stop_requested = True
        return result

    async def _execute_scenario(
            self,
            hooks: HookRegistry,
            feature: Feature,
            scenario: Scenario
    ) -> Dict[str, Any]:
        """Execute a single scenario inside its own world"""
        result = self._scenario_record(scenario)

        def attach(data: Union[bytes, str], media_type: str, name: Optional[str] = None):
            if isinstance(data, str):
                data = data.encode('utf-8')
            result['attachments'].append(Attachment(data, media_type, name).to_dict())

        world = ScenarioWorld(attach=attach, scenario_name=scenario.name)
        steps = list(feature.background.steps if feature.background else []) + list(scenario.steps)
        status = ScenarioStatus.PASSED

        try:
            try:
                await asyncio.wait_for(hooks.run_before(world, scenario), timeout=self.config.timeout / 1000)
            except asyncio.TimeoutError:
                status = ScenarioStatus.FAILED
                result['error'] = f"Before hook timed out after {self.config.timeout} ms"
                logger.error(f"Scenario '{scenario.name}' setup timed out")
            except Exception as e:
                status = ScenarioStatus.FAILED
                result['error'] = f"Before hook failed: {e}"
                logger.error(f"Scenario '{scenario.name}' setup failed: {e}")

            for step in steps:
                if status is not ScenarioStatus.PASSED:
                    result['steps'].append(self._step_record(step, ScenarioStatus.SKIPPED))
                    continue

                status = await self._execute_step(world, step, result)
                if status is not ScenarioStatus.PASSED and 'error' not in result:
                    result['error'] = result['steps'][-1].get('error')

        except BaseException:
            # Interrupted: release the browser before the exception propagates
            status = ScenarioStatus.FAILED
            raise

        finally:
            errors = await hooks.run_after(world, scenario, status)

        if errors and status is ScenarioStatus.PASSED:
            status = ScenarioStatus.FAILED
            result['error'] = f"After hook failed: {errors[0]}"

        result['status'] = status.value
        result['end_time'] = datetime.now().isoformat()
        logger.info(f"Scenario '{scenario.name}': {status.value}")
        return result

    async def _execute_step(
            self,
            world: ScenarioWorld,
            step: Step,
            result: Dict[str, Any]
    ) -> ScenarioStatus:
        """Execute a single step and record its outcome"""
        step_result = self._step_record(step, ScenarioStatus.PASSED)
        world.current_step = step
        keyword = getattr(step, 'step_type', None) or step.keyword
        status = ScenarioStatus.PASSED

        try:
            step_def = self.step_registry.find_step_definition(keyword, step.name)
            if not step_def:
                raise UndefinedStepError(step.keyword, step.name, snippet_for(keyword, step.name))

            try:
                await asyncio.wait_for(
                    step_def.execute(world, step.name),
                    timeout=self.config.timeout / 1000
                )
            except asyncio.TimeoutError:
                raise StepTimeoutError(
                    f"Step timed out after {self.config.timeout} ms: {step.keyword} {step.name}"
                )

        except UndefinedStepError as e:
            status = ScenarioStatus.UNDEFINED
            step_result['error'] = str(e)
            step_result['snippet'] = e.snippet
            logger.warning(f"{e}. You can implement it with:\n{e.snippet}")

        except PendingStepError as e:
            status = ScenarioStatus.PENDING
            step_result['error'] = str(e)

        except Exception as e:
            status = ScenarioStatus.FAILED
            step_result['error'] = str(e) or e.__class__.__name__
            logger.error(f"Step failed: {step.keyword} {step.name}: {step_result['error']}")

        finally:
            step_result['status'] = status.value
            step_result['end_time'] = datetime.now().isoformat()
            result['steps'].append(step_result)

        return status

    def _scenario_record(self, scenario: Scenario) -> Dict[str, Any]:
        return {
            'name': scenario.name,
            'line': scenario.line,
            'tags': [str(tag) for tag in getattr(scenario, 'effective_tags', scenario.tags)],
            'steps': [],
            'attachments': [],
            'status': ScenarioStatus.PASSED.value,
            'start_time': datetime.now().isoformat(),
        }

    def _step_record(self, step: Step, status: ScenarioStatus) -> Dict[str, Any]:
        return {
            'keyword': step.keyword,
            'name': step.name,
            'line': step.line,
            'status': status.value,
            'start_time': datetime.now().isoformat(),
        }

    def _skipped_result(self, feature: Feature, scenario: Scenario) -> Dict[str, Any]:
        result = self._scenario_record(scenario)
        steps = list(feature.background.steps if feature.background else []) + list(scenario.steps)
        result['steps'] = [self._step_record(step, ScenarioStatus.SKIPPED) for step in steps]
        result['status'] = ScenarioStatus.SKIPPED.value
        result['end_time'] = result['start_time']
        result['attempts'] = 0
        return result

    def _failing_values(self) -> set:
        statuses = STRICT_FAILING_STATUSES if self.config.strict else FAILING_STATUSES
        return {status.value for status in statuses}

    def _feature_status(self, scenarios: List[Dict[str, Any]]) -> str:
        if not scenarios:
            return ScenarioStatus.SKIPPED.value
        if any(s['status'] in self._failing_values() for s in scenarios):
            return ScenarioStatus.FAILED.value
        if all(s['status'] == ScenarioStatus.SKIPPED.value for s in scenarios):
            return ScenarioStatus.SKIPPED.value
        return ScenarioStatus.PASSED.value

    def _summarize(self, features: List[Dict[str, Any]]) -> Dict[str, int]:
        summary = {'features': len(features), 'total': 0}
        summary.update({status.value: 0 for status in ScenarioStatus})

        for feature in features:
            for scenario in feature['scenarios']:
                summary['total'] += 1
                summary[scenario['status']] += 1

        return summary

    def has_failures(self, results: Dict[str, Any]) -> bool:
        """True when any scenario ended in a failing status"""
        failing = self._failing_values()
        return any(
            scenario['status'] in failing
            for feature in results.get('features', [])
            for scenario in feature['scenarios']
        )

    async def execute_feature(self, feature_path: Union[str, Path]) -> Dict[str, Any]:
        """Execute a single feature file and return its result"""
        results = await self.run([feature_path])
        if not results['features']:
            raise ValueError(f"No feature found in: {feature_path}")
        return results['features'][0]

    def execute(self, input_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute feature files

        Args:
            input_data: Dict with 'feature_path', 'feature_dir' or 'paths'

        Returns:
            Execution results
        """
        input_data = input_data or {}
        if input_data.get('feature_path'):
            paths = [input_data['feature_path']]
        elif input_data.get('feature_dir'):
            paths = [input_data['feature_dir']]
        else:
            paths = input_data.get('paths')

        return asyncio.run(self.run(paths))

    def validate(self) -> bool:
        """Validate executor configuration"""
        try:
            if self.settings is not None:
                self.settings.validate()
            for spec in self.config.formats:
                self.report_collector.parse_format(spec)
        except (ConfigurationError, ReportError) as e:
            logger.error(str(e))
            return False

        if self.config.parallel < 1:
            logger.error(f"Invalid parallel worker count: {self.config.parallel}")
            return False

        if self.config.retry < 0:
            logger.error(f"Invalid retry count: {self.config.retry}")
            return False

        if self.config.timeout <= 0:
            logger.error(f"Invalid step timeout: {self.config.timeout}")
            return False

        return True

    @staticmethod
    def get_info() -> Dict[str, Any]:
        """Get module information"""
        return {
            'name': 'Test Executor',
            'version': '0.1.0',
            'description': 'Executes Gherkin feature files using Playwright',
            'capabilities': [
                'Execute Gherkin scenarios and scenario outlines',
                'Multi-browser support',
                'Parallel execution',
                'Screenshot on failure',
                'HTML, JSON and JUnit reports',
            ]
        }
