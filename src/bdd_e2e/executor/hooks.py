import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, List

from ..core.base import ScenarioStatus

logger = logging.getLogger(__name__)


@dataclass
class Hook:
    """A function run around every scenario"""
    kind: str  # before_scenario, after_scenario
    function: Callable
    name: str = ""

    async def run(self, *args) -> Any:
        result = self.function(*args)
        if inspect.isawaitable(result):
            return await result
        return result


class HookRegistry:
    """Registry for Before/After scenario hooks"""

    def __init__(self):
        self.before: List[Hook] = []
        self.after: List[Hook] = []

    def add_hook(self, kind: str, function: Callable) -> Hook:
        hook = Hook(kind=kind, function=function, name=getattr(function, '__name__', repr(function)))
        if kind == 'before_scenario':
            self.before.append(hook)
        elif kind == 'after_scenario':
            self.after.append(hook)
        else:
            raise ValueError(f"Unknown hook kind: {kind}")

        logger.debug(f"Registered {kind} hook: {hook.name}")
        return hook

    def before_scenario(self, func):
        """Decorator for hooks run before each scenario: func(world, scenario)"""
        self.add_hook('before_scenario', func)
        return func

    def after_scenario(self, func):
        """Decorator for hooks run after each scenario: func(world, scenario, status)"""
        self.add_hook('after_scenario', func)
        return func

    async def run_before(self, world: Any, scenario: Any) -> None:
        """Run before hooks in registration order; the first failure propagates"""
        for hook in self.before:
            await hook.run(world, scenario)

    async def run_after(self, world: Any, scenario: Any, status: ScenarioStatus) -> List[Exception]:
        """
        Run after hooks in reverse registration order.

        Every hook runs even if an earlier one raised; hooks after a failing
        one see the scenario as failed. Returns the errors so the runner can
        decide how they affect the scenario result.
        """
        errors = []
        for hook in reversed(self.after):
            try:
                await hook.run(world, scenario, status)
            except Exception as e:
                logger.error(f"After hook '{hook.name}' failed: {e}")
                errors.append(e)
                status = ScenarioStatus.FAILED
        return errors

    def register_from_module(self, module):
        """Register all hooks marked in a module"""
        for obj in list(vars(module).values()):
            kind = getattr(obj, '_scenario_hook', None)
            if kind and callable(obj):
                self.add_hook(kind, obj)

    def clear(self):
        self.before.clear()
        self.after.clear()


# Utility decorators for marking functions in support modules
def before_scenario(func):
    """Mark function as a before-scenario hook"""
    func._scenario_hook = 'before_scenario'
    return func


def after_scenario(func):
    """Mark function as an after-scenario hook"""
    func._scenario_hook = 'after_scenario'
    return func
