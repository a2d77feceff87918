import re
import sys
import glob
import inspect
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Callable, Pattern, Optional, Any, Iterable, Union
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

STEP_KEYWORDS = ('given', 'when', 'then')


@dataclass
class StepDefinition:
    """Represents a step definition with its pattern and function"""
    keyword: str  # given, when, then
    pattern: Pattern
    function: Callable
    description: str = ""

    def match(self, step_text: str) -> Optional[re.Match]:
        return self.pattern.fullmatch(step_text.strip())

    async def execute(self, world: Any, step_text: str) -> Any:
        """Execute the step function with extracted parameters"""
        match = self.match(step_text)
        if not match:
            raise ValueError(f"Step text doesn't match pattern: {step_text}")

        if match.re.groupindex:
            args, kwargs = (), match.groupdict()
        else:
            args, kwargs = match.groups(), {}

        # Execute function (handle both sync and async)
        if inspect.iscoroutinefunction(self.function):
            return await self.function(world, *args, **kwargs)
        else:
            return self.function(world, *args, **kwargs)


class StepDefinitionRegistry:
    """Registry for step definitions"""

    def __init__(self):
        self.definitions: List[StepDefinition] = []
        self._keyword_aliases = {
            'and': list(STEP_KEYWORDS),
            'but': list(STEP_KEYWORDS),
            '*': list(STEP_KEYWORDS),
            'step': list(STEP_KEYWORDS),
        }

    def add_definition(self, keyword: str, pattern: Union[str, Pattern], function: Callable,
                       description: str = ""):
        """Add a step definition to registry"""
        # Compile pattern if it's a string
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)

        definition = StepDefinition(
            keyword=keyword.lower(),
            pattern=pattern,
            function=function,
            description=description
        )

        self.definitions.append(definition)
        logger.debug(f"Registered step: {keyword} {pattern.pattern}")

    def given(self, pattern: str, description: str = ""):
        """Decorator for Given steps"""

        def decorator(func):
            self.add_definition('given', pattern, func, description)
            return func

        return decorator

    def when(self, pattern: str, description: str = ""):
        """Decorator for When steps"""

        def decorator(func):
            self.add_definition('when', pattern, func, description)
            return func

        return decorator

    def then(self, pattern: str, description: str = ""):
        """Decorator for Then steps"""

        def decorator(func):
            self.add_definition('then', pattern, func, description)
            return func

        return decorator

    def step(self, pattern: str, description: str = ""):
        """Decorator for any step type"""

        def decorator(func):
            for keyword in STEP_KEYWORDS:
                self.add_definition(keyword, pattern, func, description)
            return func

        return decorator

    def find_step_definition(self, keyword: str, step_text: str) -> Optional[StepDefinition]:
        """Find matching step definition for given step text"""
        keyword = keyword.lower().strip()
        possible_keywords = self._keyword_aliases.get(keyword, [keyword])

        for definition in self.definitions:
            if definition.keyword in possible_keywords and definition.match(step_text):
                logger.debug(f"Found matching step definition: {definition.pattern.pattern}")
                return definition

        logger.debug(f"No step definition found for: {keyword} {step_text}")
        return None

    def list_definitions(self) -> List[Dict[str, str]]:
        """List all registered step definitions"""
        return [
            {
                'keyword': defn.keyword,
                'pattern': defn.pattern.pattern,
                'description': defn.description,
                'function': defn.function.__name__
            }
            for defn in self.definitions
        ]

    def clear(self):
        """Clear all registered definitions"""
        self.definitions.clear()

    def register_from_module(self, module: ModuleType):
        """Register all step definitions marked in a module, in definition order"""
        for obj in list(vars(module).values()):
            for step_info in getattr(obj, '_step_definitions', ()):
                self.add_definition(
                    step_info['keyword'],
                    step_info['pattern'],
                    obj,
                    step_info.get('description', '')
                )


def load_modules(patterns: Iterable[str], base_dir: Optional[Path] = None) -> List[ModuleType]:
    """Import every Python file matched by the glob patterns"""
    base_dir = Path(base_dir or Path.cwd())
    modules = []
    seen = set()

    for pattern in patterns:
        full_pattern = pattern if Path(pattern).is_absolute() else str(base_dir / pattern)
        for filename in sorted(glob.glob(full_pattern, recursive=True)):
            path = Path(filename).resolve()
            if path in seen or path.suffix != '.py' or path.name.startswith('__'):
                continue
            seen.add(path)
            modules.append(_import_file(path))

    return modules


def _import_file(path: Path) -> ModuleType:
    module_name = f"bdd_e2e_glue_{abs(hash(str(path)))}_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    logger.debug(f"Loaded glue module {path}")
    return module


def snippet_for(keyword: str, step_text: str) -> str:
    """Render an async step definition skeleton for an undefined step"""
    keyword = keyword.lower().strip()
    if keyword not in STEP_KEYWORDS:
        keyword = 'step'

    parts = re.split(r'"[^"]*"', step_text.strip())
    escaped = (re.escape(part).replace('\\ ', ' ') for part in parts)
    pattern = '"([^"]*)"'.join(escaped).replace("'", "\\'")
    params = ''.join(f", arg{i + 1}" for i in range(len(parts) - 1))

    return (
        f"from bdd_e2e import PendingStepError, {keyword}\n"
        f"\n"
        f"\n"
        f"@{keyword}(r'{pattern}')\n"
        f"async def step_impl(world{params}):\n"
        f"    raise PendingStepError()\n"
    )


# Utility decorators for marking functions as step definitions
def _mark(keyword: str, pattern: str, description: str):
    def decorator(func):
        if '_step_definitions' not in func.__dict__:
            func._step_definitions = []
        func._step_definitions.append({
            'keyword': keyword,
            'pattern': pattern,
            'description': description
        })
        return func

    return decorator


def given(pattern: str, description: str = ""):
    """Mark function as a Given step"""
    return _mark('given', pattern, description)


def when(pattern: str, description: str = ""):
    """Mark function as a When step"""
    return _mark('when', pattern, description)


def then(pattern: str, description: str = ""):
    """Mark function as a Then step"""
    return _mark('then', pattern, description)


def step(pattern: str, description: str = ""):
    """Mark function as a step matching any keyword"""

    def decorator(func):
        for keyword in STEP_KEYWORDS:
            _mark(keyword, pattern, description)(func)
        return func

    return decorator
