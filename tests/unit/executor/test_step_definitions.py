import types

import pytest

from bdd_e2e.executor import StepDefinitionRegistry, given, when, then, step
from bdd_e2e.executor.step_definitions import load_modules, snippet_for


class TestStepDefinitionRegistry:
    """Test StepDefinitionRegistry"""

    def test_register_step_definition(self):
        """Test registering step definitions"""
        registry = StepDefinitionRegistry()

        @registry.given(r'I have (\d+) items')
        def given_items(world, count):
            world.items = int(count)

        definitions = registry.list_definitions()
        assert len(definitions) == 1
        assert definitions[0]['keyword'] == 'given'
        assert definitions[0]['function'] == 'given_items'

    def test_find_matching_definition(self):
        """Test finding matching step definition"""
        registry = StepDefinitionRegistry()

        @registry.when(r'I click the "([^"]*)" button')
        def click_button(world, button_name):
            pass

        step_def = registry.find_step_definition('when', 'I click the "Login" button')
        assert step_def is not None
        assert step_def.function.__name__ == 'click_button'

        assert registry.find_step_definition('when', 'I do something else') is None
        assert registry.find_step_definition('then', 'I click the "Login" button') is None

    def test_patterns_must_match_whole_step(self):
        """A pattern does not match a longer step by prefix"""
        registry = StepDefinitionRegistry()

        @registry.then(r'I should see "([^"]*)"')
        def see(world, text):
            pass

        assert registry.find_step_definition('then', 'I should see "Hi" twice') is None

    def test_and_but_match_any_keyword(self):
        registry = StepDefinitionRegistry()

        @registry.then(r'the cart is empty')
        def cart_empty(world):
            pass

        assert registry.find_step_definition('And', 'the cart is empty') is not None
        assert registry.find_step_definition('But', 'the cart is empty') is not None

    def test_step_decorator_registers_every_keyword(self):
        registry = StepDefinitionRegistry()

        @registry.step(r'I wait')
        def wait(world):
            pass

        assert {d['keyword'] for d in registry.list_definitions()} == {'given', 'when', 'then'}

    @pytest.mark.asyncio
    async def test_execute_passes_groups(self):
        """Sync and async steps receive the captured groups"""
        registry = StepDefinitionRegistry()
        seen = {}

        @registry.when(r'I enter "([^"]*)" in "([^"]*)"')
        async def enter(world, value, field):
            seen['async'] = (value, field)

        @registry.when(r'I remember (?P<key>\w+)')
        def remember(world, key):
            seen['named'] = key

        await registry.find_step_definition('when', 'I enter "bob" in "user"').execute(
            None, 'I enter "bob" in "user"'
        )
        await registry.find_step_definition('when', 'I remember token').execute(None, 'I remember token')

        assert seen == {'async': ('bob', 'user'), 'named': 'token'}

    def test_register_from_module_keeps_stacked_markers(self):
        """Stacked module-level markers register every pattern"""
        module = types.ModuleType('login_steps')

        @given(r'I navigate to the login page')
        @when(r'I open the login page')
        def open_login(world):
            pass

        @step(r'I pause')
        def pause(world):
            pass

        @then(r'I am logged in')
        def logged_in(world):
            pass

        module.open_login = open_login
        module.pause = pause
        module.logged_in = logged_in

        registry = StepDefinitionRegistry()
        registry.register_from_module(module)

        assert registry.find_step_definition('given', 'I navigate to the login page') is not None
        assert registry.find_step_definition('when', 'I open the login page') is not None
        assert registry.find_step_definition('then', 'I pause') is not None
        assert len(registry.definitions) == 6

    def test_clear(self):
        registry = StepDefinitionRegistry()
        registry.add_definition('given', r'x', lambda world: None)

        registry.clear()

        assert registry.definitions == []


class TestLoadModules:
    """Test importing step and support modules from globs"""

    def test_load_modules_from_globs(self, tmp_path):
        steps_dir = tmp_path / 'features' / 'steps'
        steps_dir.mkdir(parents=True)
        (steps_dir / 'cart_steps.py').write_text(
            "from bdd_e2e import when\n"
            "\n"
            "@when(r'I add (\\d+) items')\n"
            "def add_items(world, count):\n"
            "    pass\n"
        )
        (steps_dir / '__init__.py').write_text('')

        modules = load_modules(['features/steps/**/*.py'], tmp_path)

        assert len(modules) == 1
        registry = StepDefinitionRegistry()
        registry.register_from_module(modules[0])
        assert registry.find_step_definition('when', 'I add 3 items') is not None

    def test_missing_directory_loads_nothing(self, tmp_path):
        assert load_modules(['features/steps/**/*.py'], tmp_path) == []


class TestSnippet:
    """Test snippets for undefined steps"""

    def test_snippet_captures_quoted_arguments(self):
        snippet = snippet_for('when', 'I search for "shoes" in "Sports"')

        assert snippet.startswith("from bdd_e2e import PendingStepError, when\n")
        assert "@when(r'I search for \"([^\"]*)\" in \"([^\"]*)\"')" in snippet
        assert 'async def step_impl(world, arg1, arg2):' in snippet
        assert 'raise PendingStepError()' in snippet

    def test_snippet_escapes_regex_characters(self):
        snippet = snippet_for('And', 'the total is $5.00?')

        assert snippet.startswith("from bdd_e2e import PendingStepError, step\n")
        assert "@step(r'the total is \\$5\\.00\\?')" in snippet
        assert 'async def step_impl(world):' in snippet

    def test_snippet_runs_when_pasted_into_a_module(self):
        namespace = {}

        exec(snippet_for('when', 'I add "shoes" to the cart'), namespace)

        assert namespace['step_impl']._step_definitions[0]['keyword'] == 'when'
