import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict

import click
from behave.parser import ParserError

from . import __version__
from .core import (
    BDDE2EError,
    BrowserSettings,
    ConfigManager,
    SUPPORTED_BROWSERS,
    load_environment,
)
from .executor import ExecutorConfig, TestExecutor

STATUS_ICONS = {
    'passed': '✅',
    'failed': '❌',
    'pending': '⏸',
    'undefined': '❓',
    'skipped': '⏭',
}


@click.group()
@click.option('--config', '-c', type=click.Path(), help='Runner profile (YAML or JSON)')
@click.option('--env-file', type=click.Path(), help='.env file to load (default: ./.env)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, env_file, verbose):
    """bdd-e2e - Gherkin scenarios driven through Playwright"""
    config_path = Path(config) if config else None
    ctx.obj = ConfigManager(config_path)

    level = logging.DEBUG if verbose else ctx.obj.get('general.log_level', 'INFO')
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    load_environment(Path(env_file) if env_file else None)


@cli.command()
def version():
    """Show version information"""
    click.echo(f"bdd-e2e v{__version__}")


@cli.command()
@click.argument('paths', nargs=-1, type=click.Path())
@click.option('--browser', '-b', type=click.Choice(SUPPORTED_BROWSERS), help='Browser engine')
@click.option('--headless/--headed', default=None, help='Browser visibility (default: headless)')
@click.option('--base-url', help='Base URL relative paths are resolved against')
@click.option('--tags', '-t', help='Tag expression, e.g. "@login and not @wip"')
@click.option('--name', '-n', 'names', multiple=True, help='Only run scenarios whose name matches')
@click.option('--parallel', '-p', type=int, help='Number of scenarios run concurrently')
@click.option('--retry', type=int, help='Retries for failed scenarios')
@click.option('--timeout', type=int, help='Step timeout in milliseconds')
@click.option('--format', '-f', 'formats', multiple=True, help='Report as <format>:<path>')
@click.option('--fail-fast', is_flag=True, default=None, help='Stop after the first failing scenario')
@click.pass_context
def run(ctx, paths, browser, headless, base_url, tags, names, parallel, retry, timeout,
        formats, fail_fast):
    """Run feature files"""
    manager: ConfigManager = ctx.obj

    try:
        config = ExecutorConfig.from_config_manager(
            manager,
            tags=tags,
            names=list(names) or None,
            parallel=parallel,
            retry=retry,
            timeout=timeout,
            formats=list(formats) or None,
            fail_fast=fail_fast,
        )
        settings = _browser_overrides(browser=browser, headless=headless, base_url=base_url)

        executor = TestExecutor(config, settings=settings)
        if not executor.validate():
            ctx.exit(2)

        results = asyncio.run(executor.run(list(paths) or None))

    except (BDDE2EError, ParserError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(2)

    _print_summary(results)
    if executor.has_failures(results):
        ctx.exit(1)


@cli.command()
@click.pass_context
def steps(ctx):
    """List registered step definitions"""
    executor = TestExecutor(ExecutorConfig.from_config_manager(ctx.obj))
    executor.load_glue()

    grouped: Dict[str, list] = {}
    for defn in executor.step_registry.list_definitions():
        grouped.setdefault(defn['keyword'].upper(), []).append(defn)

    for keyword in ['GIVEN', 'WHEN', 'THEN']:
        if keyword in grouped:
            click.echo(f"\n{keyword} Steps ({len(grouped[keyword])}):")
            click.echo("-" * 40)
            for defn in grouped[keyword]:
                click.echo(f"  {defn['pattern']}  ({defn['function']})")


@cli.command()
@click.argument('project_name')
def init(project_name):
    """Initialize a new bdd-e2e project"""
    project_path = Path(project_name)

    if project_path.exists():
        click.echo(f"Error: Directory '{project_name}' already exists", err=True)
        return

    (project_path / "features" / "steps").mkdir(parents=True)
    (project_path / "features" / "support").mkdir()
    (project_path / "reports").mkdir()

    manager = ConfigManager(project_path / "bdd-e2e.yaml")
    manager.save()

    (project_path / ".env.example").write_text(
        "BROWSER=chromium\nHEADLESS=true\nBASE_URL=https://example.com\nENV=dev\n"
    )
    (project_path / "features" / "example.feature").write_text(EXAMPLE_FEATURE)
    (project_path / "features" / "steps" / "example_steps.py").write_text(EXAMPLE_STEPS)
    (project_path / "features" / "support" / "hooks.py").write_text(EXAMPLE_HOOKS)

    click.echo(f"✅ Created bdd-e2e project: {project_name}")
    click.echo(f"   {project_name}/")
    click.echo(f"   ├── features/         # Feature files")
    click.echo(f"   │   ├── steps/        # Step definitions")
    click.echo(f"   │   └── support/      # Scenario hooks")
    click.echo(f"   ├── reports/          # HTML, JSON and JUnit reports")
    click.echo(f"   ├── .env.example      # Browser and environment settings")
    click.echo(f"   └── bdd-e2e.yaml      # Runner profile")


def _browser_overrides(**overrides: Any):
    """Settings from the environment with CLI overrides, or None when nothing is overridden"""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        return None
    return replace(BrowserSettings.from_env(), **overrides)


def _print_summary(results: Dict[str, Any]):
    click.echo("\n" + "=" * 60)
    click.echo("EXECUTION SUMMARY")
    click.echo("=" * 60)

    for feature in results['features']:
        click.echo(f"\nFeature: {feature['feature']} ({feature['file']})")
        for scenario in feature['scenarios']:
            icon = STATUS_ICONS.get(scenario['status'], '')
            click.echo(f"  {icon} {scenario['name']} [{scenario['status']}]")
            if scenario.get('error') and scenario['status'] != 'passed':
                click.echo(f"      {scenario['error']}")

    summary = results['summary']
    counts = ', '.join(f"{summary[s]} {s}" for s in STATUS_ICONS if summary.get(s))
    click.echo(f"\n{summary['total']} scenarios ({counts or 'none run'})")
    for report in results.get('reports', []):
        click.echo(f"📄 {report}")
    click.echo("=" * 60)


EXAMPLE_FEATURE = """Feature: Home page

  @smoke
  Scenario: Home page loads
    Given I am on the home page
    Then I should see "Example Domain"
"""

EXAMPLE_STEPS = """from bdd_e2e import when, then


@when(r'I follow the "([^"]*)" link')
async def follow_link(world, text):
    await world.require_page().get_by_role('link', name=text).click()


@then(r'the heading should read "([^"]*)"')
async def verify_heading(world, expected):
    heading = await world.text_of('h1')
    assert heading == expected, f"Expected heading '{expected}', got '{heading}'"
"""

EXAMPLE_HOOKS = """import logging

from bdd_e2e import before_scenario, after_scenario

logger = logging.getLogger(__name__)


@before_scenario
async def log_start(world, scenario):
    logger.info(f"Starting '{scenario.name}' against {world.settings.base_url}")


@after_scenario
async def log_finish(world, scenario, status):
    logger.info(f"Finished '{scenario.name}': {status.value}")
"""


def main():
    cli()


if __name__ == '__main__':
    main()
