import asyncio
import logging
from typing import Any, Callable, Optional, Union

from ..core.base import LifecycleState, ScenarioStatus
from ..core.config import BrowserSettings
from ..core.exceptions import BrowserLaunchError, ConfigurationError
from .world import ScenarioWorld

logger = logging.getLogger(__name__)

# Released in this order during teardown
RELEASE_ORDER = ("page", "session", "browser")


class ScenarioLifecycle:
    """
    Opens a browser, session and page before each scenario and releases them
    afterwards, attaching a full-page screenshot when the scenario failed.

    ``playwright`` is the started async Playwright driver. Browser settings are
    either injected or resolved through ``settings_factory`` at every setup.
    """

    def __init__(
            self,
            playwright: Any,
            settings: Optional[BrowserSettings] = None,
            settings_factory: Callable[[], BrowserSettings] = BrowserSettings.from_env
    ):
        self.playwright = playwright
        self.settings = settings
        self.settings_factory = settings_factory

    def resolve_settings(self) -> BrowserSettings:
        return self.settings if self.settings is not None else self.settings_factory()

    async def setup(self, world: ScenarioWorld, scenario_name: str = "") -> ScenarioWorld:
        """Launch browser, open session and page, and store them on the world"""
        world.scenario_name = scenario_name or world.scenario_name

        try:
            settings = self.resolve_settings()
            settings.validate()
        except ConfigurationError:
            world.state = LifecycleState.FAILED
            raise

        world.settings = settings

        logger.info(f"--- Executing scenario: {world.scenario_name} ---")
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Base URL: {settings.base_url}")

        try:
            browser_type = getattr(self.playwright, settings.browser)
            world.browser = await browser_type.launch(headless=settings.headless)
            world.session = await world.browser.new_context()
            world.page = await world.session.new_page()
        except Exception as e:
            world.state = LifecycleState.FAILED
            raise BrowserLaunchError(
                f"Could not open {settings.browser} for scenario '{world.scenario_name}': {e}"
            ) from e
        except asyncio.CancelledError:
            world.state = LifecycleState.FAILED
            raise

        world.state = LifecycleState.READY
        logger.info(f"Browser launched: {settings.browser} (headless: {settings.headless})")
        return world

    async def teardown(self, world: ScenarioWorld, status: Union[ScenarioStatus, str]) -> None:
        """Capture failure evidence, then release page, session and browser"""
        try:
            status = ScenarioStatus.from_value(status)
        except ValueError as e:
            logger.warning(f"{e}; treating scenario '{world.scenario_name}' as failed")
            status = ScenarioStatus.FAILED

        if status.is_failure:
            await self.capture_failure_evidence(world)

        for attribute in RELEASE_ORDER:
            await self.release(world, attribute)

        world.state = LifecycleState.CLOSED

    async def capture_failure_evidence(self, world: ScenarioWorld) -> bool:
        """Attach a full-page screenshot; failures here never mask the scenario's own"""
        if world.page is None:
            logger.debug(f"No page for '{world.scenario_name}', skipping failure screenshot")
            return False

        try:
            await world.take_and_attach_screenshot(
                f"{world.scenario_name}-failure-screenshot.png"
            )
        except Exception as e:
            logger.warning(f"Failed to capture screenshot for '{world.scenario_name}': {e}")
            return False

        return True

    async def release(self, world: ScenarioWorld, attribute: str) -> None:
        """Close one world handle; a no-op when it was never established"""
        handle = getattr(world, attribute)
        if handle is None:
            return

        setattr(world, attribute, None)
        try:
            await handle.close()
        except Exception as e:
            logger.warning(f"Failed to close {attribute} for '{world.scenario_name}': {e}")
