import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin

from playwright.async_api import Browser, BrowserContext, Page

from ..core.base import LifecycleState
from ..core.config import BrowserSettings
from ..core.exceptions import (
    NoBrowserAvailableError,
    NoPageAvailableError,
    NoSessionAvailableError,
)

logger = logging.getLogger(__name__)


@dataclass
class ScenarioWorld:
    """
    Per-scenario execution context shared by hooks and step definitions.

    Holds the browser, session and page opened for one scenario and the
    capability to attach evidence to that scenario's report record. A new
    instance is created for every scenario attempt.
    """
    attach: Optional[Callable[..., Any]] = None
    settings: BrowserSettings = field(default_factory=BrowserSettings)
    browser: Optional[Browser] = None
    session: Optional[BrowserContext] = None
    page: Optional[Page] = None
    state: LifecycleState = LifecycleState.UNINITIALIZED
    scenario_name: str = ""
    test_data: Dict[str, Any] = field(default_factory=dict)
    current_step: Optional[Any] = None

    def require_browser(self) -> Browser:
        if self.browser is None:
            raise NoBrowserAvailableError()
        return self.browser

    def require_session(self) -> BrowserContext:
        if self.session is None:
            raise NoSessionAvailableError()
        return self.session

    def require_page(self) -> Page:
        if self.page is None:
            raise NoPageAvailableError()
        return self.page

    async def attach_evidence(self, data: bytes, media_type: str, name: Optional[str] = None):
        """Attach binary evidence to the scenario's report record"""
        if self.attach is None:
            logger.debug(f"No attach capability, dropping {media_type} evidence")
            return

        result = self.attach(data, media_type, name)
        if inspect.isawaitable(result):
            await result

    async def take_and_attach_screenshot(self, name: str = "screenshot.png") -> bytes:
        """Capture a full-page screenshot and attach it as image/png"""
        page = self.require_page()
        buffer = await page.screenshot(full_page=True)
        await self.attach_evidence(buffer, "image/png", name)
        return buffer

    def resolve_url(self, path: str) -> str:
        """Resolve a path against the configured base URL"""
        if path.startswith(('http://', 'https://')) or not self.settings.base_url:
            return path
        return urljoin(self.settings.base_url.rstrip('/') + '/', path.lstrip('/'))

    async def goto(self, url: str, timeout: int = 10000, **options):
        """Navigate the page and wait for the load event"""
        page = self.require_page()
        await page.goto(self.resolve_url(url), **options)
        await page.wait_for_load_state('load', timeout=timeout)

    async def fill(self, selector: str, value: str):
        await self.require_page().fill(selector, value)

    async def click(self, selector: str):
        await self.require_page().click(selector)

    async def text_of(self, selector: str = "body") -> str:
        """Get the rendered text of an element"""
        return await self.require_page().inner_text(selector)

    async def title(self) -> str:
        return await self.require_page().title()

    def store_data(self, key: str, value: Any):
        """Store data for use in later steps"""
        self.test_data[key] = value

    def get_data(self, key: str, default: Any = None) -> Any:
        """Retrieve stored data"""
        return self.test_data.get(key, default)

    @property
    def current_url(self) -> str:
        return self.require_page().url
