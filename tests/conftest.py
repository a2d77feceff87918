from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

PAGE_TEXT = "Welcome to the example page"
SCREENSHOT = b"\x89PNG\r\n\x1a\nfake-image"


def make_page(text: str = PAGE_TEXT):
    page = MagicMock(name="page")
    page.url = "https://example.com/"
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.fill = AsyncMock()
    page.click = AsyncMock()
    page.inner_text = AsyncMock(return_value=text)
    page.title = AsyncMock(return_value="Example Domain")
    page.screenshot = AsyncMock(return_value=SCREENSHOT)
    page.close = AsyncMock()
    return page


def make_browser(page=None):
    page = page or make_page()

    session = MagicMock(name="session")
    session.new_page = AsyncMock(return_value=page)
    session.close = AsyncMock()

    browser = MagicMock(name="browser")
    browser.new_context = AsyncMock(return_value=session)
    browser.close = AsyncMock()
    return browser


class FakePlaywright:
    """Stands in for the started async Playwright driver"""

    def __init__(self):
        self.browsers = []
        for name in ("chromium", "firefox", "webkit"):
            browser_type = MagicMock(name=name)
            browser_type.launch = AsyncMock(side_effect=self._launch)
            setattr(self, name, browser_type)

    def _launch(self, **kwargs):
        browser = make_browser()
        browser.launch_kwargs = kwargs
        self.browsers.append(browser)
        return browser


@pytest.fixture
def fake_playwright():
    return FakePlaywright()


@pytest.fixture
def playwright_factory(fake_playwright):
    @asynccontextmanager
    async def factory():
        yield fake_playwright

    return factory


@pytest.fixture
def browser_factory():
    return make_browser
