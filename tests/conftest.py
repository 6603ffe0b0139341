import os
import pytest
from unittest.mock import Mock, AsyncMock, MagicMock


def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: runs real scenarios against the live storefront")


def pytest_collection_modifyitems(config, items):
    if os.getenv("SAUCE_BDD_E2E") == "1":
        return
    skip_e2e = pytest.mark.skip(reason="set SAUCE_BDD_E2E=1 to run live browser scenarios")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


def make_locator():
    locator = AsyncMock()
    locator.count = AsyncMock(return_value=1)
    return locator


def make_page(url="https://www.saucedemo.com/"):
    """A Playwright Page double: locator() is synchronous, actions are awaited"""
    page = Mock()
    page.url = url
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.screenshot = AsyncMock()
    page.close = AsyncMock()
    locators = {}

    def locator(selector):
        if selector not in locators:
            locators[selector] = make_locator()
        return locators[selector]

    page.locator = Mock(side_effect=locator)
    page.locators = locators
    return page


def make_browser():
    """A Browser double whose new_context() hands out a fresh context and page each time"""
    browser = Mock()
    browser.contexts_opened = []

    async def new_context(**kwargs):
        context = Mock()
        context.set_default_timeout = Mock()
        context.set_default_navigation_timeout = Mock()
        context.new_page = AsyncMock(return_value=make_page())
        context.close = AsyncMock()
        context.tracing.start = AsyncMock()
        context.tracing.stop = AsyncMock()
        context.options = kwargs
        browser.contexts_opened.append(context)
        return context

    browser.new_context = AsyncMock(side_effect=new_context)
    browser.close = AsyncMock()
    return browser


def make_playwright(browser=None, launch_error=None):
    """Stand-in for async_playwright(): an async context manager yielding browser types"""
    playwright = Mock()
    playwright.devices = {
        'Desktop Chrome': {
            'user_agent': 'Mozilla/5.0 (X11; Linux x86_64) Chrome/120.0 Safari/537.36',
            'viewport': {'width': 1280, 'height': 720},
            'device_scale_factor': 1,
            'is_mobile': False,
            'has_touch': False,
            'default_browser_type': 'chromium',
        },
        'Pixel 5': {
            'user_agent': 'Mozilla/5.0 (Linux; Android 11; Pixel 5) Chrome/120.0 Mobile Safari/537.36',
            'viewport': {'width': 393, 'height': 727},
            'device_scale_factor': 2.75,
            'is_mobile': True,
            'has_touch': True,
            'default_browser_type': 'chromium',
        },
    }
    for name in ('chromium', 'firefox', 'webkit'):
        browser_type = Mock()
        if launch_error is not None:
            browser_type.launch = AsyncMock(side_effect=launch_error)
        else:
            browser_type.launch = AsyncMock(return_value=browser)
        setattr(playwright, name, browser_type)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    return Mock(return_value=manager), playwright


@pytest.fixture
def page():
    return make_page()


@pytest.fixture
def browser():
    return make_browser()
