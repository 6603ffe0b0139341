from typing import Optional
from playwright.async_api import Page, Locator
import logging

logger = logging.getLogger(__name__)


def data_test(value: str) -> str:
    """CSS selector for the storefront's data-test attribute"""
    return f'[data-test="{value}"]'


class BasePage:
    """
    Base class for every Page Object.

    A page object is bound to exactly one scenario's Page. Selectors are kept
    as strings and turned into Locators on each call, so every action resolves
    against the live DOM instead of a stale element handle.
    """

    PATH = "/"

    def __init__(self, page: Page, base_url: str = "", timeout: int = 30000):
        self.page = page
        self.base_url = base_url
        self.timeout = timeout

    def loc(self, selector: str) -> Locator:
        return self.page.locator(selector)

    def url_for(self, path: Optional[str] = None) -> str:
        path = self.PATH if path is None else path
        if path.startswith(('http://', 'https://')):
            return path
        return self.base_url.rstrip('/') + '/' + path.lstrip('/')

    async def goto(self, path: Optional[str] = None):
        url = self.url_for(path)
        logger.debug(f"Navigating to {url}")
        await self.page.goto(url, timeout=self.timeout)
        await self.wait_for_load()

    async def wait_for_load(self):
        await self.page.wait_for_load_state("domcontentloaded", timeout=self.timeout)

    async def click(self, selector: str):
        await self.loc(selector).click(timeout=self.timeout)

    async def fill(self, selector: str, value: str):
        await self.loc(selector).fill(value, timeout=self.timeout)

    async def get_text(self, selector: str) -> str:
        return (await self.loc(selector).inner_text(timeout=self.timeout)).strip()

    @property
    def current_url(self) -> str:
        return self.page.url
