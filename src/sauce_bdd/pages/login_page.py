from playwright.async_api import Locator

from .base_page import BasePage, data_test


class LoginPage(BasePage):
    PATH = "/"

    USERNAME = data_test("username")
    PASSWORD = data_test("password")
    LOGIN_BUTTON = data_test("login-button")
    ERROR = data_test("error")

    async def login(self, username: str, password: str):
        """Submit the login form and wait for the resulting page to settle"""
        await self.fill(self.USERNAME, username)
        await self.fill(self.PASSWORD, password)
        await self.click(self.LOGIN_BUTTON)
        await self.wait_for_load()

    async def get_error_message(self) -> Locator:
        return self.loc(self.ERROR)
