from playwright.async_api import Locator

from .base_page import BasePage, data_test


class CheckoutPage(BasePage):
    PATH = "/checkout-step-one.html"

    FIRST_NAME = data_test("firstName")
    LAST_NAME = data_test("lastName")
    POSTAL_CODE = data_test("postalCode")
    CONTINUE_BUTTON = data_test("continue")
    FINISH_BUTTON = data_test("finish")
    COMPLETE_HEADER = data_test("complete-header")

    async def fill_information(self, first_name: str, last_name: str, postal_code: str):
        """Fill the customer form and continue to the overview"""
        await self.fill(self.FIRST_NAME, first_name)
        await self.fill(self.LAST_NAME, last_name)
        await self.fill(self.POSTAL_CODE, postal_code)
        await self.click(self.CONTINUE_BUTTON)
        await self.wait_for_load()

    async def finish_checkout(self):
        await self.click(self.FINISH_BUTTON)
        await self.wait_for_load()

    async def get_order_success_message(self) -> Locator:
        return self.loc(self.COMPLETE_HEADER)
