from typing import List

from .base_page import BasePage, data_test


class CartPage(BasePage):
    PATH = "/cart.html"

    CHECKOUT_BUTTON = data_test("checkout")
    ITEM_NAME = ".inventory_item_name"

    async def checkout(self):
        await self.click(self.CHECKOUT_BUTTON)
        await self.wait_for_load()

    async def item_names(self) -> List[str]:
        return [name.strip() for name in await self.loc(self.ITEM_NAME).all_inner_texts()]
