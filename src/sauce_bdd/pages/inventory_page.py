import re

from .base_page import BasePage, data_test


def item_slug(item_name: str) -> str:
    """'Sauce Labs Backpack' -> 'sauce-labs-backpack'"""
    return re.sub(r'\s+', '-', item_name.strip().lower())


class InventoryPage(BasePage):
    PATH = "/inventory.html"
    URL_PATTERN = re.compile(r".*/inventory\.html")

    CART_LINK = ".shopping_cart_link"
    CART_BADGE = ".shopping_cart_badge"
    INVENTORY_LIST = data_test("inventory-list")

    def add_to_cart_button(self, item_name: str) -> str:
        return data_test(f"add-to-cart-{item_slug(item_name)}")

    async def add_item_to_cart(self, item_name: str):
        await self.click(self.add_to_cart_button(item_name))

    async def go_to_cart(self):
        await self.click(self.CART_LINK)
        await self.wait_for_load()

    async def cart_badge_count(self) -> int:
        badge = self.loc(self.CART_BADGE)
        if await badge.count() == 0:
            return 0
        return int((await badge.inner_text(timeout=self.timeout)).strip())

    async def is_loaded(self) -> bool:
        return bool(self.URL_PATTERN.match(self.current_url))
