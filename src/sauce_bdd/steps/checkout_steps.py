"""Inventory, cart and checkout steps"""

from playwright.async_api import expect

from ..executor.step_definitions import given, when, then
from ..executor.test_context import TestContext
from ..pages import LoginPage, InventoryPage, CartPage, CheckoutPage

ORDER_SUCCESS_MESSAGE = "Thank you for your order!"


@given("I am logged in")
async def logged_in(login_page: LoginPage, session: TestContext):
    await login_page.goto()
    await login_page.login(*session.credentials_for('standard'))


@when("I add {string} to the cart")
async def add_to_cart(inventory_page: InventoryPage, item_name: str):
    await inventory_page.add_item_to_cart(item_name)


@when("I proceed to checkout from the cart")
async def proceed_to_checkout(inventory_page: InventoryPage, cart_page: CartPage):
    await inventory_page.go_to_cart()
    await cart_page.checkout()


@when("I fill in my information with {string}, {string}, {string}")
async def fill_information(checkout_page: CheckoutPage, first_name: str, last_name: str, postal_code: str):
    await checkout_page.fill_information(first_name, last_name, postal_code)


@when("I finish the checkout")
async def finish_checkout(checkout_page: CheckoutPage):
    await checkout_page.finish_checkout()


@then("I should see the order success message")
async def see_order_success(checkout_page: CheckoutPage):
    message = await checkout_page.get_order_success_message()
    await expect(message).to_be_visible()
    await expect(message).to_have_text(ORDER_SUCCESS_MESSAGE)


@then("the cart badge should show {int}")
async def cart_badge_shows(inventory_page: InventoryPage, count: int):
    actual = await inventory_page.cart_badge_count()
    assert actual == count, f"Expected {count} item(s) in the cart badge, found {actual}"
