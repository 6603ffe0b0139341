"""Login screen steps"""

from playwright.async_api import Page, expect

from ..executor.step_definitions import given, when, then
from ..executor.test_context import TestContext
from ..pages import LoginPage, InventoryPage

LOCKED_OUT_MESSAGE = "Epic sadface: Sorry, this user has been locked out."


@given("I am on the login page")
async def open_login_page(login_page: LoginPage):
    await login_page.goto()


@when("I login with valid credentials")
async def login_as_standard_user(login_page: LoginPage, session: TestContext):
    await login_page.login(*session.credentials_for('standard'))


@when("I login with locked out user credentials")
async def login_as_locked_out_user(login_page: LoginPage, session: TestContext):
    await login_page.login(*session.credentials_for('locked_out'))


@when("I login as {string} with password {string}")
async def login_with(login_page: LoginPage, username: str, password: str):
    await login_page.login(username, password)


@then("I should see the inventory page")
async def see_inventory_page(page: Page):
    await expect(page).to_have_url(InventoryPage.URL_PATTERN)


@then("I should see a locked out error message")
async def see_locked_out_error(login_page: LoginPage):
    error = await login_page.get_error_message()
    await expect(error).to_be_visible()
    await expect(error).to_contain_text(LOCKED_OUT_MESSAGE)


@then("I should see the error message {string}")
async def see_error_message(login_page: LoginPage, message: str):
    error = await login_page.get_error_message()
    await expect(error).to_be_visible()
    await expect(error).to_contain_text(message)
