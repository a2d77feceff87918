from bdd_e2e import given, when, then


@when(r'I log in as "([^"]*)" with password "([^"]*)"')
async def log_in(world, username, password):
    await world.fill('#username', username)
    await world.fill('#password', password)
    await world.click('button[type="submit"]')
    world.store_data('username', username)


@given(r'I am logged in as "([^"]*)" with password "([^"]*)"')
async def logged_in(world, username, password):
    await world.goto('/login')
    await log_in(world, username, password)
    await world.require_page().wait_for_url('**/secure')


@then(r'the flash message should say "([^"]*)"')
async def verify_flash(world, message):
    flash = await world.text_of('#flash')
    assert message in flash, f"Expected flash '{message}', got '{flash.strip()}'"
