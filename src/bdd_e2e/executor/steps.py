"""
Built-in browser steps.

Thin glue over ScenarioWorld helpers; every interaction is an ordinary call
into the Playwright page owned by the scenario.
"""
from ..core.exceptions import PendingStepError
from .step_definitions import given, when, then, step
from .world import ScenarioWorld


@given(r'I am on the home page')
@when(r'I open the home page')
async def open_home_page(world: ScenarioWorld):
    await world.goto('/')


@given(r'I navigate to "([^"]*)"')
@when(r'I navigate to "([^"]*)"')
async def navigate_to(world: ScenarioWorld, path: str):
    await world.goto(path)


@when(r'I fill "([^"]*)" with "([^"]*)"')
async def fill_field(world: ScenarioWorld, selector: str, value: str):
    await world.fill(selector, value)


@when(r'I click "([^"]*)"')
async def click_element(world: ScenarioWorld, selector: str):
    await world.click(selector)


@then(r'I should see "([^"]*)"')
@then(r'the page should contain "([^"]*)"')
async def verify_text(world: ScenarioWorld, expected_text: str):
    page_text = await world.text_of('body')
    assert expected_text in page_text, f"Text '{expected_text}' not found on page"


@then(r'"([^"]*)" should contain "([^"]*)"')
async def verify_element_text(world: ScenarioWorld, selector: str, expected_text: str):
    text = await world.text_of(selector)
    assert expected_text in text, f"Expected '{expected_text}' in {selector}, got '{text}'"


@then(r'the page title should be "([^"]*)"')
async def verify_title(world: ScenarioWorld, expected_title: str):
    title = await world.title()
    assert title == expected_title, f"Expected title '{expected_title}', got '{title}'"


@then(r'the URL should contain "([^"]*)"')
async def verify_url(world: ScenarioWorld, fragment: str):
    assert fragment in world.current_url, f"URL '{world.current_url}' does not contain '{fragment}'"


@step(r'this step is pending')
def pending_step(world: ScenarioWorld):
    raise PendingStepError()
