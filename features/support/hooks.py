import logging

from bdd_e2e import before_scenario, after_scenario

logger = logging.getLogger(__name__)


@before_scenario
async def default_timeouts(world, scenario):
    world.require_page().set_default_timeout(10000)


@after_scenario
def log_result(world, scenario, status):
    logger.info(f"Finished '{scenario.name}' ({world.settings.environment}): {status.value}")
