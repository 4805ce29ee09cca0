"""
elasticsearch recipes.
"""

from cookplan.logging import get_logger
from cookplan.resources.pkg import Package
from cookplan.resources.service import Service

logger = get_logger(__name__)


def curl(ctx) -> None:
    """curl is used to talk to the node's HTTP API."""
    ctx.add(Package("curl"))


def restart(ctx) -> None:
    """Keep elasticsearch running and restart it when its tooling changes."""
    elasticsearch = ctx.node.elasticsearch

    ctx.include_recipe("elasticsearch::curl")

    service = ctx.add(Service(elasticsearch.service_name, running=True))
    ctx.subscribe(service, "restart", Package("curl"))

    logger.debug("Restart of %s requested", elasticsearch.release)
