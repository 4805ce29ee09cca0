"""
Recipes known to cookplan, keyed by "cookbook::recipe".
"""

from cookplan.cookbooks.elasticsearch import recipes as elasticsearch
from cookplan.cookbooks.rsyslog import recipes as rsyslog

RECIPES = {
    "rsyslog::default": rsyslog.default,
    "elasticsearch::curl": elasticsearch.curl,
    "elasticsearch::restart": elasticsearch.restart,
}
