"""
elasticsearch cookbook attributes.
"""

from dataclasses import dataclass
from typing import Any, Dict

from cookplan.core.platform import Platform


@dataclass(frozen=True)
class ElasticsearchAttributes:
    version: str = "0.90.5"
    service_name: str = "elasticsearch"

    @property
    def release(self) -> str:
        """Release label, e.g. elasticsearch-0.90.5"""
        return f"elasticsearch-{self.version}"


def default_attributes(platform: Platform) -> Dict[str, Any]:
    return {}
