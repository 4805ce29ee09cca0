"""
Execute resource - declare commands.

Idempotency guards:
- creates: skip when this path already exists
- notified_only: never runs by itself, only when another resource notifies it
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from cookplan.core.resource import Action, Change, Resource, ResourcePlan


@dataclass(frozen=True)
class Execute(Resource):
    """
    Execute intent.

    Examples:
        # Run once (creates guard)
        Execute("unpack elasticsearch",
                command="tar xzf /tmp/elasticsearch.tar.gz -C /usr/local",
                creates="/usr/local/elasticsearch")

        # Only when notified
        Execute("import rsyslog manifest",
                command="svccfg import /var/svc/manifest/system/rsyslogd.xml",
                notified_only=True)
    """

    name: str
    command: str
    notified_only: bool = False
    creates: Optional[str] = None

    def resource_type(self) -> str:
        return "exec"

    def desired_state(self) -> Dict[str, Any]:
        """Return desired exec state."""
        return {"exists": True, "command": self.command}

    def diff(self, observed: Optional[Dict[str, Any]] = None) -> ResourcePlan:
        if self.notified_only:
            return ResourcePlan(Action.NONE, reason="Runs only when notified")

        actual = observed or {}
        if self.creates and actual.get("exists"):
            return ResourcePlan(Action.NONE, reason=f"{self.creates} already exists")

        return ResourcePlan(
            Action.CREATE,
            [Change("command", None, self.command)],
            "Command will run",
        )
