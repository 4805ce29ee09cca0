"""
File resources - declare directories and rendered templates.

Handles:
- Directories with owner, group and mode
- Files rendered from cookbook templates (Jinja2)

Writing anything to disk is the backend's job.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cookplan.core.resource import Resource


@dataclass(frozen=True)
class Directory(Resource):
    """
    Directory intent.

    Example:
        Directory("/etc/rsyslog.d", owner="root", group="root", mode=0o755)
    """

    path: str
    owner: Optional[str] = None
    group: Optional[str] = None
    mode: Optional[int] = None
    recursive: bool = False

    @property
    def name(self) -> str:
        return self.path

    def resource_type(self) -> str:
        return "directory"

    def desired_state(self) -> Dict[str, Any]:
        """Return desired directory state."""
        return {
            "exists": True,
            "type": "directory",
            "owner": self.owner,
            "group": self.group,
            "mode": self.mode,
        }


@dataclass(frozen=True)
class Template(Resource):
    """
    File rendered from a cookbook template.

    ``source`` names the template inside the cookbook, ``content`` holds the
    rendered text so the plan can be verified without a backend.

    Example:
        Template("/etc/rsyslog.conf",
                 source="rsyslog.conf.j2",
                 content=render_template("rsyslog", "rsyslog.conf.j2", node=...),
                 owner="root", group="root", mode=0o644)
    """

    path: str
    source: str
    content: str
    owner: Optional[str] = None
    group: Optional[str] = None
    mode: Optional[int] = None

    @property
    def name(self) -> str:
        return self.path

    def resource_type(self) -> str:
        return "template"

    def desired_state(self) -> Dict[str, Any]:
        """Return desired file state."""
        return {
            "exists": True,
            "type": "file",
            "content": self.content,
            "owner": self.owner,
            "group": self.group,
            "mode": self.mode,
        }

    def includes(self, text: str) -> bool:
        """Check whether the rendered content contains ``text``."""
        return text in self.content

    def matches(self, pattern: str) -> bool:
        """Check whether any rendered line matches a regular expression."""
        return re.search(pattern, self.content, re.MULTILINE) is not None
