"""
Platform information (OS name, platform family, version).
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

# Platform name -> platform family, as ohai reports them.
PLATFORM_FAMILIES = {
    "ubuntu": "debian",
    "debian": "debian",
    "linuxmint": "debian",
    "raspbian": "debian",
    "redhat": "rhel",
    "rhel": "rhel",
    "centos": "rhel",
    "scientific": "rhel",
    "oracle": "rhel",
    "amazon": "rhel",
    "rocky": "rhel",
    "almalinux": "rhel",
    "fedora": "fedora",
    "suse": "suse",
    "opensuse": "suse",
    "opensuse-leap": "suse",
    "sles": "suse",
    "arch": "arch",
    "smartos": "smartos",
    "omnios": "omnios",
}

_LEADING_INT = re.compile(r"^\s*(\d+)")


def family_for(name: str) -> str:
    """Map a platform name to its family; unknown names are their own family."""
    return PLATFORM_FAMILIES.get(name.lower(), name.lower())


def version_tuple(version: str) -> Tuple[int, ...]:
    """
    Numeric components of a dotted version.

    "12.04" -> (12, 4), "6.3" -> (6, 3), "joyent_20130111T180733Z" -> (0,)
    """
    parts = []
    for piece in version.split("."):
        match = _LEADING_INT.match(piece)
        if not match:
            break
        parts.append(int(match.group(1)))
    return tuple(parts) or (0,)


@dataclass(frozen=True)
class Platform:
    """Platform information (name, family, version)."""
    name: str  # ubuntu, redhat, smartos, omnios...
    family: str  # debian, rhel, smartos, omnios...
    version: str

    @classmethod
    def create(cls, name: Optional[str], version: str, family: Optional[str] = None) -> "Platform":
        """Build a platform, filling the family from the name when absent."""
        if family is None:
            family = family_for(name)
        return cls(name=(name or family).lower(), family=family.lower(), version=str(version))

    @classmethod
    def detect(cls) -> "Platform":
        """
        Detect the local platform.

        Returns:
            Platform information for the host running cookplan
        """
        import distro

        name = distro.id() or "unknown"
        return cls.create(name, distro.version() or "0")

    @property
    def major_version(self) -> int:
        """Leading integer of the version, 0 when there is none."""
        return version_tuple(self.version)[0]

    def version_at_least(self, version: str) -> bool:
        """Compare dotted numeric versions, e.g. "12.04" >= "10.10"."""
        return version_tuple(self.version) >= version_tuple(version)

    def __str__(self):
        return f"{self.name} {self.version} ({self.family})"
