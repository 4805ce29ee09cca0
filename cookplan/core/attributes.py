"""
AttributeResolver - turn raw node attributes into an AttributeSnapshot.

Raw attributes have the shape of a node JSON file:

    {
        "platform": {"name": "ubuntu", "family": "debian", "version": "12.04"},
        "rsyslog": {"use_relp": true},
        "elasticsearch": {"version": "0.90.5"}
    }

Resolution is pure: cookbook defaults are computed from the platform,
explicit values override them, and every value is type checked.
"""

import dataclasses
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from cookplan.core.errors import ConfigurationError
from cookplan.core.platform import Platform
from cookplan.cookbooks.elasticsearch import attributes as elasticsearch_attributes
from cookplan.cookbooks.elasticsearch.attributes import ElasticsearchAttributes
from cookplan.cookbooks.rsyslog import attributes as rsyslog_attributes
from cookplan.cookbooks.rsyslog.attributes import RsyslogAttributes
from cookplan.cookbooks.rsyslog.platforms import defaults_for
from cookplan.logging import get_logger

logger = get_logger(__name__)

SPOOL_DIR = "/var/spool/rsyslog"

# cookbook section -> (attribute class, platform defaults function)
COOKBOOKS = {
    "rsyslog": (RsyslogAttributes, rsyslog_attributes.default_attributes),
    "elasticsearch": (ElasticsearchAttributes, elasticsearch_attributes.default_attributes),
}


@dataclass(frozen=True)
class PlatformPaths:
    """Filesystem locations that differ per platform family."""
    config_prefix: str
    config_dir: str
    spool_dir: str = SPOOL_DIR

    @classmethod
    def for_prefix(cls, prefix: str) -> "PlatformPaths":
        prefix = prefix.rstrip("/") or "/"
        return cls(config_prefix=prefix, config_dir=f"{prefix}/rsyslog.d")

    @property
    def main_config(self) -> str:
        return f"{self.config_prefix}/rsyslog.conf"

    @property
    def rules_config(self) -> str:
        return f"{self.config_dir}/50-default.conf"


def paths_for(family: str) -> PlatformPaths:
    """Path lookup keyed by family, falling back to the /etc layout."""
    return PlatformPaths.for_prefix(defaults_for(family).config_prefix)


@dataclass(frozen=True)
class AttributeSnapshot:
    """Canonical, immutable view of a node for one convergence run."""
    platform: Platform
    paths: PlatformPaths
    rsyslog: RsyslogAttributes
    elasticsearch: ElasticsearchAttributes

    @property
    def family(self) -> str:
        return self.platform.family


def resolve(raw: Mapping[str, Any]) -> AttributeSnapshot:
    """
    Build an AttributeSnapshot from raw node attributes.

    Args:
        raw: Nested mapping with a "platform" section and optional
             per-cookbook sections

    Returns:
        AttributeSnapshot

    Raises:
        ConfigurationError: missing, unknown, mistyped or contradictory values
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Node attributes must be a mapping")

    unknown = set(raw) - {"platform"} - set(COOKBOOKS)
    if unknown:
        raise ConfigurationError(f"Unknown attribute sections: {', '.join(sorted(unknown))}")

    platform = _resolve_platform(raw.get("platform"))

    rsyslog = _resolve_cookbook("rsyslog", platform, raw.get("rsyslog"))
    rsyslog_attributes.check_tls(rsyslog)
    elasticsearch = _resolve_cookbook("elasticsearch", platform, raw.get("elasticsearch"))

    # config_prefix defaults to paths_for(family) unless the node overrides it
    paths = PlatformPaths.for_prefix(rsyslog.config_prefix)

    logger.debug("Resolved platform %s, config prefix %s", platform, paths.config_prefix)

    return AttributeSnapshot(
        platform=platform,
        paths=paths,
        rsyslog=rsyslog,
        elasticsearch=elasticsearch,
    )


def _resolve_platform(section: Any) -> Platform:
    if section is None:
        raise ConfigurationError("Missing 'platform' attributes")
    if not isinstance(section, Mapping):
        raise ConfigurationError("'platform' attributes must be a mapping")

    unknown = set(section) - {"name", "family", "version"}
    if unknown:
        raise ConfigurationError(f"Unknown platform attributes: {', '.join(sorted(unknown))}")

    name = section.get("name")
    family = section.get("family")
    version = section.get("version")

    if not name and not family:
        raise ConfigurationError("Platform needs a 'name' or a 'family'")
    if version is None or str(version).strip() == "":
        raise ConfigurationError("Missing platform 'version'")
    for key, value in (("name", name), ("family", family)):
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(f"Platform {key} must be a string, got {value!r}")

    return Platform.create(name, str(version), family)


def _resolve_cookbook(cookbook: str, platform: Platform, section: Any):
    cls, platform_defaults = COOKBOOKS[cookbook]

    if section is None:
        section = {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"'{cookbook}' attributes must be a mapping")

    fields = {f.name: f for f in dataclasses.fields(cls)}
    unknown = set(section) - set(fields)
    if unknown:
        raise ConfigurationError(
            f"Unknown {cookbook} attributes: {', '.join(sorted(unknown))}"
        )

    values: Dict[str, Any] = dict(platform_defaults(platform))
    values.update(section)

    coerced = {
        key: _coerce(f"{cookbook}.{key}", value, fields[key].type)
        for key, value in values.items()
    }
    return cls(**coerced)


def _coerce(key: str, value: Any, expected: Any) -> Any:
    """Check ``value`` against a field annotation, converting where lossless."""
    origin = typing.get_origin(expected)

    if origin is typing.Union:
        if value is None:
            return None
        inner = [arg for arg in typing.get_args(expected) if arg is not type(None)]
        return _coerce(key, value, inner[0])

    if origin is tuple:
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConfigurationError(f"{key} must be a list, got {value!r}")
        return tuple(_coerce(key, item, typing.get_args(expected)[0]) for item in value)

    if isinstance(expected, type) and issubclass(expected, Enum):
        if isinstance(value, expected):
            return value
        try:
            return expected(value)
        except ValueError:
            choices = ", ".join(member.value for member in expected)
            raise ConfigurationError(f"{key} must be one of {choices}, got {value!r}") from None

    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigurationError(f"{key} must be true or false, got {value!r}")
        return value

    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")
        return value

    if expected is str:
        if not isinstance(value, str):
            raise ConfigurationError(f"{key} must be a string, got {value!r}")
        return value

    return value


def snapshot_from(
    platform: Platform,
    rsyslog: Optional[Mapping[str, Any]] = None,
    elasticsearch: Optional[Mapping[str, Any]] = None,
) -> AttributeSnapshot:
    """Shortcut for resolve() when the platform is already known."""
    raw: Dict[str, Any] = {
        "platform": {"name": platform.name, "family": platform.family, "version": platform.version},
    }
    if rsyslog is not None:
        raw["rsyslog"] = dict(rsyslog)
    if elasticsearch is not None:
        raw["elasticsearch"] = dict(elasticsearch)
    return resolve(raw)
