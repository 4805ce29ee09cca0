"""
Per-family policy table for the rsyslog cookbook.

Every platform special case lives here so it can be audited in one place:
config prefix, modules loaded by rsyslog.conf, the rules template, the mail
log destination, the legacy syslog daemon to shut down and the SMF
manifest, if the family uses SMF.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from cookplan.core.errors import UnknownPlatformError
from cookplan.core.platform import Platform

LINUX_MODULES = ("imuxsock", "imklog")
ILLUMOS_MODULES = ("immark", "imsolaris", "imtcp", "imudp")


@dataclass(frozen=True)
class LegacySyslog:
    """A syslog daemon that must be shut down before rsyslog can start."""
    service: str
    running: Optional[bool] = None
    enabled: Optional[bool] = False
    # Only applies when the platform major version is below this
    before_major: Optional[int] = None

    def applies_to(self, platform: Platform) -> bool:
        return self.before_major is None or platform.major_version < self.before_major


@dataclass(frozen=True)
class PlatformProfile:
    family: str
    config_prefix: str = "/etc"
    modules: Tuple[str, ...] = LINUX_MODULES
    service_name: str = "rsyslog"
    user: str = "root"
    group: str = "adm"
    rules_template: str = "50-default.conf.j2"
    mail_log: str = "/var/log/mail.log"
    legacy_syslog: Optional[LegacySyslog] = None
    smf_manifest: Optional[str] = None


PROFILES = {
    "debian": PlatformProfile("debian"),
    "rhel": PlatformProfile(
        "rhel",
        mail_log="/var/log/maillog",
        legacy_syslog=LegacySyslog("syslog", running=False, enabled=False, before_major=6),
    ),
    "fedora": PlatformProfile("fedora", mail_log="/var/log/maillog"),
    "suse": PlatformProfile("suse"),
    "arch": PlatformProfile("arch"),
    "smartos": PlatformProfile(
        "smartos",
        config_prefix="/opt/local/etc",
        modules=ILLUMOS_MODULES,
        group="root",
        rules_template="illumos/50-default.conf.j2",
        legacy_syslog=LegacySyslog("system-log"),
    ),
    "omnios": PlatformProfile(
        "omnios",
        modules=ILLUMOS_MODULES,
        service_name="system/rsyslogd",
        group="root",
        rules_template="illumos/50-default.conf.j2",
        legacy_syslog=LegacySyslog("system-log"),
        smf_manifest="/var/svc/manifest/system/rsyslogd.xml",
    ),
}

# Attribute defaults for families without a profile. Deriving a policy for
# such a family still fails in profile_for().
DEFAULT_PROFILE = PlatformProfile("default")


def profile_for(family: str) -> PlatformProfile:
    """Strict lookup used by the recipe."""
    try:
        return PROFILES[family]
    except KeyError:
        raise UnknownPlatformError(family, cookbook="rsyslog") from None


def defaults_for(family: str) -> PlatformProfile:
    """Lenient lookup used for attribute and path defaults."""
    return PROFILES.get(family, DEFAULT_PROFILE)
