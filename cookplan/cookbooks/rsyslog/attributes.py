"""
rsyslog cookbook attributes.

Defaults match the Chef cookbook. Platform-dependent values (paths,
modules, service name, file ownership) come from the platform table and
can still be overridden per node.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from cookplan.core.errors import ConfigurationError
from cookplan.core.platform import Platform
from cookplan.cookbooks.rsyslog.platforms import LINUX_MODULES, defaults_for


class Protocol(Enum):
    """Transport used to forward logs."""
    TCP = "tcp"  # reliable stream
    UDP = "udp"  # unreliable datagram


@dataclass(frozen=True)
class RsyslogAttributes:
    use_relp: bool = False
    protocol: Protocol = Protocol.TCP
    enable_tls: bool = False
    tls_ca_file: Optional[str] = None
    max_message_size: str = "2k"
    preserve_fqdn: str = "off"
    high_precision_timestamps: bool = False
    repeated_msg_reduction: str = "on"
    enable_imklog: bool = True
    default_file_template: Optional[str] = None
    rate_limit_interval: Optional[int] = None
    rate_limit_burst: Optional[int] = None
    config_prefix: str = "/etc"
    service_name: str = "rsyslog"
    user: str = "root"
    group: str = "adm"
    priv_separation: bool = False
    modules: Tuple[str, ...] = LINUX_MODULES

    @property
    def tls_active(self) -> bool:
        """TLS only takes effect once a CA file is configured."""
        return self.enable_tls and bool(self.tls_ca_file)

    @property
    def loaded_modules(self) -> Tuple[str, ...]:
        if self.enable_imklog:
            return self.modules
        return tuple(m for m in self.modules if m != "imklog")


def default_attributes(platform: Platform) -> Dict[str, Any]:
    """Platform-dependent defaults, keyed like RsyslogAttributes fields."""
    profile = defaults_for(platform.family)
    defaults = {
        "config_prefix": profile.config_prefix,
        "modules": profile.modules,
        "service_name": profile.service_name,
        "user": profile.user,
        "group": profile.group,
        "priv_separation": False,
    }

    # syslog user introduced with the natty package
    if platform.name == "ubuntu" and platform.version_at_least("10.10"):
        defaults.update(user="syslog", group="adm", priv_separation=True)

    return defaults


def check_tls(attrs: RsyslogAttributes) -> None:
    """
    Reject TLS over anything but TCP.

    Raises:
        ConfigurationError: enable_tls with a CA file and protocol != tcp
    """
    if attrs.tls_active and attrs.protocol != Protocol.TCP:
        raise ConfigurationError(
            f"rsyslog can not use 'enable_tls' with protocol "
            f"'{attrs.protocol.value}' (requires 'tcp')"
        )
