"""Data model of the cluster network configuration."""

from __future__ import annotations

import copy
import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "InvalidConfigError",
    "NetworkType",
    "ClusterNetworkEntry",
    "HybridOverlayConfig",
    "IPsecConfig",
    "GatewayConfig",
    "PolicyAuditConfig",
    "OVNKubernetesConfig",
    "MTUMigrationValues",
    "MTUMigration",
    "NetworkMigration",
    "IPAMConfig",
    "SimpleMacvlanConfig",
    "AdditionalNetworkDefinition",
    "DefaultNetworkDefinition",
    "NetworkSpec",
    "is_ipv6_cidr",
    "SDN_MODES",
    "IPAM_TYPES",
    "MACVLAN_MODES",
]

SDN_MODES = ("Multitenant", "NetworkPolicy", "Subnet")
IPAM_TYPES = ("DHCP", "Static")
MACVLAN_MODES = ("Bridge", "Private", "VEPA", "Passthru")


class InvalidConfigError(ValueError):
    """Raised when a network configuration, or a change to one, is rejected."""

    def __init__(self, errors: list[str], prefix: str = "invalid configuration") -> None:
        self.errors = list(errors)
        self.prefix = prefix
        super().__init__(f"{prefix}: [{' '.join(self.errors)}]")


class NetworkType(str, Enum):
    """Known network plugin types."""

    OPENSHIFT_SDN = "OpenShiftSDN"
    OVN_KUBERNETES = "OVNKubernetes"
    KURYR = "Kuryr"
    RAW = "Raw"
    SIMPLE_MACVLAN = "SimpleMacvlan"

    def __str__(self) -> str:
        return self.value


@dataclass
class ClusterNetworkEntry:
    cidr: str
    host_prefix: int = 0


@dataclass
class HybridOverlayConfig:
    hybrid_cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    hybrid_overlay_vxlan_port: int | None = None


@dataclass
class IPsecConfig:
    """Presence of this section enables IPsec."""


@dataclass
class GatewayConfig:
    routing_via_host: bool = False


@dataclass
class PolicyAuditConfig:
    rate_limit: int | None = None
    max_file_size: int | None = None
    destination: str = ""
    syslog_facility: str = ""


@dataclass
class OVNKubernetesConfig:
    mtu: int | None = None
    geneve_port: int | None = None
    hybrid_overlay_config: HybridOverlayConfig | None = None
    ipsec_config: IPsecConfig | None = None
    policy_audit_config: PolicyAuditConfig | None = None
    gateway_config: GatewayConfig | None = None


@dataclass
class MTUMigrationValues:
    from_: int | None = None
    to: int | None = None


@dataclass
class MTUMigration:
    network: MTUMigrationValues | None = None
    machine: MTUMigrationValues | None = None


@dataclass
class NetworkMigration:
    network_type: str = ""
    mtu: MTUMigration | None = None


@dataclass
class IPAMConfig:
    type: str = ""


@dataclass
class SimpleMacvlanConfig:
    master: str = ""
    ipam_config: IPAMConfig | None = None
    mode: str = ""
    mtu: int | None = None


@dataclass
class AdditionalNetworkDefinition:
    type: str = ""
    name: str = ""
    namespace: str = ""
    raw_cni_config: str = ""
    simple_macvlan_config: SimpleMacvlanConfig | None = None


@dataclass
class DefaultNetworkDefinition:
    type: str = ""
    ovn_kubernetes_config: OVNKubernetesConfig | None = None
    # Plugin settings for OpenShiftSDN, e.g. {"mode": "NetworkPolicy"}.
    openshift_sdn_config: dict[str, Any] | None = None


@dataclass
class NetworkSpec:
    """Desired state of the cluster network."""

    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    default_network: DefaultNetworkDefinition = field(default_factory=DefaultNetworkDefinition)
    additional_networks: list[AdditionalNetworkDefinition] = field(default_factory=list)
    disable_multi_network: bool | None = None
    use_multi_network_policy: bool | None = None
    deploy_kube_proxy: bool | None = None
    disable_network_diagnostics: bool = False
    log_level: str = ""
    migration: NetworkMigration | None = None

    def copy(self) -> NetworkSpec:
        """Return an independent deep copy."""
        return copy.deepcopy(self)


def is_ipv6_cidr(cidr: str) -> bool:
    """Tell whether ``cidr`` is a valid CIDR whose address is IPv6."""
    if "/" not in cidr:
        return False
    try:
        iface = ipaddress.ip_interface(cidr)
    except ValueError:
        return False
    ip = iface.ip
    if isinstance(ip, ipaddress.IPv6Address):
        return ip.ipv4_mapped is None
    return False