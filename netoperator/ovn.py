"""Validation, defaults and change checks for the OVN-Kubernetes network plugin."""

from __future__ import annotations

from netoperator.spec import (
    NetworkSpec,
    OVNKubernetesConfig,
    PolicyAuditConfig,
    is_ipv6_cidr,
)

__all__ = [
    "validate_ovn_kubernetes",
    "encap_overhead",
    "is_ovn_kubernetes_change_safe",
    "fill_ovn_kubernetes_defaults",
    "GENEVE_OVERHEAD",
    "IPSEC_OVERHEAD",
    "DEFAULT_GENEVE_PORT",
    "MIN_MTU",
    "MAX_MTU",
]

GENEVE_OVERHEAD = 100
# Transport mode, AES-GCM.
IPSEC_OVERHEAD = 46
DEFAULT_GENEVE_PORT = 6081
MIN_MTU = 576
MAX_MTU = 65536

DEFAULT_AUDIT_RATE_LIMIT = 20
DEFAULT_AUDIT_MAX_FILE_SIZE = 50
DEFAULT_AUDIT_DESTINATION = "null"
DEFAULT_AUDIT_SYSLOG_FACILITY = "local0"


def _families(cidrs: list[str]) -> tuple[bool, bool]:
    """Return (has_ipv4, has_ipv6); unparsable entries count as IPv4."""
    has_ipv4 = has_ipv6 = False
    for cidr in cidrs:
        if is_ipv6_cidr(cidr):
            has_ipv6 = True
        else:
            has_ipv4 = True
    return has_ipv4, has_ipv6


def validate_ovn_kubernetes(conf: NetworkSpec) -> list[str]:
    """Check that the OVN-Kubernetes specific configuration is sane.

    Returns the list of problems found; an empty list means the
    configuration is acceptable.
    """
    errors: list[str] = []

    cn_ipv4, cn_ipv6 = _families([entry.cidr for entry in conf.cluster_network])
    if not cn_ipv4 and not cn_ipv6:
        errors.append("ClusterNetwork cannot be empty")

    sn_ipv4, sn_ipv6 = _families(list(conf.service_network))
    if not sn_ipv4 and not sn_ipv6:
        errors.append("ServiceNetwork cannot be empty")

    if cn_ipv4 != sn_ipv4 or cn_ipv6 != sn_ipv6:
        errors.append("ClusterNetwork and ServiceNetwork must have matching IP families")

    count = len(conf.service_network)
    if count > 2 or (count == 2 and not (sn_ipv4 and sn_ipv6)):
        errors.append("ServiceNetwork must have either a single CIDR or a dual-stack pair of CIDRs")

    oc = conf.default_network.ovn_kubernetes_config
    if oc is not None:
        if oc.mtu is not None and not MIN_MTU <= oc.mtu <= MAX_MTU:
            errors.append(f"invalid MTU {oc.mtu}")
        if oc.geneve_port is not None and not 1 <= oc.geneve_port <= 65535:
            errors.append(f"invalid GenevePort {oc.geneve_port}")

    return errors


def encap_overhead(conf: NetworkSpec) -> int:
    """Return the bytes of encapsulation overhead the overlay adds to each packet."""
    overhead = GENEVE_OVERHEAD
    oc = conf.default_network.ovn_kubernetes_config
    if oc is not None and oc.ipsec_config is not None:
        overhead += IPSEC_OVERHEAD
    return overhead


def is_ovn_kubernetes_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Return the reasons why moving from ``prev`` to ``next`` is not allowed.

    Immutable fields may not change; the MTU may only change through a
    well-formed MTU migration.
    """
    pn = prev.default_network.ovn_kubernetes_config or OVNKubernetesConfig()
    nn = next.default_network.ovn_kubernetes_config or OVNKubernetesConfig()
    errors: list[str] = []

    if next.migration is not None and next.migration.mtu is not None:
        mtu_net = next.migration.mtu.network
        mtu_mach = next.migration.mtu.machine
        if (
            mtu_net is None
            or mtu_mach is None
            or mtu_net.from_ is None
            or mtu_net.to is None
            or mtu_mach.to is None
        ):
            errors.append("invalid Migration.MTU, at least one of the required fields is missing")
        else:
            prev_mig = prev.migration
            check_prev_mtu = (
                prev_mig is None
                or prev_mig.mtu is None
                or prev_mig.mtu.network is None
                or prev_mig.mtu.network.from_ != mtu_net.from_
            )
            if check_prev_mtu and mtu_net.from_ != pn.mtu:
                errors.append(
                    f"invalid Migration.MTU.Network.From({mtu_net.from_}) "
                    f"not equal to the currently applied MTU({pn.mtu})"
                )
            required = mtu_net.to + encap_overhead(next)
            if required > mtu_mach.to:
                errors.append(
                    f"invalid Migration.MTU.Machine.To({mtu_mach.to}), has to be at least {required}"
                )
    elif pn.mtu != nn.mtu:
        errors.append("cannot change ovn-kubernetes MTU without migration")

    if pn.geneve_port != nn.geneve_port:
        errors.append("cannot change ovn-kubernetes genevePort")
    if pn.hybrid_overlay_config is None and nn.hybrid_overlay_config is not None:
        errors.append("cannot start a hybrid overlay network after install time")
    if pn.hybrid_overlay_config is not None and pn.hybrid_overlay_config != nn.hybrid_overlay_config:
        errors.append("cannot edit a running hybrid overlay network")
    if pn.ipsec_config is None and nn.ipsec_config is not None:
        errors.append("cannot enable IPsec after install time")
    if pn.ipsec_config is not None and pn.ipsec_config != nn.ipsec_config:
        errors.append("cannot edit IPsec configuration at runtime")

    return errors


def fill_ovn_kubernetes_defaults(
    conf: NetworkSpec, previous: NetworkSpec | None, host_mtu: int
) -> None:
    """Fill unset OVN-Kubernetes settings in ``conf`` in place.

    An unset MTU is carried over from ``previous`` when it has one, and is
    otherwise derived from ``host_mtu`` minus the encapsulation overhead.
    """
    if conf.default_network.ovn_kubernetes_config is None:
        conf.default_network.ovn_kubernetes_config = OVNKubernetesConfig()
    sc = conf.default_network.ovn_kubernetes_config

    if sc.mtu is None:
        mtu = host_mtu - encap_overhead(conf)
        if previous is not None:
            prev_oc = previous.default_network.ovn_kubernetes_config
            if prev_oc is not None and prev_oc.mtu is not None:
                mtu = prev_oc.mtu
        sc.mtu = mtu
    if sc.geneve_port is None:
        sc.geneve_port = DEFAULT_GENEVE_PORT

    if sc.policy_audit_config is None:
        sc.policy_audit_config = PolicyAuditConfig()
    audit = sc.policy_audit_config
    if audit.rate_limit is None:
        audit.rate_limit = DEFAULT_AUDIT_RATE_LIMIT
    if audit.max_file_size is None:
        audit.max_file_size = DEFAULT_AUDIT_MAX_FILE_SIZE
    if not audit.destination:
        audit.destination = DEFAULT_AUDIT_DESTINATION
    if not audit.syslog_facility:
        audit.syslog_facility = DEFAULT_AUDIT_SYSLOG_FACILITY