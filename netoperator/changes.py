"""Canonicalization, defaults and change-safety checks for the whole network spec."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from netoperator.ovn import fill_ovn_kubernetes_defaults, is_ovn_kubernetes_change_safe
from netoperator.spec import (
    IPAM_TYPES,
    MACVLAN_MODES,
    SDN_MODES,
    InvalidConfigError,
    IPAMConfig,
    NetworkSpec,
    NetworkType,
    SimpleMacvlanConfig,
    is_ipv6_cidr,
)

__all__ = [
    "deprecated_canonicalize",
    "validate_multus",
    "fill_defaults",
    "is_change_safe",
    "is_network_change_safe",
    "is_migration_change_safe",
    "is_default_network_change_safe",
    "DEFAULT_HOST_MTU",
    "DEFAULT_LOG_LEVEL",
]

logger = logging.getLogger(__name__)

DEFAULT_HOST_MTU = 1500
DEFAULT_LOG_LEVEL = "Normal"


def _canonical(value: str, choices: Iterable[str]) -> str:
    """Return the correctly capitalized form of ``value`` if it is one of ``choices``."""
    lowered = value.lower()
    for choice in choices:
        if choice.lower() == lowered:
            return choice
    return value


def _canonicalize_ipam(conf: IPAMConfig) -> None:
    conf.type = _canonical(conf.type, IPAM_TYPES)


def _canonicalize_simple_macvlan(conf: SimpleMacvlanConfig) -> None:
    conf.mode = _canonical(conf.mode, MACVLAN_MODES)
    if conf.ipam_config is not None:
        _canonicalize_ipam(conf.ipam_config)


def deprecated_canonicalize(conf: NetworkSpec) -> None:
    """Fix the capitalization of enumerated values in ``conf`` in place.

    Kept only for backward compatibility with configurations written with
    the wrong case; no new canonicalizations belong here.
    """
    orig = conf.copy()

    conf.default_network.type = _canonical(
        conf.default_network.type,
        (NetworkType.OPENSHIFT_SDN.value, NetworkType.OVN_KUBERNETES.value),
    )

    sdn = conf.default_network.openshift_sdn_config
    if conf.default_network.type == NetworkType.OPENSHIFT_SDN.value and sdn is not None:
        mode = sdn.get("mode")
        if isinstance(mode, str):
            sdn["mode"] = _canonical(mode, SDN_MODES)

    for network in conf.additional_networks:
        # The macvlan settings are only canonicalized when the type was
        # already written correctly.
        original_type = network.type
        network.type = _canonical(
            network.type, (NetworkType.RAW.value, NetworkType.SIMPLE_MACVLAN.value)
        )
        if (
            original_type == NetworkType.SIMPLE_MACVLAN.value
            and network.simple_macvlan_config is not None
        ):
            _canonicalize_simple_macvlan(network.simple_macvlan_config)

    if orig != conf:
        logger.warning(
            "One or more fields of the network configuration were incorrectly capitalized. "
            "Although this has been fixed now, other components may previously have seen "
            "the incorrect value and interpreted it incorrectly."
        )
        logger.warning("Original spec: %r\nModified spec: %r", orig, conf)


def validate_multus(conf: NetworkSpec) -> list[str]:
    """Check that additional networks are only requested when Multus is deployed."""
    deploy_multus = not conf.disable_multi_network
    if not deploy_multus and conf.additional_networks:
        return ["additional networks cannot be specified without deploying Multus"]
    return []


def _fill_default_network_defaults(
    conf: NetworkSpec, previous: NetworkSpec | None, host_mtu: int
) -> None:
    if conf.default_network.type == NetworkType.OVN_KUBERNETES.value:
        fill_ovn_kubernetes_defaults(conf, previous, host_mtu)


def fill_defaults(
    conf: NetworkSpec, previous: NetworkSpec | None, host_mtu: int | None = None
) -> None:
    """Apply default values to ``conf`` in place.

    ``host_mtu`` is the uplink MTU of the host; when unknown, 1500 is used.
    Defaults are carried forward from ``previous`` where the plugin does so.
    """
    if not host_mtu:
        if previous is None:
            logger.info("No uplink MTU known, falling back to %d", DEFAULT_HOST_MTU)
        host_mtu = DEFAULT_HOST_MTU
    elif previous is None:
        logger.info("Detected uplink MTU %d", host_mtu)

    if conf.disable_multi_network is None:
        conf.disable_multi_network = False
    if conf.use_multi_network_policy is None:
        conf.use_multi_network_policy = False
    if not conf.log_level:
        conf.log_level = DEFAULT_LOG_LEVEL

    _fill_default_network_defaults(conf, previous, host_mtu)


def is_network_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Check changes to the cluster and service networks.

    The only change allowed outside a migration is converting between a
    single-stack configuration and a dual-stack one that extends it.
    """
    if prev.migration is not None:
        if prev.service_network != next.service_network:
            return ["cannot change ServiceNetwork during migration"]
        return []

    if prev.cluster_network == next.cluster_network and prev.service_network == next.service_network:
        return []

    if len(prev.service_network) < len(next.service_network):
        single_stack, dual_stack = prev, next
    elif len(prev.service_network) > len(next.service_network):
        single_stack, dual_stack = next, prev
    elif prev.service_network == next.service_network:
        return ["cannot change ClusterNetwork"]
    else:
        return ["cannot change ServiceNetwork"]

    if single_stack.service_network[0] != dual_stack.service_network[0]:
        return ["cannot change ServiceNetwork"]

    entry_zero_is_ipv6 = is_ipv6_cidr(single_stack.cluster_network[0].cidr)
    shared = len(single_stack.cluster_network)
    for position, entry in enumerate(dual_stack.cluster_network):
        if position < shared:
            if single_stack.cluster_network[position] != entry:
                return ["cannot change ClusterNetwork"]
        elif is_ipv6_cidr(entry.cidr) == entry_zero_is_ipv6:
            return ["cannot change ClusterNetwork"]

    return []


def is_migration_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Forbid changing the target network type of a migration that has started."""
    if (
        prev.migration is not None
        and next.migration is not None
        and prev.migration.network_type != next.migration.network_type
    ):
        return ["cannot change migration network type after migration is start"]
    return []


def is_default_network_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Check changes to the default network plugin and its settings."""
    if prev.default_network.type != next.default_network.type:
        if prev.migration is None:
            return ["cannot change default network type when not doing migration"]
        if prev.migration.network_type != next.default_network.type:
            return ["can only change default network type to the target migration network type"]

    if prev.migration is None or not prev.migration.network_type:
        if prev.default_network.type == NetworkType.OVN_KUBERNETES.value:
            return is_ovn_kubernetes_change_safe(prev, next)
    return []


def is_change_safe(prev: NetworkSpec | None, next: NetworkSpec) -> None:
    """Raise InvalidConfigError if moving from ``prev`` to ``next`` is not allowed.

    Both specs should already have been validated and had their defaults
    filled in; ``prev`` may come from an older version.
    """
    if prev is None or prev == next:
        return

    errors: list[str] = []
    errors.extend(is_network_change_safe(prev, next))
    errors.extend(is_migration_change_safe(prev, next))
    errors.extend(is_default_network_change_safe(prev, next))
    if prev.disable_multi_network != next.disable_multi_network:
        errors.append("cannot change DisableMultiNetwork")

    if errors:
        raise InvalidConfigError(errors)