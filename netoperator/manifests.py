"""Helpers for building OVN-Kubernetes manifest data and annotating rendered objects."""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping
from typing import Any

__all__ = [
    "db_list",
    "listen_dual_stack",
    "current_initiator_exists",
    "set_daemonset_annotation",
    "OVN_DAEMONSET_NAMES",
]

OVN_DAEMONSET_NAMES = ("ovnkube-master", "ovnkube-node")

# Suffix appended to the database listen address so it accepts both IP families.
_DUAL_STACK_LISTEN_SUFFIX = ":[::]"
_IPV4_ONLY_LISTEN_SUFFIX = ""


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _is_ipv6_address(address: str) -> bool:
    return ":" in address


def db_list(master_ips: Iterable[str], port: str | int) -> str:
    """Return the comma separated SSL addresses of the OVN databases on the masters."""
    return ",".join(f"ssl:{_join_host_port(ip, str(port))}" for ip in master_ips)


def listen_dual_stack(master_ip: str) -> str:
    """Return the listen suffix that makes the databases listen on both IP families.

    IPv6 masters listen dual-stack; IPv4 masters stay IPv4-only for
    backward compatibility.
    """
    if _is_ipv6_address(master_ip):
        return _DUAL_STACK_LISTEN_SUFFIX
    return _IPV4_ONLY_LISTEN_SUFFIX


def current_initiator_exists(master_ips: Iterable[str], initiator: str) -> bool:
    """Tell whether the recorded RAFT cluster initiator is still one of the masters."""
    return initiator in master_ips


def _string_map(value: Any) -> dict[str, str]:
    if isinstance(value, MutableMapping) and all(isinstance(v, str) for v in value.values()):
        return dict(value)
    return {}


def _nested_dict(obj: MutableMapping[str, Any], *path: str) -> MutableMapping[str, Any]:
    current = obj
    for key in path:
        child = current.get(key)
        if child is None:
            child = {}
            current[key] = child
        elif not isinstance(child, MutableMapping):
            raise ValueError(
                f"value at {'.'.join(path[: path.index(key) + 1])} is of type "
                f"{type(child).__name__}, expected a mapping"
            )
        current = child
    return current


def set_daemonset_annotation(
    objs: Iterable[MutableMapping[str, Any]], key: str, value: str
) -> None:
    """Annotate the OVN master and node daemonsets and their pod templates.

    Annotating the pod template forces a rollout when the value changes.
    Objects are modified in place; ValueError is raised if an object's
    template path is not made of mappings.
    """
    for obj in objs:
        metadata = obj.get("metadata")
        name = metadata.get("name") if isinstance(metadata, MutableMapping) else None
        if not (
            obj.get("apiVersion") == "apps/v1"
            and obj.get("kind") == "DaemonSet"
            and name in OVN_DAEMONSET_NAMES
        ):
            continue

        meta = _nested_dict(obj, "metadata")
        annotations = _string_map(meta.get("annotations"))
        annotations[key] = value
        meta["annotations"] = annotations

        template_meta = _nested_dict(obj, "spec", "template", "metadata")
        template_annotations = _string_map(template_meta.get("annotations"))
        template_annotations[key] = value
        template_meta["annotations"] = template_annotations