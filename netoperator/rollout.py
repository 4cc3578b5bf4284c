"""Decisions on when to roll out the OVN-Kubernetes master and node daemonsets."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from netoperator.versions import VersionChange, compare_versions

__all__ = [
    "IPFamilyMode",
    "DaemonSetStatus",
    "DaemonSet",
    "daemonset_progressing",
    "should_update_on_ip_family_change",
    "should_update_on_prepull",
    "should_update_on_upgrade",
    "IP_FAMILY_MODE_ANNOTATION",
    "ROLLOUT_HUNG_ANNOTATION",
    "RELEASE_VERSION_ANNOTATION",
]

logger = logging.getLogger(__name__)

IP_FAMILY_MODE_ANNOTATION = "networkoperator.openshift.io/ip-family-mode"
ROLLOUT_HUNG_ANNOTATION = "networkoperator.openshift.io/rollout-hung"
RELEASE_VERSION_ANNOTATION = "release.openshift.io/version"


class IPFamilyMode(str, Enum):
    """IP family configuration of the cluster network."""

    SINGLE_STACK = "single-stack"
    DUAL_STACK = "dual-stack"

    def __str__(self) -> str:
        return self.value


def _int(value: Any) -> int:
    return int(value) if value else 0


@dataclass
class DaemonSetStatus:
    """Observed rollout state of a daemonset."""

    current_number_scheduled: int = 0
    desired_number_scheduled: int = 0
    number_available: int = 0
    number_unavailable: int = 0
    number_misscheduled: int = 0
    number_ready: int = 0
    observed_generation: int = 0
    updated_number_scheduled: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DaemonSetStatus:
        data = data or {}
        return cls(
            current_number_scheduled=_int(data.get("currentNumberScheduled")),
            desired_number_scheduled=_int(data.get("desiredNumberScheduled")),
            number_available=_int(data.get("numberAvailable")),
            number_unavailable=_int(data.get("numberUnavailable")),
            number_misscheduled=_int(data.get("numberMisscheduled")),
            number_ready=_int(data.get("numberReady")),
            observed_generation=_int(data.get("observedGeneration")),
            updated_number_scheduled=_int(data.get("updatedNumberScheduled")),
        )


@dataclass
class DaemonSet:
    """The parts of an existing daemonset that rollout decisions look at."""

    name: str = ""
    namespace: str = ""
    generation: int = 0
    annotations: dict[str, str] = field(default_factory=dict)
    status: DaemonSetStatus = field(default_factory=DaemonSetStatus)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DaemonSet:
        """Build a daemonset from a Kubernetes object in dictionary form."""
        data = data or {}
        metadata = data.get("metadata") or {}
        annotations = {
            str(key): "" if value is None else str(value)
            for key, value in (metadata.get("annotations") or {}).items()
        }
        return cls(
            name=metadata.get("name") or "",
            namespace=metadata.get("namespace") or "",
            generation=_int(metadata.get("generation")),
            annotations=annotations,
            status=DaemonSetStatus.from_dict(data.get("status")),
        )

    @property
    def release_version(self) -> str:
        return self.annotations.get(RELEASE_VERSION_ANNOTATION, "")


def daemonset_progressing(ds: DaemonSet, allow_hung: bool) -> bool:
    """Tell whether a daemonset is still rolling out a change.

    With ``allow_hung``, a rollout marked as hung that has updated all but
    max(10% of nodes, 1) is treated as finished.
    """
    status = ds.status
    progressing = (
        status.updated_number_scheduled < status.desired_number_scheduled
        or status.number_unavailable > 0
        or status.number_available == 0
        or ds.generation > status.observed_generation
    )
    logger.debug(
        "daemonset %s/%s rollout %s; %d/%d scheduled; %d unavailable; %d available; generation %d -> %d",
        ds.namespace,
        ds.name,
        "progressing" if progressing else "complete",
        status.updated_number_scheduled,
        status.desired_number_scheduled,
        status.number_unavailable,
        status.number_available,
        ds.generation,
        status.observed_generation,
    )
    if not progressing:
        return False

    if allow_hung:
        hung = ROLLOUT_HUNG_ANNOTATION in ds.annotations
        max_behind = int(max(1, math.floor(status.desired_number_scheduled * 0.1)))
        num_behind = status.desired_number_scheduled - status.updated_number_scheduled
        if hung and num_behind <= max_behind:
            logger.warning(
                "daemonset %s/%s rollout seems to have hung with %d/%d behind, force-continuing",
                ds.namespace,
                ds.name,
                num_behind,
                status.desired_number_scheduled,
            )
            return False
    return True


def should_update_on_ip_family_change(
    existing_node: DaemonSet | None,
    existing_master: DaemonSet | None,
    ip_family_mode: IPFamilyMode | str,
) -> tuple[bool, bool]:
    """Return (update_node, update_master) for an IP family configuration change.

    Masters are updated first; nodes follow once the master rollout is done.
    """
    if existing_node is None or existing_master is None:
        return True, True
    node_mode = existing_node.annotations.get(IP_FAMILY_MODE_ANNOTATION, "")
    master_mode = existing_master.annotations.get(IP_FAMILY_MODE_ANNOTATION, "")
    if not node_mode or not master_mode:
        return True, True
    if node_mode == ip_family_mode and master_mode == ip_family_mode:
        return True, True
    if master_mode != ip_family_mode:
        logger.debug("IP family mode change detected to %s, updating master", ip_family_mode)
        return False, True
    if daemonset_progressing(existing_master, False):
        logger.debug("Waiting for master daemonset IP family mode rollout before updating node")
        return False, True
    logger.debug("Master daemonset rollout complete, updating IP family mode on node daemonset")
    return True, True


def should_update_on_prepull(
    existing_node: DaemonSet | None,
    pre_puller: DaemonSet | None,
    release_version: str,
) -> tuple[bool, bool]:
    """Return (update_node, render_prepuller).

    Before a node upgrade, a no-op prepuller daemonset pulls the new image on
    every node; the node rollout proceeds once that has finished.
    """
    if existing_node is None:
        return True, False
    if existing_node.release_version == release_version:
        return True, False
    if pre_puller is None:
        logger.info("Rolling out the no-op prepuller daemonset...")
        return False, True
    if pre_puller.release_version != release_version:
        logger.info("Rendering prepuller daemonset to update its image...")
        return False, True
    if daemonset_progressing(pre_puller, True):
        logger.info("Waiting for prepuller daemonset to finish pulling the image before updating node")
        return False, True
    logger.info("Prepuller daemonset rollout complete, now starting node rollouts")
    return True, False


def should_update_on_upgrade(
    existing_node: DaemonSet | None,
    existing_master: DaemonSet | None,
    release_version: str,
) -> tuple[bool, bool]:
    """Return (update_node, update_master) for a release version change.

    Upgrades roll out nodes before masters; downgrades do the opposite.
    """
    if existing_node is None or existing_master is None:
        return True, True

    node_version = existing_node.release_version
    master_version = existing_master.release_version
    if node_version == release_version and master_version == release_version:
        return True, True

    master_delta = compare_versions(master_version, release_version)
    node_delta = compare_versions(node_version, release_version)

    if VersionChange.UNKNOWN in (master_delta, node_delta):
        logger.warning(
            "could not determine daemonset update directions; node: %s, master: %s, release: %s",
            node_version,
            master_version,
            release_version,
        )
        return True, True

    logger.debug("master version %s -> latest %s; delta %s", master_version, release_version, master_delta)
    logger.debug("node version %s -> latest %s; delta %s", node_version, release_version, node_delta)

    match (master_delta, node_delta):
        case (VersionChange.UPGRADE, VersionChange.UPGRADE):
            return True, False
        case (VersionChange.UPGRADE, VersionChange.SAME):
            if daemonset_progressing(existing_node, True):
                return True, False
            return True, True
        case (VersionChange.DOWNGRADE, VersionChange.DOWNGRADE):
            return False, True
        case (VersionChange.SAME, VersionChange.DOWNGRADE):
            if daemonset_progressing(existing_master, False):
                return False, True
            return True, True
        case (VersionChange.SAME, VersionChange.SAME):
            return True, True

    logger.warning(
        "daemonset versions inconsistent. node: %s, master: %s, release: %s",
        node_version,
        master_version,
        release_version,
    )
    return True, True