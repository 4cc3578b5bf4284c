# netoperator

A library for working with a cluster network configuration: checking it,
filling in its defaults, deciding whether a change to it is allowed, and
deciding when the OVN-Kubernetes master and node daemonsets may be rolled
out across upgrades, downgrades and IP family changes.

## Installing

```
pip install .
```

## Modules

- `netoperator.spec` — the configuration model as dataclasses: `NetworkSpec`
  (with `copy()` for a deep copy), `ClusterNetworkEntry`, `DefaultNetworkDefinition`,
  `OVNKubernetesConfig`, `HybridOverlayConfig`, `IPsecConfig`, `GatewayConfig`,
  `PolicyAuditConfig`, `NetworkMigration`, `MTUMigration`, `MTUMigrationValues`,
  `AdditionalNetworkDefinition`, `SimpleMacvlanConfig` and `IPAMConfig`; the
  `NetworkType` enum; `is_ipv6_cidr(cidr)`; and `InvalidConfigError`, a
  `ValueError` whose `errors` attribute lists every problem found.
- `netoperator.versions` — `compare_versions(from_version, to_version)` returns a
  `VersionChange`: `UPGRADE`, `SAME`, `DOWNGRADE`, or `UNKNOWN` when either
  version is not a semantic version.
- `netoperator.rollout` — `DaemonSet.from_dict(data)` reads the name, namespace,
  generation, annotations and status of a daemonset document.
  `daemonset_progressing(ds, allow_hung)` tells whether a rollout is still under
  way. `should_update_on_ip_family_change`, `should_update_on_upgrade` and
  `should_update_on_prepull` return a pair of booleans saying whether the node
  and master daemonsets (or the node daemonset and the prepuller) may be updated
  now. `IPFamilyMode` names the single-stack and dual-stack modes.
- `netoperator.manifests` — `db_list(master_ips, port)` builds the comma separated
  `ssl:` database addresses, `listen_dual_stack(master_ip)` gives the listen
  suffix for IPv6 masters, `current_initiator_exists(master_ips, initiator)`
  checks a recorded cluster initiator, and `set_daemonset_annotation(objs, key, value)`
  annotates the `ovnkube-master` and `ovnkube-node` daemonsets and their pod
  templates in place.
- `netoperator.ovn` — `validate_ovn_kubernetes(conf)` and
  `is_ovn_kubernetes_change_safe(prev, next)` return lists of problems;
  `encap_overhead(conf)` gives the per-packet overhead (100 bytes, plus 46 with
  IPsec); `fill_ovn_kubernetes_defaults(conf, previous, host_mtu)` fills unset
  MTU, Geneve port and policy audit settings.
- `netoperator.changes` — `deprecated_canonicalize(conf)` fixes the
  capitalization of enumerated values, `validate_multus(conf)` returns a list of
  problems, `fill_defaults(conf, previous, host_mtu)` applies defaults
  (1500 when the host MTU is not given), and `is_change_safe(prev, next)` raises
  `InvalidConfigError` when a change is not allowed. Its parts,
  `is_network_change_safe`, `is_migration_change_safe` and
  `is_default_network_change_safe`, each return a list of problems.

## Example

```python
from netoperator.spec import (
    ClusterNetworkEntry,
    DefaultNetworkDefinition,
    InvalidConfigError,
    NetworkSpec,
    NetworkType,
)
from netoperator.changes import fill_defaults, is_change_safe
from netoperator.versions import compare_versions

spec = NetworkSpec(
    service_network=["172.30.0.0/16"],
    cluster_network=[ClusterNetworkEntry(cidr="10.128.0.0/15", host_prefix=23)],
    default_network=DefaultNetworkDefinition(type=NetworkType.OVN_KUBERNETES.value),
)
fill_defaults(spec, None, 1500)

changed = spec.copy()
changed.service_network = ["1.2.3.0/24"]
try:
    is_change_safe(spec, changed)
except InvalidConfigError as exc:
    print(exc.errors)   # ['cannot change ServiceNetwork']

compare_versions("1.2.3", "1.2.4")   # VersionChange.UPGRADE
```

## What it does not do

This is a library only: it has no command and does not talk to a cluster.
It does not fetch nodes, config maps or daemonsets, does not render manifest
templates into Kubernetes objects, and does not apply anything. Callers supply
the existing daemonsets and the rendered objects themselves. Plugin-specific
checks and defaults exist only for OVN-Kubernetes; other default network types
pass through unchecked.

## Running the tests

```
pip install .[test]
pytest
```