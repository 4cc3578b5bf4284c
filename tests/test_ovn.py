import pytest

from netoperator.ovn import (
    encap_overhead,
    fill_ovn_kubernetes_defaults,
    is_ovn_kubernetes_change_safe,
    validate_ovn_kubernetes,
)
from netoperator.spec import (
    ClusterNetworkEntry,
    DefaultNetworkDefinition,
    HybridOverlayConfig,
    IPsecConfig,
    MTUMigration,
    MTUMigrationValues,
    NetworkMigration,
    NetworkSpec,
    OVNKubernetesConfig,
    PolicyAuditConfig,
)


def make_spec() -> NetworkSpec:
    return NetworkSpec(
        service_network=["172.30.0.0/16"],
        cluster_network=[
            ClusterNetworkEntry(cidr="10.128.0.0/15", host_prefix=23),
            ClusterNetworkEntry(cidr="10.0.0.0/14", host_prefix=24),
        ],
        default_network=DefaultNetworkDefinition(
            type="OVNKubernetes",
            ovn_kubernetes_config=OVNKubernetesConfig(geneve_port=8061),
        ),
    )


def filled_spec() -> NetworkSpec:
    spec = make_spec()
    fill_ovn_kubernetes_defaults(spec, None, 1500)
    return spec


def test_fill_defaults():
    conf = make_spec()
    conf.default_network.ovn_kubernetes_config = None
    fill_ovn_kubernetes_defaults(conf, None, 9000)

    expected = make_spec()
    expected.default_network.ovn_kubernetes_config = OVNKubernetesConfig(
        mtu=8900,
        geneve_port=6081,
        policy_audit_config=PolicyAuditConfig(
            rate_limit=20, max_file_size=50, destination="null", syslog_facility="local0"
        ),
    )
    assert conf == expected


def test_fill_defaults_ipsec():
    conf = make_spec()
    conf.default_network.ovn_kubernetes_config.ipsec_config = IPsecConfig()
    fill_ovn_kubernetes_defaults(conf, conf, 9000)

    expected = make_spec()
    expected.default_network.ovn_kubernetes_config = OVNKubernetesConfig(
        mtu=8854,
        geneve_port=8061,
        ipsec_config=IPsecConfig(),
        policy_audit_config=PolicyAuditConfig(
            rate_limit=20, max_file_size=50, destination="null", syslog_facility="local0"
        ),
    )
    assert conf == expected


def test_fill_defaults_prefers_previous_mtu():
    previous = make_spec()
    previous.default_network.ovn_kubernetes_config.mtu = 1234
    conf = make_spec()
    fill_ovn_kubernetes_defaults(conf, previous, 9000)
    assert conf.default_network.ovn_kubernetes_config.mtu == 1234


def test_fill_defaults_keeps_set_values():
    conf = make_spec()
    oc = conf.default_network.ovn_kubernetes_config
    oc.mtu = 1400
    oc.policy_audit_config = PolicyAuditConfig(rate_limit=5, destination="libc")
    fill_ovn_kubernetes_defaults(conf, None, 9000)
    assert oc.mtu == 1400
    assert oc.policy_audit_config == PolicyAuditConfig(
        rate_limit=5, max_file_size=50, destination="libc", syslog_facility="local0"
    )


@pytest.mark.parametrize("ipsec, overhead", [(None, 100), (IPsecConfig(), 146)])
def test_encap_overhead(ipsec, overhead):
    conf = make_spec()
    conf.default_network.ovn_kubernetes_config.ipsec_config = ipsec
    assert encap_overhead(conf) == overhead


def test_validate():
    config = make_spec()
    assert validate_ovn_kubernetes(config) == []
    fill_ovn_kubernetes_defaults(config, None, 1500)
    oc = config.default_network.ovn_kubernetes_config

    oc.mtu = 70000
    assert any("invalid MTU 70000" in e for e in validate_ovn_kubernetes(config))

    oc.geneve_port = 70001
    assert any("invalid GenevePort 70001" in e for e in validate_ovn_kubernetes(config))

    config.cluster_network = []
    assert any("ClusterNetwork cannot be empty" in e for e in validate_ovn_kubernetes(config))


def test_validate_empty_service_network():
    config = make_spec()
    config.service_network = []
    assert "ServiceNetwork cannot be empty" in validate_ovn_kubernetes(config)


def test_validate_dual_stack():
    config = make_spec()
    assert validate_ovn_kubernetes(config) == []
    fill_ovn_kubernetes_defaults(config, None, 1500)

    config.cluster_network = [
        ClusterNetworkEntry(cidr="10.128.0.0/14", host_prefix=23),
        ClusterNetworkEntry(cidr="10.0.0.0/14", host_prefix=23),
    ]
    assert validate_ovn_kubernetes(config) == []

    mismatch = "ClusterNetwork and ServiceNetwork must have matching IP families"
    config.service_network = ["fd02::/112"]
    assert any(mismatch in e for e in validate_ovn_kubernetes(config))

    config.cluster_network.append(ClusterNetworkEntry(cidr="fd01::/48", host_prefix=64))
    assert any(mismatch in e for e in validate_ovn_kubernetes(config))

    config.service_network.append("172.30.0.0/16")
    assert validate_ovn_kubernetes(config) == []

    config.service_network.append("172.31.0.0/16")
    assert any(
        "ServiceNetwork must have either a single CIDR or a dual-stack pair of CIDRs" in e
        for e in validate_ovn_kubernetes(config)
    )


def test_change_safe_hybrid_overlay_and_immutables():
    prev = filled_spec()
    nxt = filled_spec()
    assert is_ovn_kubernetes_change_safe(prev, nxt) == []

    nxt.default_network.ovn_kubernetes_config.hybrid_overlay_config = HybridOverlayConfig(
        hybrid_cluster_network=[ClusterNetworkEntry(cidr="10.132.0.0/14", host_prefix=23)]
    )
    assert is_ovn_kubernetes_change_safe(prev, nxt) == [
        "cannot start a hybrid overlay network after install time"
    ]

    prev.default_network.ovn_kubernetes_config.hybrid_overlay_config = HybridOverlayConfig(
        hybrid_cluster_network=[ClusterNetworkEntry(cidr="10.135.0.0/14", host_prefix=23)]
    )
    assert is_ovn_kubernetes_change_safe(prev, nxt) == [
        "cannot edit a running hybrid overlay network"
    ]

    prev.default_network.ovn_kubernetes_config.hybrid_overlay_config = None
    nxt.default_network.ovn_kubernetes_config.hybrid_overlay_config = None

    nxt.default_network.ovn_kubernetes_config.mtu = 70000
    nxt.default_network.ovn_kubernetes_config.geneve_port = 34001
    assert is_ovn_kubernetes_change_safe(prev, nxt) == [
        "cannot change ovn-kubernetes MTU without migration",
        "cannot change ovn-kubernetes genevePort",
    ]


def test_change_safe_ipsec():
    prev = filled_spec()
    nxt = filled_spec()
    nxt.default_network.ovn_kubernetes_config.ipsec_config = IPsecConfig()
    assert is_ovn_kubernetes_change_safe(prev, nxt) == ["cannot enable IPsec after install time"]


def test_change_safe_mtu_migration():
    prev = filled_spec()
    nxt = filled_spec()
    prev_mtu = prev.default_network.ovn_kubernetes_config.mtu
    assert prev_mtu == 1400

    nxt.migration = NetworkMigration(
        mtu=MTUMigration(
            network=MTUMigrationValues(from_=prev_mtu, to=1300),
            machine=MTUMigrationValues(to=1500),
        )
    )
    assert is_ovn_kubernetes_change_safe(prev, nxt) == []

    nxt.migration.mtu.network.from_ = None
    assert is_ovn_kubernetes_change_safe(prev, nxt) == [
        "invalid Migration.MTU, at least one of the required fields is missing"
    ]

    nxt.migration.mtu.network.from_ = prev_mtu + 100
    assert is_ovn_kubernetes_change_safe(prev, nxt) == [
        "invalid Migration.MTU.Network.From(1500) not equal to the currently applied MTU(1400)"
    ]

    nxt.migration.mtu.network.from_ = prev_mtu
    nxt.migration.mtu.network.to = 1500
    assert is_ovn_kubernetes_change_safe(prev, nxt) == [
        "invalid Migration.MTU.Machine.To(1500), has to be at least 1600"
    ]


def test_change_safe_migration_from_unchanged_is_not_rechecked():
    prev = filled_spec()
    nxt = filled_spec()
    migration = NetworkMigration(
        mtu=MTUMigration(
            network=MTUMigrationValues(from_=9999, to=1300),
            machine=MTUMigrationValues(to=1500),
        )
    )
    prev.migration = migration
    nxt.migration = NetworkMigration(
        mtu=MTUMigration(
            network=MTUMigrationValues(from_=9999, to=1300),
            machine=MTUMigrationValues(to=1500),
        )
    )
    assert is_ovn_kubernetes_change_safe(prev, nxt) == []