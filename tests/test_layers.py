# SPDX-License-Identifier: Apache-2.0

import pytest
import yaml

from rosagitops.config import ConfigError, LayersConfig
from rosagitops.kube import AuthenticationError, KubeClient
from rosagitops.layers import (
    Apply,
    LAYERS,
    WaitOperator,
    build_steps,
    install_layer,
    render_layer,
)

from .fakes import API_URL, FakeResponse, FakeSession


def kinds(steps):
    return [step.manifest["kind"] for step in steps if isinstance(step, Apply)]


def test_layers():
    assert list(LAYERS) == [
        "monitoring",
        "oadp",
        "virtualization",
        "cert-manager",
        "terminal",
    ]


def test_unknown_layer(config):
    with pytest.raises(KeyError):
        build_steps("service-mesh", config)


def test_monitoring_steps(config):
    steps = build_steps("monitoring", config)

    waits = [step for step in steps if isinstance(step, WaitOperator)]
    assert [(w.group, w.version, w.kind) for w in waits] == [
        ("loki.grafana.com", "v1", "LokiStack"),
        ("observability.openshift.io", "v1", "ClusterLogForwarder"),
    ]

    lokistack = next(s for s in steps if isinstance(s, Apply) and s.manifest["kind"] == "LokiStack")
    assert lokistack.optional
    assert lokistack.manifest["spec"]["limits"]["global"]["retention"]["days"] == 7
    assert steps.index(lokistack) > steps.index(waits[0])

    secret = next(
        s for s in steps if isinstance(s, Apply) and s.manifest["kind"] == "Secret"
    )
    assert secret.manifest["stringData"]["role_arn"] == config.layer("monitoring")["loki_role_arn"]
    assert secret.manifest["stringData"]["bucketnames"] == "test-loki"


def test_monitoring_retention(config):
    steps = build_steps("monitoring", config)
    configmap = next(
        s.manifest
        for s in steps
        if isinstance(s, Apply) and s.manifest["metadata"]["name"] == "cluster-monitoring-config"
    )

    monitoring = yaml.safe_load(configmap["data"]["config.yaml"])
    assert monitoring["prometheusK8s"]["retention"] == "15d"


def test_oadp_steps(config):
    steps = build_steps("oadp", config)

    assert kinds(steps) == [
        "Namespace",
        "OperatorGroup",
        "Subscription",
        "Secret",
        "DataProtectionApplication",
        "Schedule",
    ]
    schedule = steps[-1]
    assert schedule.optional
    assert schedule.manifest["spec"]["template"]["ttl"] == "720h0m0s"
    dpa = next(
        s.manifest for s in steps if isinstance(s, Apply) and s.manifest["kind"] == "DataProtectionApplication"
    )
    assert dpa["metadata"]["name"] == "test-dpa"
    assert dpa["spec"]["backupLocations"][0]["bsl"]["objectStorage"]["bucket"] == "test-backups"


def test_cert_manager_ingress_controller(config):
    assert kinds(build_steps("cert-manager", config))[-1] == "IngressController"

    config.layer("cert-manager")["create_ingress_controller"] = False
    assert "IngressController" not in kinds(build_steps("cert-manager", config))


def test_cert_manager_issuer_without_role(config):
    steps = build_steps("cert-manager", config)
    issuer = next(s.manifest for s in steps if isinstance(s, Apply) and s.manifest["kind"] == "ClusterIssuer")

    route53 = issuer["spec"]["acme"]["solvers"][0]["dns01"]["route53"]
    assert route53 == {"region": "us-east-1", "hostedZoneID": "Z0123456789ABC"}


def test_terminal_steps(config):
    steps = build_steps("terminal", config)

    assert len(steps) == 1
    assert steps[0].manifest["metadata"]["namespace"] == "openshift-operators"
    assert steps[0].manifest["spec"]["channel"] == "fast"


def test_render_layer(config):
    documents = list(yaml.safe_load_all(render_layer("virtualization", config)))

    assert [document["kind"] for document in documents] == [
        "Namespace",
        "OperatorGroup",
        "Subscription",
        "HyperConverged",
    ]


def test_install_layer_wait_timeout_continues(config):
    def handler(method, url, **kwargs):
        if method == "GET":
            return FakeResponse(404, {})
        if "/hco.kubevirt.io/" in url:
            return FakeResponse(404, {})
        return FakeResponse(201, {})

    session = FakeSession(handler)
    client = KubeClient(API_URL, "token", session=session)
    now = [0.0]

    def sleep(seconds):
        now[0] += seconds

    results = install_layer(
        client, "virtualization", config, timeout=10, sleep=sleep, clock=lambda: now[0]
    )

    assert [result.status for result in results] == [
        "created",
        "created",
        "created",
        "timeout",
        "not ready",
    ]
    assert len(session.posted()) == 4


def test_install_layer_fatal_error_propagates(config):
    session = FakeSession(lambda method, url, **kwargs: FakeResponse(403, {}))
    client = KubeClient(API_URL, "token", session=session)

    with pytest.raises(AuthenticationError):
        install_layer(client, "terminal", config)


def test_install_layer_rejects_missing_settings_of_disabled_layer():
    session = FakeSession()
    client = KubeClient(API_URL, "token", session=session)

    with pytest.raises(ConfigError) as excinfo:
        install_layer(client, "oadp", LayersConfig({"cluster_name": "test", "layers": {}}))

    assert "oadp.bucket is required" in excinfo.value.errors
    assert "oadp.role_arn is required" in excinfo.value.errors
    assert session.calls == []


def test_loki_bucket_stays_a_string(config):
    config.layer("monitoring")["loki_bucket"] = "123456"

    secret = next(
        s.manifest
        for s in build_steps("monitoring", config)
        if isinstance(s, Apply) and s.manifest["kind"] == "Secret"
    )

    assert secret["stringData"]["bucketnames"] == "123456"
