# SPDX-License-Identifier: Apache-2.0

import base64
from unittest import mock

from rosagitops.core.enums import CheckStatus
from rosagitops.kube import KubeClient
from rosagitops.verify import MonitoringVerifier

from .fakes import API_URL, FakeResponse, FakeSession, ROLE_ARN

LOGGING = "/api/v1/namespaces/openshift-logging"
MONITORING = "/api/v1/namespaces/openshift-monitoring"
LOKISTACK = "/apis/loki.grafana.com/v1/namespaces/openshift-logging/lokistacks/logging-loki"


def ready_pod(name):
    return {
        "metadata": {"name": name},
        "status": {"phase": "Running", "conditions": [{"type": "Ready", "status": "True"}]},
    }


def healthy_cluster():
    return {
        f"{MONITORING}/persistentvolumeclaims": {
            "items": [
                {"spec": {"storageClassName": "gp3-csi"}, "status": {"phase": "Bound"}},
                {"spec": {"storageClassName": "gp3-csi"}, "status": {"phase": "Bound"}},
            ]
        },
        f"{MONITORING}/pods": {"items": [ready_pod("prometheus-k8s-0"), ready_pod("prometheus-k8s-1")]},
        LOKISTACK: {"spec": {"limits": {"global": {"retention": {"days": 7}}}}},
        f"{LOGGING}/secrets/logging-loki-s3": {
            "data": {"role_arn": base64.b64encode(ROLE_ARN.encode()).decode()}
        },
        "/apis/monitoring.coreos.com/v1/namespaces/openshift-monitoring/prometheuses/k8s": {
            "spec": {"retention": "15d"}
        },
        "/apis/monitoring.coreos.com/v1/namespaces/openshift-logging/servicemonitors": {
            "items": [{"metadata": {"name": "collector-metrics"}}]
        },
        "/apis/observability.openshift.io/v1/namespaces/openshift-logging/clusterlogforwarders/instance": {
            "status": {"conditions": [{"type": "Ready", "status": "True"}]}
        },
        "/apis/apps/v1/namespaces/openshift-logging/daemonsets/collector": {
            "status": {"desiredNumberScheduled": 3, "numberReady": 3}
        },
    }


def fake_client(objects, logs="level=info msg=\"flushing\""):
    def handler(method, url, **kwargs):
        path = url[len(API_URL):]
        params = kwargs.get("params") or {}
        if path == f"{LOGGING}/pods":
            component = params["labelSelector"].split("=", 1)[1]
            return FakeResponse(200, {"items": [ready_pod(f"logging-loki-{component}-0")]})
        if path.endswith("/log"):
            return FakeResponse(200, text=logs)
        if path in objects:
            return FakeResponse(200, objects[path])
        return FakeResponse(404, {})

    return KubeClient(API_URL, "token", session=FakeSession(handler))


def statuses(checks):
    return {(check.section, check.name): check.status for check in checks}


def test_healthy_cluster():
    verifier = MonitoringVerifier(fake_client(healthy_cluster()))

    checks = verifier.run()

    assert not verifier.failed
    assert all(check.status is CheckStatus.PASS for check in checks)
    messages = [check.message for check in checks]
    assert f"IAM role ARN configured: {ROLE_ARN}" in messages
    assert "LokiStack retention: 7 days" in messages


def test_missing_prometheus_pvcs_fail():
    objects = healthy_cluster()
    del objects[f"{MONITORING}/persistentvolumeclaims"]
    verifier = MonitoringVerifier(fake_client(objects))

    verifier.prometheus_storage()

    assert verifier.failed
    assert statuses(verifier.checks)[("prometheus storage", "pvc")] is CheckStatus.FAIL


def test_sts_errors_in_ingester_logs_fail():
    logs = 'level=error msg="failed to AssumeRoleWithWebIdentity: AccessDenied"'
    verifier = MonitoringVerifier(fake_client(healthy_cluster(), logs=logs))

    verifier.loki_sts()

    assert statuses(verifier.checks)[("loki sts", "sts errors")] is CheckStatus.FAIL


def test_missing_lokistack_is_a_warning():
    objects = healthy_cluster()
    del objects[LOKISTACK]
    verifier = MonitoringVerifier(fake_client(objects))

    verifier.loki_sts()

    assert not verifier.failed
    assert [check.status for check in verifier.checks] == [CheckStatus.WARN]


def test_collector_not_ready_fails():
    objects = healthy_cluster()
    objects["/apis/apps/v1/namespaces/openshift-logging/daemonsets/collector"] = {
        "status": {"desiredNumberScheduled": 3, "numberReady": 1}
    }
    verifier = MonitoringVerifier(fake_client(objects))

    verifier.log_forwarding()

    assert statuses(verifier.checks)[("log forwarding", "collector")] is CheckStatus.FAIL


def test_verbose_shows_pvc_listing():
    objects = healthy_cluster()
    objects[f"{MONITORING}/persistentvolumeclaims"]["items"][0]["metadata"] = {
        "name": "prometheus-data-prometheus-k8s-0"
    }

    with mock.patch("rosagitops.verify.logger") as logger:
        MonitoringVerifier(fake_client(objects), verbose=True).prometheus_storage()

    assert mock.call("INFO", "    prometheus-data-prometheus-k8s-0 Bound gp3-csi") in (
        logger.log.call_args_list
    )


def test_pvc_listing_is_debug_by_default():
    with mock.patch("rosagitops.verify.logger") as logger:
        MonitoringVerifier(fake_client(healthy_cluster())).prometheus_storage()

    assert {call[0][0] for call in logger.log.call_args_list} == {"DEBUG"}
