# SPDX-License-Identifier: Apache-2.0

"""Verification of the monitoring layer through the cluster API."""

import base64
from dataclasses import dataclass
import re

from loguru import logger

from rosagitops.core.enums import CheckStatus
from rosagitops.utils import first

MONITORING_NAMESPACE = "openshift-monitoring"
LOGGING_NAMESPACE = "openshift-logging"
LOKI_COMPONENTS = ["distributor", "ingester", "querier", "compactor"]

RE_STS_TOPIC = re.compile(r"sts|assume|credential", re.IGNORECASE)
RE_ERROR = re.compile(r"error|fail", re.IGNORECASE)
RE_RETENTION = re.compile(r"retention|delete|compact", re.IGNORECASE)


def ready_condition(obj):
    conditions = ((obj or {}).get("status") or {}).get("conditions") or []
    return first(conditions, lambda condition: condition.get("type") == "Ready")


@dataclass
class Check:
    section: str
    name: str
    status: CheckStatus
    message: str


class MonitoringVerifier:
    def __init__(self, client, verbose=False):
        self.client = client
        self.verbose = verbose
        self.checks = []

    def detail(self, lines):
        """Raw listings, shown at info level only in verbose mode."""
        level = "INFO" if self.verbose else "DEBUG"
        for line in lines:
            logger.log(level, f"    {line}")

    def record(self, section, name, status, message):
        check = Check(section, name, status, message)
        self.checks.append(check)
        if status is CheckStatus.PASS:
            logger.info(f"[{section}] {message}")
        elif status is CheckStatus.WARN:
            logger.warning(f"[{section}] {message}")
        else:
            logger.error(f"[{section}] {message}")
        return check

    @property
    def failed(self):
        return any(check.status is CheckStatus.FAIL for check in self.checks)

    def list_items(self, path, selector=None):
        params = {"labelSelector": selector} if selector else None
        result = self.client.get_json(path, params=params)
        return (result or {}).get("items", [])

    def component_ready(self, component):
        pods = self.list_items(
            f"/api/v1/namespaces/{LOGGING_NAMESPACE}/pods",
            f"app.kubernetes.io/component={component}",
        )
        if not pods:
            return False
        ready = ready_condition(pods[0])
        return bool(ready) and ready.get("status") == "True"

    def component_logs(self, component, tail):
        pods = self.list_items(
            f"/api/v1/namespaces/{LOGGING_NAMESPACE}/pods",
            f"app.kubernetes.io/component={component}",
        )
        lines = []
        for pod in pods:
            name = pod["metadata"]["name"]
            text = self.client.get_text(
                f"/api/v1/namespaces/{LOGGING_NAMESPACE}/pods/{name}/log",
                params={"tailLines": tail},
            )
            lines.extend(text.splitlines())
        return lines

    def prometheus_storage(self):
        section = "prometheus storage"
        selector = "app.kubernetes.io/name=prometheus"

        pvcs = self.list_items(
            f"/api/v1/namespaces/{MONITORING_NAMESPACE}/persistentvolumeclaims",
            selector,
        )
        if not pvcs:
            self.record(
                section,
                "pvc",
                CheckStatus.FAIL,
                "No Prometheus PVCs found, cluster-monitoring-config may not be applied",
            )
            return

        self.detail(
            f"{pvc.get('metadata', {}).get('name', '')} {pvc.get('status', {}).get('phase', 'Unknown')} "
            f"{pvc.get('spec', {}).get('storageClassName', '')}"
            for pvc in pvcs
        )
        bound = sum(1 for pvc in pvcs if pvc.get("status", {}).get("phase") == "Bound")
        status = CheckStatus.PASS if bound == len(pvcs) else CheckStatus.FAIL
        storage_class = pvcs[0].get("spec", {}).get("storageClassName", "unknown")
        self.record(
            section,
            "pvc",
            status,
            f"{bound}/{len(pvcs)} Prometheus PVCs are Bound (storage class {storage_class})",
        )

        pods = self.list_items(f"/api/v1/namespaces/{MONITORING_NAMESPACE}/pods", selector)
        running = sum(
            1 for pod in pods if pod.get("status", {}).get("phase") == "Running"
        )
        status = (
            CheckStatus.PASS if pods and running == len(pods) else CheckStatus.FAIL
        )
        self.record(
            section, "pods", status, f"{running}/{len(pods)} Prometheus pods are Running"
        )

    def loki_sts(self):
        section = "loki sts"

        lokistack = self.client.get_json(
            f"/apis/loki.grafana.com/v1/namespaces/{LOGGING_NAMESPACE}/lokistacks/logging-loki"
        )
        if lokistack is None:
            self.record(
                section,
                "lokistack",
                CheckStatus.WARN,
                "LokiStack 'logging-loki' not found, logging may not be deployed yet",
            )
            return
        self.record(section, "lokistack", CheckStatus.PASS, "LokiStack 'logging-loki' exists")

        secret = self.client.get_json(
            f"/api/v1/namespaces/{LOGGING_NAMESPACE}/secrets/logging-loki-s3"
        )
        if secret is None:
            self.record(
                section,
                "secret",
                CheckStatus.FAIL,
                "S3 credentials secret 'logging-loki-s3' not found",
            )
            return

        encoded = (secret.get("data") or {}).get("role_arn")
        if encoded:
            role_arn = base64.b64decode(encoded).decode("utf-8")
            self.record(
                section, "role_arn", CheckStatus.PASS, f"IAM role ARN configured: {role_arn}"
            )
        else:
            self.record(
                section, "role_arn", CheckStatus.FAIL, "role_arn not found in S3 secret"
            )

        errors = [
            line
            for line in self.component_logs("ingester", 50)
            if RE_STS_TOPIC.search(line) and RE_ERROR.search(line)
        ]
        if errors:
            self.record(
                section,
                "sts errors",
                CheckStatus.FAIL,
                "STS errors found in Loki ingester logs: " + " | ".join(errors[:5]),
            )
        else:
            self.record(
                section, "sts errors", CheckStatus.PASS, "No STS errors in Loki ingester logs"
            )

        for component in LOKI_COMPONENTS:
            if self.component_ready(component):
                self.record(section, component, CheckStatus.PASS, f"Loki {component} is Ready")
            else:
                self.record(
                    section, component, CheckStatus.WARN, f"Loki {component} is not Ready"
                )

    def retention(self):
        section = "retention"

        prometheus = self.client.get_json(
            f"/apis/monitoring.coreos.com/v1/namespaces/{MONITORING_NAMESPACE}/prometheuses/k8s"
        )
        value = ((prometheus or {}).get("spec") or {}).get("retention")
        if value:
            self.record(section, "prometheus", CheckStatus.PASS, f"Prometheus retention: {value}")
        else:
            self.record(
                section,
                "prometheus",
                CheckStatus.WARN,
                "Prometheus retention not explicitly set (using default)",
            )

        lokistack = self.client.get_json(
            f"/apis/loki.grafana.com/v1/namespaces/{LOGGING_NAMESPACE}/lokistacks/logging-loki"
        )
        days = (
            ((((lokistack or {}).get("spec") or {}).get("limits") or {}).get("global") or {})
            .get("retention", {})
            .get("days")
        )
        if days:
            self.record(section, "lokistack", CheckStatus.PASS, f"LokiStack retention: {days} days")
        else:
            self.record(
                section, "lokistack", CheckStatus.WARN, "LokiStack retention not found in spec"
            )

        if self.component_ready("compactor"):
            self.record(
                section,
                "compactor",
                CheckStatus.PASS,
                "Loki compactor is running (enforces retention)",
            )
        else:
            self.record(
                section,
                "compactor",
                CheckStatus.WARN,
                "Loki compactor is not ready (retention may not be enforced)",
            )
            return

        activity = [
            line for line in self.component_logs("compactor", 100) if RE_RETENTION.search(line)
        ]
        if activity:
            self.detail(activity[-3:])
            message = "Compactor retention activity detected"
        else:
            message = "No recent retention activity (normal if logs are fresh)"
        self.record(section, "activity", CheckStatus.PASS, message)

    def metrics(self):
        section = "metrics"

        monitors = self.list_items(
            f"/apis/monitoring.coreos.com/v1/namespaces/{LOGGING_NAMESPACE}/servicemonitors"
        )
        if monitors:
            self.record(
                section,
                "servicemonitors",
                CheckStatus.PASS,
                f"Found {len(monitors)} ServiceMonitor(s) in {LOGGING_NAMESPACE}",
            )
        else:
            self.record(
                section,
                "servicemonitors",
                CheckStatus.WARN,
                f"No ServiceMonitors found in {LOGGING_NAMESPACE}",
            )

        names = [monitor["metadata"]["name"] for monitor in monitors]
        if "collector-metrics" in names:
            self.record(
                section, "collector", CheckStatus.PASS, "Vector collector ServiceMonitor exists"
            )
        else:
            self.record(
                section,
                "collector",
                CheckStatus.WARN,
                "Vector collector ServiceMonitor not found",
            )

    def log_forwarding(self):
        section = "log forwarding"

        forwarder = self.client.get_json(
            f"/apis/observability.openshift.io/v1/namespaces/{LOGGING_NAMESPACE}/clusterlogforwarders/instance"
        )
        if forwarder is None:
            self.record(
                section,
                "clusterlogforwarder",
                CheckStatus.WARN,
                "ClusterLogForwarder 'instance' not found",
            )
            return

        ready = ready_condition(forwarder)
        if ready and ready.get("status") == "True":
            self.record(
                section, "clusterlogforwarder", CheckStatus.PASS, "ClusterLogForwarder is Ready"
            )
        else:
            message = "ClusterLogForwarder is not Ready"
            if ready and ready.get("message"):
                message += f": {ready['message']}"
            self.record(section, "clusterlogforwarder", CheckStatus.WARN, message)

        daemonset = self.client.get_json(
            f"/apis/apps/v1/namespaces/{LOGGING_NAMESPACE}/daemonsets/collector"
        )
        status = (daemonset or {}).get("status") or {}
        desired = status.get("desiredNumberScheduled", 0)
        ready_pods = status.get("numberReady", 0)
        self.record(
            section,
            "collector",
            CheckStatus.PASS if desired and desired == ready_pods else CheckStatus.FAIL,
            f"Vector collector DaemonSet: {ready_pods}/{desired} pods ready",
        )

    def run(self):
        self.prometheus_storage()
        self.loki_sts()
        self.retention()
        self.metrics()
        self.log_forwarding()
        return self.checks
