# SPDX-License-Identifier: Apache-2.0

"""GitOps layers: optional operator bundles installed after cluster creation.

Every layer is an ordered list of steps. Apply steps create one object,
WaitOperator steps block until an operator serves its CRD. Objects that
depend on a slowly installing operator are applied as optional so that a
later run completes them.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger
import yaml

from rosagitops import settings
from rosagitops.data import (
    TEMPLATE_BACKUP_SCHEDULE,
    TEMPLATE_CERTIFICATE,
    TEMPLATE_CLUSTER_ISSUER,
    TEMPLATE_CLUSTER_LOG_FORWARDER,
    TEMPLATE_CLUSTER_MONITORING_CONFIG,
    TEMPLATE_CLUSTER_ROLE_BINDING,
    TEMPLATE_DATA_PROTECTION_APPLICATION,
    TEMPLATE_HYPERCONVERGED,
    TEMPLATE_INGRESS_CONTROLLER,
    TEMPLATE_LOKI_S3_SECRET,
    TEMPLATE_LOKISTACK,
    TEMPLATE_NAMESPACE,
    TEMPLATE_OADP_CREDENTIALS,
    TEMPLATE_OPERATOR_GROUP,
    TEMPLATE_SERVICE_ACCOUNT,
    TEMPLATE_SUBSCRIPTION,
)
from rosagitops.utils import render_manifest, WaitTimeout
from rosagitops.wait import wait_for_kind


@dataclass
class Apply:
    manifest: Dict[str, Any]
    optional: bool = False

    @property
    def description(self) -> str:
        metadata = self.manifest.get("metadata") or {}
        name = metadata.get("name", "")
        if metadata.get("namespace"):
            name = f"{metadata['namespace']}/{name}"
        return f"{self.manifest['kind']} {name}"


@dataclass
class WaitOperator:
    group: str
    version: str
    kind: str

    @property
    def description(self) -> str:
        return f"wait for {self.kind} ({self.group}/{self.version})"


Step = Union[Apply, WaitOperator]


@dataclass
class StepResult:
    layer: str
    step: str
    status: str


@dataclass
class Layer:
    name: str
    description: str
    namespace: str
    build: Callable[[Any], List[Step]]


def operator_steps(
    namespace: str,
    package: str,
    channel: str,
    target_namespaces: Optional[List[str]] = None,
    cluster_monitoring: bool = True,
) -> List[Step]:
    """Namespace, OperatorGroup and Subscription of an OLM operator."""
    return [
        Apply(
            render_manifest(
                TEMPLATE_NAMESPACE,
                name=namespace,
                cluster_monitoring=cluster_monitoring,
            )
        ),
        Apply(
            render_manifest(
                TEMPLATE_OPERATOR_GROUP,
                name=namespace,
                namespace=namespace,
                target_namespaces=target_namespaces or [],
            )
        ),
        subscription_step(namespace, package, channel),
    ]


def subscription_step(namespace: str, package: str, channel: str) -> Apply:
    return Apply(
        render_manifest(
            TEMPLATE_SUBSCRIPTION,
            name=package,
            namespace=namespace,
            package=package,
            channel=channel,
        )
    )


def collector_binding(cluster_role: str) -> Apply:
    return Apply(
        render_manifest(
            TEMPLATE_CLUSTER_ROLE_BINDING,
            name=f"collector-{cluster_role}",
            cluster_role=cluster_role,
            service_account="collector",
            namespace="openshift-logging",
        )
    )


def monitoring_steps(config) -> List[Step]:
    layer = config.layer("monitoring")

    steps = operator_steps("openshift-operators-redhat", "loki-operator", "stable-6.0")
    steps += operator_steps("openshift-logging", "cluster-logging", "stable-6.0")
    steps += [
        Apply(
            render_manifest(
                TEMPLATE_CLUSTER_MONITORING_CONFIG,
                prometheus_retention_days=layer["prometheus_retention_days"],
                prometheus_storage_size=layer["prometheus_storage_size"],
                storage_class=layer["storage_class"],
            )
        ),
        Apply(
            render_manifest(
                TEMPLATE_LOKI_S3_SECRET,
                bucket=layer["loki_bucket"],
                region=config.aws_region,
                role_arn=layer["loki_role_arn"],
            )
        ),
        WaitOperator("loki.grafana.com", "v1", "LokiStack"),
        Apply(
            render_manifest(
                TEMPLATE_LOKISTACK,
                size=layer["loki_size"],
                storage_class=layer["storage_class"],
                retention_days=layer["loki_retention_days"],
            ),
            optional=True,
        ),
        Apply(
            render_manifest(
                TEMPLATE_SERVICE_ACCOUNT, name="collector", namespace="openshift-logging"
            )
        ),
        collector_binding("collect-application-logs"),
        collector_binding("collect-infrastructure-logs"),
        collector_binding("logging-collector-logs-writer"),
        WaitOperator("observability.openshift.io", "v1", "ClusterLogForwarder"),
        Apply(render_manifest(TEMPLATE_CLUSTER_LOG_FORWARDER), optional=True),
    ]
    return steps


def oadp_steps(config) -> List[Step]:
    layer = config.layer("oadp")

    steps = operator_steps(
        "openshift-adp",
        "redhat-oadp-operator",
        "stable-1.4",
        target_namespaces=["openshift-adp"],
    )
    steps += [
        Apply(render_manifest(TEMPLATE_OADP_CREDENTIALS, role_arn=layer["role_arn"])),
        WaitOperator("oadp.openshift.io", "v1alpha1", "DataProtectionApplication"),
        Apply(
            render_manifest(
                TEMPLATE_DATA_PROTECTION_APPLICATION,
                cluster_name=config.cluster_name,
                bucket=layer["bucket"],
                prefix=layer["prefix"],
                region=config.aws_region,
            ),
            optional=True,
        ),
        WaitOperator("velero.io", "v1", "Schedule"),
        Apply(
            render_manifest(
                TEMPLATE_BACKUP_SCHEDULE,
                schedule=layer["backup_schedule"],
                retention_days=layer["backup_retention_days"],
            ),
            optional=True,
        ),
    ]
    return steps


def virtualization_steps(config) -> List[Step]:
    steps = operator_steps(
        "openshift-cnv",
        "kubevirt-hyperconverged",
        "stable",
        target_namespaces=["openshift-cnv"],
    )
    steps += [
        WaitOperator("hco.kubevirt.io", "v1beta1", "HyperConverged"),
        Apply(render_manifest(TEMPLATE_HYPERCONVERGED), optional=True),
    ]
    return steps


def cert_manager_steps(config) -> List[Step]:
    layer = config.layer("cert-manager")

    steps = operator_steps(
        "cert-manager-operator", "openshift-cert-manager-operator", "stable-v1"
    )
    steps += [
        WaitOperator("cert-manager.io", "v1", "ClusterIssuer"),
        Apply(
            render_manifest(
                TEMPLATE_CLUSTER_ISSUER,
                acme_server=layer["acme_server"],
                acme_email=layer["acme_email"],
                domain=layer["domain"],
                region=config.aws_region,
                hosted_zone_id=layer["hosted_zone_id"],
                role_arn=layer["role_arn"],
            ),
            optional=True,
        ),
        Apply(render_manifest(TEMPLATE_CERTIFICATE, domain=layer["domain"]), optional=True),
    ]
    if layer["create_ingress_controller"]:
        steps.append(
            Apply(
                render_manifest(
                    TEMPLATE_INGRESS_CONTROLLER,
                    domain=layer["domain"],
                    replicas=layer["ingress_replicas"],
                    scope=layer["ingress_scope"],
                )
            )
        )
    return steps


def terminal_steps(config) -> List[Step]:
    return [subscription_step("openshift-operators", "web-terminal", "fast")]


LAYERS: Dict[str, Layer] = {
    layer.name: layer
    for layer in [
        Layer(
            "monitoring",
            "Logging (Loki on S3 via STS) and Prometheus retention",
            "openshift-logging",
            monitoring_steps,
        ),
        Layer("oadp", "Backup and restore with OADP (Velero)", "openshift-adp", oadp_steps),
        Layer(
            "virtualization",
            "OpenShift Virtualization (KubeVirt)",
            "openshift-cnv",
            virtualization_steps,
        ),
        Layer(
            "cert-manager",
            "cert-manager with Let's Encrypt (Route53 DNS01) and custom domain ingress",
            "cert-manager-operator",
            cert_manager_steps,
        ),
        Layer("terminal", "Web Terminal operator", "openshift-operators", terminal_steps),
    ]
}


def build_steps(name, config) -> List[Step]:
    if name not in LAYERS:
        raise KeyError(f"Unknown layer '{name}'. Must be one of: {', '.join(LAYERS)}")
    return LAYERS[name].build(config)


def render_layer(name, config) -> str:
    """All manifests of a layer as one multi-document YAML stream."""
    manifests = [step.manifest for step in build_steps(name, config) if isinstance(step, Apply)]
    return yaml.safe_dump_all(manifests, sort_keys=False, explicit_start=True)


def install_layer(
    client,
    name,
    config,
    timeout=settings.OPERATOR_WAIT_TIMEOUT,
    **wait_kwargs,
) -> List[StepResult]:
    """Apply every step of a layer in order.

    A WaitOperator step that runs out of time is reported and the layer
    continues, its dependent objects are optional and are skipped as not
    ready. Fatal API errors propagate.

    The settings of the layer are validated first, even when the layer is
    disabled in the configuration, so that nothing is created from
    missing values.
    """
    steps = build_steps(name, config)
    config.validate(layers=[name])

    logger.info(f"Installing layer {name}")
    results = []

    for step in steps:
        if isinstance(step, WaitOperator):
            try:
                wait_for_kind(
                    client, step.group, step.version, step.kind, timeout, **wait_kwargs
                )
                status = "ready"
            except WaitTimeout as exc:
                logger.warning(f"{exc}, dependent objects will be skipped")
                status = "timeout"
        else:
            result = client.apply_manifest(
                step.manifest, optional=step.optional, description=f"Creating {step.description}"
            )
            status = result.outcome.value

        results.append(StepResult(name, step.description, status))

    return results
