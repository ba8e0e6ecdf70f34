# SPDX-License-Identifier: Apache-2.0

import os
import re
from typing import Any, Dict, List, Optional

from loguru import logger
import yaml

from rosagitops import settings

LAYER_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "monitoring": {
        "enabled": False,
        "loki_bucket": None,
        "loki_role_arn": None,
        "loki_retention_days": 7,
        "loki_size": "1x.extra-small",
        "prometheus_retention_days": 15,
        "prometheus_storage_size": "100Gi",
        "storage_class": "gp3-csi",
    },
    "oadp": {
        "enabled": False,
        "bucket": None,
        "role_arn": None,
        "prefix": "velero",
        "backup_retention_days": 30,
        "backup_schedule": "0 2 * * *",
    },
    "virtualization": {
        "enabled": False,
    },
    "cert-manager": {
        "enabled": False,
        "domain": None,
        "hosted_zone_id": None,
        "role_arn": None,
        "acme_email": None,
        "acme_server": "https://acme-v02.api.letsencrypt.org/directory",
        "create_ingress_controller": True,
        "ingress_scope": "External",
        "ingress_replicas": 2,
    },
    "terminal": {
        "enabled": False,
    },
}

LOKI_SIZES = ["1x.demo", "1x.pico", "1x.extra-small", "1x.small", "1x.medium"]

RE_CLUSTER_NAME = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
RE_REGION = re.compile(r"^[a-z]{2}(-gov)?-[a-z]+-\d$")
RE_ROLE_ARN = re.compile(r"^arn:(aws|aws-us-gov):iam::\d{12}:role/[\w+=,.@/-]+$")
RE_BUCKET = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
RE_SIZE = re.compile(r"^\d+(Mi|Gi|Ti)$")
RE_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
RE_DOMAIN = re.compile(r"^([a-z0-9]([-a-z0-9]*[a-z0-9])?\.)+[a-z]{2,}$")
RE_HOSTED_ZONE = re.compile(r"^Z[A-Z0-9]+$")
RE_CRON = re.compile(r"^(\S+\s+){4}\S+$")


class ConfigError(ValueError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(
            "Invalid layers configuration:\n"
            + "\n".join(f"  - {error}" for error in self.errors)
        )


class LayersConfig:
    """Cluster facts and GitOps layer toggles."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        data = data or {}

        self.cluster_name: str = data.get("cluster_name", "rosa")
        self.aws_region: str = data.get("aws_region", "us-east-1")
        self.gitops_channel: str = data.get("gitops_channel", "latest")
        self.gitops_repo_url: Optional[str] = data.get("gitops_repo_url")
        self.gitops_repo_revision: str = data.get("gitops_repo_revision", "main")
        self.gitops_repo_path: str = data.get(
            "gitops_repo_path", "gitops-layers/layers"
        )

        layers = data.get("layers") or {}
        self.unknown_layers = sorted(set(layers) - set(LAYER_DEFAULTS))
        self.layers: Dict[str, Dict[str, Any]] = {}
        for name, defaults in LAYER_DEFAULTS.items():
            self.layers[name] = {**defaults, **(layers.get(name) or {})}

    @property
    def partition(self) -> str:
        if self.aws_region.startswith("us-gov-"):
            return "aws-us-gov"
        return "aws"

    def layer(self, name: str) -> Dict[str, Any]:
        return self.layers[name]

    def enabled(self, name: str) -> bool:
        return bool(self.layers[name]["enabled"])

    def enabled_layers(self) -> List[str]:
        return [name for name in self.layers if self.enabled(name)]

    def configmap_data(self) -> Dict[str, str]:
        """Flat string mapping published as the rosa-gitops-config ConfigMap."""
        data = {
            "cluster_name": self.cluster_name,
            "aws_region": self.aws_region,
        }
        for name, values in self.layers.items():
            prefix = name.replace("-", "_")
            for key, value in values.items():
                if value is None:
                    continue
                if isinstance(value, bool):
                    value = str(value).lower()
                data[f"layer_{prefix}_{key}"] = str(value)
        return data

    def validate(self, layers: Optional[List[str]] = None) -> None:
        """Check the configuration and raise one ConfigError with every problem.

        Settings are checked for every enabled layer and for every layer
        named in layers, which may be disabled in the file.
        """
        errors = []
        selected = set(self.enabled_layers()) | set(layers or [])

        for name in self.unknown_layers:
            errors.append(
                f"Unknown layer '{name}'. Must be one of: {', '.join(LAYER_DEFAULTS)}"
            )

        if len(self.cluster_name) > 54 or not RE_CLUSTER_NAME.match(self.cluster_name):
            errors.append(
                "cluster_name must be at most 54 lower-case alphanumeric characters or '-'"
            )
        if not RE_REGION.match(self.aws_region):
            errors.append(f"aws_region '{self.aws_region}' is not a valid AWS region")
        if self.gitops_repo_url and not self.gitops_repo_url.startswith("https://"):
            errors.append("gitops_repo_url must be an https:// URL")

        if "monitoring" in selected:
            errors += self._validate_monitoring(self.layer("monitoring"))
        if "oadp" in selected:
            errors += self._validate_oadp(self.layer("oadp"))
        if "cert-manager" in selected:
            errors += self._validate_cert_manager(self.layer("cert-manager"))

        if errors:
            raise ConfigError(errors)

    def _validate_role_arn(self, field, value, required=True):
        if not value:
            return [f"{field} is required"] if required else []
        if not RE_ROLE_ARN.match(value):
            return [f"{field} '{value}' is not a valid IAM role ARN"]
        if not value.startswith(f"arn:{self.partition}:"):
            return [
                f"{field} must use the '{self.partition}' partition for region {self.aws_region}"
            ]
        return []

    def _validate_bucket(self, field, value):
        if not value:
            return [f"{field} is required"]
        if not RE_BUCKET.match(value):
            return [f"{field} '{value}' is not a valid S3 bucket name"]
        return []

    def _validate_range(self, field, value, minimum, maximum):
        if not isinstance(value, int) or isinstance(value, bool):
            return [f"{field} must be an integer"]
        if not minimum <= value <= maximum:
            return [f"{field} must be between {minimum} and {maximum}"]
        return []

    def _validate_monitoring(self, layer):
        errors = []
        errors += self._validate_bucket("monitoring.loki_bucket", layer["loki_bucket"])
        errors += self._validate_role_arn(
            "monitoring.loki_role_arn", layer["loki_role_arn"]
        )
        errors += self._validate_range(
            "monitoring.loki_retention_days", layer["loki_retention_days"], 1, 365
        )
        errors += self._validate_range(
            "monitoring.prometheus_retention_days",
            layer["prometheus_retention_days"],
            1,
            90,
        )
        if not RE_SIZE.match(str(layer["prometheus_storage_size"])):
            errors.append(
                "monitoring.prometheus_storage_size must look like 100Gi (Mi, Gi or Ti)"
            )
        if layer["loki_size"] not in LOKI_SIZES:
            errors.append(
                f"monitoring.loki_size must be one of: {', '.join(LOKI_SIZES)}"
            )
        return errors

    def _validate_oadp(self, layer):
        errors = []
        errors += self._validate_bucket("oadp.bucket", layer["bucket"])
        errors += self._validate_role_arn("oadp.role_arn", layer["role_arn"])
        errors += self._validate_range(
            "oadp.backup_retention_days", layer["backup_retention_days"], 1, 365
        )
        if not RE_CRON.match(str(layer["backup_schedule"])):
            errors.append("oadp.backup_schedule must be a five field cron expression")
        return errors

    def _validate_cert_manager(self, layer):
        errors = []
        if not layer["domain"] or not RE_DOMAIN.match(layer["domain"]):
            errors.append("cert-manager.domain must be a DNS domain name")
        if not layer["hosted_zone_id"] or not RE_HOSTED_ZONE.match(
            layer["hosted_zone_id"]
        ):
            errors.append("cert-manager.hosted_zone_id must be a Route53 zone ID")
        if not layer["acme_email"] or not RE_EMAIL.match(layer["acme_email"]):
            errors.append("cert-manager.acme_email must be an e-mail address")
        errors += self._validate_role_arn(
            "cert-manager.role_arn", layer["role_arn"], required=False
        )
        if layer["ingress_scope"] not in ("External", "Internal"):
            errors.append("cert-manager.ingress_scope must be External or Internal")
        errors += self._validate_range(
            "cert-manager.ingress_replicas", layer["ingress_replicas"], 1, 10
        )
        return errors


def load_config(path: Optional[str] = None, required: bool = True) -> LayersConfig:
    """Load and validate the layers configuration file.

    Without a file an empty configuration with every layer disabled is
    returned, unless the file is required.
    """
    path = path or settings.CONFIG_PATH

    if not os.path.exists(path):
        if required:
            raise ConfigError([f"Configuration file not found: {path}"])
        logger.debug(f"No configuration file at {path}, using defaults")
        return LayersConfig()

    try:
        with open(path, "r") as fp:
            data = yaml.safe_load(fp)
    except yaml.YAMLError as exc:
        raise ConfigError([f"Unable to parse {path}: {exc}"]) from exc

    if data is not None and not isinstance(data, dict):
        raise ConfigError([f"{path} must contain a mapping"])

    config = LayersConfig(data)
    config.validate()
    logger.debug(f"Loaded layers configuration from {path}")
    return config
