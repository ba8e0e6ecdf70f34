# SPDX-License-Identifier: Apache-2.0

"""oc-mirror configuration for zero-egress clusters.

oc-mirror resolves operator dependencies declared in the CSV on its own,
so the profiles only list the operators used directly.
"""

import os
from urllib.parse import urlparse

from loguru import logger

from rosagitops.data import (
    TEMPLATE_IMAGE_DIGEST_MIRROR_SET,
    TEMPLATE_IMAGESET_CONFIGURATION,
)
from rosagitops.utils import render_template

GITOPS = {"name": "openshift-gitops-operator", "channel": "latest"}
TERMINAL = {"name": "web-terminal", "channel": "fast"}
VIRTUALIZATION = {"name": "kubevirt-hyperconverged", "channel": "stable"}
OBSERVABILITY = {"name": "cluster-observability-operator", "channel": "stable"}
LOKI = {"name": "loki-operator", "channel": "stable-6.0"}
LOGGING = {"name": "cluster-logging", "channel": "stable-6.0"}
OADP = {"name": "redhat-oadp-operator", "channel": "stable-1.4"}
CERT_MANAGER = {"name": "openshift-cert-manager-operator", "channel": "stable-v1"}

# An empty list mirrors the whole catalog
PROFILES = {
    "layers": [GITOPS, TERMINAL, VIRTUALIZATION, OBSERVABILITY, LOKI, LOGGING, OADP, CERT_MANAGER],
    "minimal": [GITOPS, TERMINAL],
    "standard": [GITOPS, TERMINAL, OADP, LOGGING, LOKI, CERT_MANAGER],
    "full": [],
    "custom": [GITOPS],
}


def registry_host(ecr_url):
    """123456789012.dkr.ecr.us-east-1.amazonaws.com from any form of the URL."""
    if "://" not in ecr_url:
        ecr_url = f"https://{ecr_url}"
    return urlparse(ecr_url).netloc


def imageset_config(profile, ocp_version, filename="imageset-config.yaml"):
    if profile not in PROFILES:
        raise ValueError(
            f"Unknown profile: {profile}. Must be one of: {', '.join(PROFILES)}"
        )
    return render_template(
        TEMPLATE_IMAGESET_CONFIGURATION,
        profile=profile,
        ocp_version=ocp_version,
        filename=filename,
        packages=PROFILES[profile],
    )


def idms_config(ecr_url, filename="idms-config.yaml"):
    return render_template(
        TEMPLATE_IMAGE_DIGEST_MIRROR_SET,
        registry_host=registry_host(ecr_url),
        filename=filename,
    )


def generate(profile, ocp_version, output_dir, ecr_url=None):
    """Write the ImageSetConfiguration and, with an ECR URL, the IDMS.

    Returns:
        list: Paths of the written files
    """
    os.makedirs(output_dir, exist_ok=True)
    written = []

    config_file = os.path.join(output_dir, f"imageset-config-{profile}.yaml")
    with open(config_file, "w") as fp:
        fp.write(imageset_config(profile, ocp_version, config_file))
    logger.success(f"Generated ImageSetConfiguration: {config_file}")
    written.append(config_file)

    if profile == "full":
        logger.warning("Full profile mirrors the ENTIRE operator catalog (~100GB+)")
        logger.warning("Consider using the 'standard' or 'custom' profile instead")

    if ecr_url:
        idms_file = os.path.join(output_dir, "idms-config.yaml")
        with open(idms_file, "w") as fp:
            fp.write(idms_config(ecr_url, idms_file))
        logger.success(f"Generated IDMS config: {idms_file}")
        written.append(idms_file)

    return written


def instructions(config_file, ecr_url, idms_file):
    return [
        "Authenticate to the Red Hat registry: oc-mirror login registry.redhat.io",
        "Authenticate to ECR: aws ecr get-login-password --region <region> | "
        f"docker login --username AWS --password-stdin {ecr_url}",
        f"Mirror disk-to-disk: oc-mirror --config {config_file} file://mirror-data",
        "Transfer mirror-data into the air-gapped network",
        f"Push to ECR: oc-mirror --from ./mirror-data docker://{ecr_url}",
        f"Apply the IDMS to the cluster: oc apply -f {idms_file}",
    ]
