# SPDX-License-Identifier: Apache-2.0

"""Bootstrap of the OpenShift GitOps operator and the rosa-layers ApplicationSet."""

from loguru import logger

from rosagitops import settings
from rosagitops.config import ConfigError
from rosagitops.data import (
    TEMPLATE_APPLICATION_SET,
    TEMPLATE_ARGOCD,
    TEMPLATE_CLUSTER_ROLE_BINDING,
    TEMPLATE_GITOPS_CONFIGMAP,
    TEMPLATE_NAMESPACE,
    TEMPLATE_SUBSCRIPTION,
)
from rosagitops.kube import AuthenticationError, UnexpectedResponseError, excerpt
from rosagitops.layers import LAYERS
from rosagitops.utils import render_manifest, WaitTimeout
from rosagitops.wait import wait_for_kind


def validate(client):
    """Check that the API server is reachable with the given token."""
    logger.info(f"API URL: {client.api_url}")
    logger.info(f"Token length: {len(client.token)}")

    if not client.token:
        raise AuthenticationError(
            "Token is empty. This usually means the cluster_auth module failed, "
            "check the cluster_auth_summary output for details."
        )

    logger.info(">>> Testing API connectivity")
    response = client.get("/api/v1/namespaces/default")
    logger.info(f"HTTP Status: {response.status_code}")

    if response.status_code in (401, 403):
        logger.error(excerpt(response.text))
        raise AuthenticationError(
            "Authentication failed", response.status_code, response.text
        )
    if response.status_code != 200:
        logger.error(excerpt(response.text, 10))
        raise UnexpectedResponseError(
            f"Unexpected response {response.status_code} while testing connectivity",
            response.status_code,
            response.text,
        )

    logger.success("SUCCESS")
    return True


def namespace(client, name=settings.GITOPS_NAMESPACE):
    manifest = render_manifest(TEMPLATE_NAMESPACE, name=name, cluster_monitoring=True)
    return client.apply_manifest(manifest, description=f"Creating {name} namespace")


def subscription(client, channel="latest"):
    manifest = render_manifest(
        TEMPLATE_SUBSCRIPTION,
        name="openshift-gitops-operator",
        namespace="openshift-operators",
        package="openshift-gitops-operator",
        channel=channel,
    )
    return client.apply_manifest(
        manifest, description="Creating GitOps operator subscription"
    )


def rbac(client, name=settings.GITOPS_NAMESPACE):
    manifest = render_manifest(
        TEMPLATE_CLUSTER_ROLE_BINDING,
        name="openshift-gitops-cluster-admin",
        cluster_role="cluster-admin",
        service_account="openshift-gitops-argocd-application-controller",
        namespace=name,
    )
    return client.apply_manifest(
        manifest, description="Creating cluster-admin RBAC for ArgoCD"
    )


def wait_crd(client, timeout=settings.CRD_WAIT_TIMEOUT, strict=False, **kwargs):
    """Wait for the ArgoCD CRD.

    Unless strict, running out of time is only a warning; the following
    argocd step then fails on its own and a re-run picks up from there.
    """
    try:
        wait_for_kind(client, "argoproj.io", "v1beta1", "ArgoCD", timeout, **kwargs)
    except WaitTimeout:
        if strict:
            raise
        logger.warning(f"ArgoCD CRD not ready after {timeout} seconds")
        return False
    return True


def argocd(client, name=settings.GITOPS_NAMESPACE):
    manifest = render_manifest(TEMPLATE_ARGOCD, namespace=name)
    return client.apply_manifest(manifest, description="Creating ArgoCD instance")


def configmap(client, document=None, config=None, name=settings.GITOPS_NAMESPACE):
    """Create the rosa-gitops-config ConfigMap.

    Either a ready YAML document is sent as-is or the ConfigMap is
    rendered from the layers configuration.
    """
    description = "Creating rosa-gitops-config ConfigMap"
    if document is not None:
        return client.create(
            f"/api/v1/namespaces/{name}/configmaps", document, description
        )
    if config is None:
        raise ConfigError(["Either a ConfigMap document or a configuration is required"])

    manifest = render_manifest(
        TEMPLATE_GITOPS_CONFIGMAP, namespace=name, data=config.configmap_data()
    )
    return client.apply_manifest(manifest, description=description)


def appset_manifest(config, name=settings.GITOPS_NAMESPACE):
    if not config.gitops_repo_url:
        raise ConfigError(["gitops_repo_url is required to render the ApplicationSet"])

    elements = [
        {
            "layer": layer,
            "path": f"{config.gitops_repo_path.rstrip('/')}/{layer}",
            "namespace": LAYERS[layer].namespace,
        }
        for layer in config.enabled_layers()
    ]
    return render_manifest(
        TEMPLATE_APPLICATION_SET,
        namespace=name,
        elements=elements,
        repo_url=config.gitops_repo_url,
        revision=config.gitops_repo_revision,
    )


def appset(client, document=None, config=None, name=settings.GITOPS_NAMESPACE):
    description = "Creating rosa-layers ApplicationSet"
    if document is not None:
        return client.create(
            f"/apis/argoproj.io/v1alpha1/namespaces/{name}/applicationsets",
            document,
            description,
        )
    if config is None:
        raise ConfigError(
            ["Either an ApplicationSet document or a configuration is required"]
        )
    return client.apply_manifest(appset_manifest(config, name), description=description)


def apply_yaml(client, description, endpoint, document, optional=False):
    kind = "Applying (optional)" if optional else "Applying"
    logger.info(f"{kind}: {description}")
    return client.create(endpoint, document, description, optional=optional)


def bootstrap(client, config, **kwargs):
    """Run every bootstrap step in order.

    Here the CRD wait is strict, the ArgoCD instance would fail anyway.
    """
    validate(client)
    results = [
        namespace(client),
        subscription(client, channel=config.gitops_channel),
    ]
    wait_crd(client, strict=True, **kwargs)
    results.append(rbac(client))
    results.append(argocd(client))
    results.append(configmap(client, config=config))
    if config.gitops_repo_url:
        results.append(appset(client, config=config))
    else:
        logger.warning("No gitops_repo_url configured, skipping the ApplicationSet")
    return results
