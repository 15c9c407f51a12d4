"""Kubernetes client bootstrap for the agent."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from kubernetes import client
from kubernetes import config as k8s_config

from .config import KubernetesConfig

LOG = logging.getLogger(__name__)

SERVICE_ACCOUNT_NAMESPACE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")
FALLBACK_NAMESPACE = "default"


def _in_cluster_api() -> client.CoreV1Api:
    configuration = client.Configuration()
    k8s_config.load_incluster_config(client_configuration=configuration)
    return client.CoreV1Api(client.ApiClient(configuration))


def _kubeconfig_api(settings: KubernetesConfig) -> client.CoreV1Api:
    api_client = k8s_config.new_client_from_config(
        config_file=str(settings.kubeconfig) if settings.kubeconfig else None,
        context=settings.context,
    )
    return client.CoreV1Api(api_client)


def build_core_api(settings: KubernetesConfig) -> client.CoreV1Api:
    """Create an isolated ``CoreV1Api`` without touching global client state."""

    if settings.in_cluster is True:
        return _in_cluster_api()
    if settings.in_cluster == "auto":
        try:
            api = _in_cluster_api()
        except k8s_config.ConfigException:
            LOG.debug("not running in a cluster, falling back to kubeconfig")
        else:
            LOG.info("using in-cluster service account credentials")
            return api
    LOG.info("using kubeconfig context %s", settings.context or "<current>")
    return _kubeconfig_api(settings)


def _kubeconfig_namespace(settings: KubernetesConfig) -> Optional[str]:
    config_file = str(settings.kubeconfig) if settings.kubeconfig else None
    try:
        contexts, active = k8s_config.list_kube_config_contexts(config_file=config_file)
    except (k8s_config.ConfigException, OSError):
        return None
    if settings.context:
        active = next((c for c in contexts if c.get("name") == settings.context), active)
    return (active or {}).get("context", {}).get("namespace")


def default_namespace(
    settings: KubernetesConfig,
    service_account_file: Path = SERVICE_ACCOUNT_NAMESPACE,
) -> str:
    """Namespace used for locators that do not name one."""

    if settings.default_namespace:
        return settings.default_namespace
    if settings.in_cluster is not False and service_account_file.exists():
        namespace = service_account_file.read_text().strip()
        if namespace:
            return namespace
    if settings.in_cluster is not True:
        namespace = _kubeconfig_namespace(settings)
        if namespace:
            return namespace
    return FALLBACK_NAMESPACE
