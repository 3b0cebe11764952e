from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constructs import Node

from helm.cluster_autoscaler import ClusterAutoscalerArgs, FederationSettings
from observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_NAMESPACE = "kube-system"


class ConfigurationError(Exception):
    def __init__(self, key: str, reason: str = "is required"):
        self.key = key
        super().__init__(f"context value {key!r} {reason}")


@dataclass(frozen=True)
class ClusterSettings:
    cluster_name: str
    kubectl_role_arn: str
    chart_version: Optional[str] = None
    extra_args: Dict[str, str] = field(default_factory=dict)


def require_context(node: Node, key: str) -> str:
    value = node.try_get_context(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigurationError(key)
    return value


def _as_bool(key: str, value: Any) -> bool:
    # -c create_namespace=true arrives as a string
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ConfigurationError(key, f"must be a boolean, got {value!r}")


def load_federation_settings(node: Node) -> FederationSettings:
    oidc_url = require_context(node, "oidc_url")
    if oidc_url.startswith("https://"):
        oidc_url = oidc_url[len("https://"):]

    settings = FederationSettings(
        oidc_arn=require_context(node, "oidc_arn"),
        oidc_url=oidc_url,
        region=require_context(node, "region"),
    )
    log.debug("federation_settings_loaded", oidc_url=settings.oidc_url, region=settings.region)
    return settings


def load_autoscaler_args(node: Node) -> ClusterAutoscalerArgs:
    create_namespace = node.try_get_context("create_namespace")
    return ClusterAutoscalerArgs(
        create_namespace=_as_bool("create_namespace", create_namespace) if create_namespace is not None else False,
        namespace=node.try_get_context("namespace") or DEFAULT_NAMESPACE,
        cluster_name=require_context(node, "cluster_name"),
    )


def load_cluster_settings(node: Node) -> ClusterSettings:
    extra_args = node.try_get_context("autoscaler_extra_args") or {}
    if not isinstance(extra_args, dict):
        raise ConfigurationError("autoscaler_extra_args", "must be a mapping")

    return ClusterSettings(
        cluster_name=require_context(node, "cluster_name"),
        kubectl_role_arn=require_context(node, "kubectl_role_arn"),
        chart_version=node.try_get_context("chart_version"),
        extra_args={str(k): str(v).lower() if isinstance(v, bool) else str(v) for k, v in extra_args.items()},
    )
