import pytest
from aws_cdk import App

from stacks.config import (
    DEFAULT_NAMESPACE,
    ConfigurationError,
    load_autoscaler_args,
    load_cluster_settings,
    load_federation_settings,
    require_context,
)


def test_require_context_fails_fast_on_missing_key():
    with pytest.raises(ConfigurationError) as excinfo:
        require_context(App().node, "oidc_arn")
    assert excinfo.value.key == "oidc_arn"


def test_require_context_rejects_empty_string():
    with pytest.raises(ConfigurationError, match="oidc_url"):
        require_context(App(context={"oidc_url": ""}).node, "oidc_url")


def test_federation_settings(context):
    settings = load_federation_settings(App(context=context).node)

    assert settings.oidc_arn == "arn:aws:iam::123:oidc-provider/x"
    assert settings.oidc_url == "oidc.eks.amazonaws.com/id/ABC"
    assert settings.region == "us-east-1"


def test_federation_settings_strip_issuer_scheme(context):
    context["oidc_url"] = "https://oidc.eks.amazonaws.com/id/ABC"

    assert load_federation_settings(App(context=context).node).oidc_url == "oidc.eks.amazonaws.com/id/ABC"


def test_autoscaler_args(context):
    args = load_autoscaler_args(App(context=context).node)

    assert args.create_namespace is True
    assert args.namespace == "autoscaler-ns"
    assert args.cluster_name == "prod-1"


def test_autoscaler_args_defaults(context):
    del context["create_namespace"]
    del context["namespace"]

    args = load_autoscaler_args(App(context=context).node)

    assert args.create_namespace is False
    assert args.namespace == DEFAULT_NAMESPACE


@pytest.mark.parametrize("raw, expected", [("true", True), ("False", False), (False, False)])
def test_create_namespace_from_command_line(context, raw, expected):
    context["create_namespace"] = raw

    assert load_autoscaler_args(App(context=context).node).create_namespace is expected


def test_create_namespace_rejects_garbage(context):
    context["create_namespace"] = "maybe"

    with pytest.raises(ConfigurationError, match="boolean"):
        load_autoscaler_args(App(context=context).node)


def test_cluster_settings(context):
    context["chart_version"] = "9.37.0"
    context["autoscaler_extra_args"] = {"scan-interval": "10s", "balance-similar-node-groups": True}

    settings = load_cluster_settings(App(context=context).node)

    assert settings.kubectl_role_arn == "arn:aws:iam::123:role/kubectl"
    assert settings.chart_version == "9.37.0"
    assert settings.extra_args == {"scan-interval": "10s", "balance-similar-node-groups": "true"}


def test_cluster_settings_require_kubectl_role(context):
    del context["kubectl_role_arn"]

    with pytest.raises(ConfigurationError, match="kubectl_role_arn"):
        load_cluster_settings(App(context=context).node)
