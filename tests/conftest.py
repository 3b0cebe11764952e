import copy

import pytest

from helm.renderer import ChartRenderer
from policies.cluster_autoscaler import SERVICE_ACCOUNT_NAME

RENDERED_CHART = [
    {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": {
            "name": SERVICE_ACCOUNT_NAME,
            "labels": {"app.kubernetes.io/name": "aws-cluster-autoscaler-chart"},
        },
    },
    {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "ClusterRole",
        "metadata": {"name": SERVICE_ACCOUNT_NAME},
        "rules": [{"apiGroups": [""], "resources": ["nodes"], "verbs": ["get", "list", "watch"]}],
    },
    {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": SERVICE_ACCOUNT_NAME},
        "spec": {
            "replicas": 1,
            "template": {"spec": {"serviceAccountName": SERVICE_ACCOUNT_NAME}},
        },
    },
]


class StaticRenderer(ChartRenderer):
    """Stands in for ``helm template`` and records what it was asked to render."""

    def __init__(self, objects=None):
        self.objects = RENDERED_CHART if objects is None else objects
        self.calls = []

    def template(self, spec, values, namespace):
        self.calls.append((spec, values, namespace))
        return copy.deepcopy(self.objects)


@pytest.fixture
def renderer():
    return StaticRenderer()


@pytest.fixture
def context():
    return {
        "create_namespace": True,
        "namespace": "autoscaler-ns",
        "cluster_name": "prod-1",
        "kubectl_role_arn": "arn:aws:iam::123:role/kubectl",
        "oidc_arn": "arn:aws:iam::123:oidc-provider/x",
        "oidc_url": "oidc.eks.amazonaws.com/id/ABC",
        "region": "us-east-1",
    }
