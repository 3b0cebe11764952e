from dataclasses import dataclass
from typing import Dict, Optional

from aws_cdk import CfnOutput
from aws_cdk import aws_iam as iam
from aws_cdk import aws_eks as eks
from constructs import Construct

from helm.renderer import ChartRenderer, ChartSpec, HelmTemplateRenderer, verify_service_account_binding
from helm.transformations import annotate_service_account
from observability.logging import get_logger
from policies.cluster_autoscaler import (
    SERVICE_ACCOUNT_NAME,
    build_permission_document,
    build_trust_document,
    derive_principal,
    federated_principal,
)

log = get_logger(__name__)

CLUSTER_AUTOSCALER_REPOSITORY = "https://kubernetes.github.io/autoscaler"
CLUSTER_AUTOSCALER_CHART = ChartSpec(
    chart="cluster-autoscaler",
    repository=CLUSTER_AUTOSCALER_REPOSITORY,
    release="cluster-autoscaler",
)


@dataclass(frozen=True)
class ClusterAutoscalerArgs:
    create_namespace: bool
    namespace: str
    cluster_name: str


@dataclass(frozen=True)
class FederationSettings:
    oidc_arn: str
    oidc_url: str
    region: str


def chart_values(args: ClusterAutoscalerArgs, region: str, extra_args: Optional[Dict[str, str]] = None) -> dict:
    values = {
        "autoDiscovery": {"clusterName": args.cluster_name},
        "awsRegion": region,
        "rbac": {
            "serviceAccount": {
                "create": True,
                "name": SERVICE_ACCOUNT_NAME,
            },
        },
    }
    if extra_args:
        values["extraArgs"] = dict(extra_args)
    return values


class ClusterAutoscaler(Construct):
    """IAM role for service accounts plus the cluster-autoscaler chart bound to it.

    The chart is rendered at synth time and every ServiceAccount it emits is
    annotated with the role ARN before the objects are applied to the cluster.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        cluster: eks.ICluster,
        args: ClusterAutoscalerArgs,
        federation: FederationSettings,
        renderer: Optional[ChartRenderer] = None,
        chart: ChartSpec = CLUSTER_AUTOSCALER_CHART,
        extra_args: Optional[Dict[str, str]] = None,
    ):
        super().__init__(scope, id)
        self.args = args

        namespace = None
        if args.create_namespace:
            namespace = eks.KubernetesManifest(self, "Namespace",
                cluster=cluster,
                manifest=[{
                    "apiVersion": "v1",
                    "kind": "Namespace",
                    "metadata": {"name": args.namespace},
                }],
            )
            log.info("namespace_requested", namespace=args.namespace)

        principal = derive_principal(args.namespace, SERVICE_ACCOUNT_NAME)
        trust_document = build_trust_document(federation.oidc_arn, federation.oidc_url, principal)

        self.role = iam.Role(self, "Role",
            assumed_by=federated_principal(trust_document),
            description=f"cluster-autoscaler for {args.cluster_name}",
        )

        self.policy = iam.ManagedPolicy(self, "Policy",
            document=iam.PolicyDocument.from_json(build_permission_document()),
        )
        self.policy.attach_to_role(self.role)

        renderer = renderer or HelmTemplateRenderer()
        self.manifest_objects = renderer.render(
            chart,
            chart_values(args, federation.region, extra_args),
            args.namespace,
            transformations=[annotate_service_account(self.role.role_arn)],
        )
        verify_service_account_binding(self.manifest_objects, SERVICE_ACCOUNT_NAME)
        log.info("service_account_bound", service_account=principal)

        self.chart = eks.KubernetesManifest(self, "Chart",
            cluster=cluster,
            manifest=self.manifest_objects,
        )
        self.chart.node.add_dependency(self.policy)
        if namespace is not None:
            self.chart.node.add_dependency(namespace)

        CfnOutput(self, "RoleArn", value=self.role.role_arn)
        CfnOutput(self, "ClusterName", value=args.cluster_name)

    @property
    def role_arn(self) -> str:
        return self.role.role_arn
