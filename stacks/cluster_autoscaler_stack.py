import dataclasses
from typing import Optional

from aws_cdk import Stack
from aws_cdk import aws_eks as eks
from aws_cdk.lambda_layer_kubectl_v32 import KubectlV32Layer
from constructs import Construct

from helm.cluster_autoscaler import CLUSTER_AUTOSCALER_CHART, ClusterAutoscaler
from helm.renderer import ChartRenderer
from stacks.config import load_autoscaler_args, load_cluster_settings, load_federation_settings


class ClusterAutoscalerStack(Stack):
    def __init__(self, scope: Construct, id: str, renderer: Optional[ChartRenderer] = None, **kwargs):
        super().__init__(scope, id, **kwargs)

        settings = load_cluster_settings(self.node)
        federation = load_federation_settings(self.node)
        args = load_autoscaler_args(self.node)

        kubectl_layer = KubectlV32Layer(self, "KubectlLayer")

        cluster = eks.Cluster.from_cluster_attributes(self, "Cluster",
            cluster_name=settings.cluster_name,
            kubectl_role_arn=settings.kubectl_role_arn,
            kubectl_layer=kubectl_layer,
        )

        chart = CLUSTER_AUTOSCALER_CHART
        if settings.chart_version:
            chart = dataclasses.replace(chart, version=settings.chart_version)

        self.autoscaler = ClusterAutoscaler(self, "ClusterAutoscaler",
            cluster=cluster,
            args=args,
            federation=federation,
            renderer=renderer,
            chart=chart,
            extra_args=settings.extra_args,
        )
