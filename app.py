#!/usr/bin/env python3
import aws_cdk as cdk

from observability.logging import configure_logging
from stacks.cluster_autoscaler_stack import ClusterAutoscalerStack

app = cdk.App()

configure_logging(
    level=app.node.try_get_context("log_level") or "INFO",
    json_logs=bool(app.node.try_get_context("json_logs")),
)

account = app.node.try_get_context("account")
region = app.node.try_get_context("region")

env = cdk.Environment(account=account, region=region)

ClusterAutoscalerStack(app, "ClusterAutoscalerStack", env=env)

app.synth()
