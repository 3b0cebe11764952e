from dataclasses import dataclass

from aws_cdk import aws_iam as iam

POLICY_VERSION = "2012-10-17"
ASSUME_ROLE_ACTION = "sts:AssumeRoleWithWebIdentity"

# Must match rbac.serviceAccount.name in the chart values.
SERVICE_ACCOUNT_NAME = "cluster-autoscaler-aws-cluster-autoscaler-chart"

AUTOSCALING_ACTIONS = (
    "autoscaling:DescribeAutoScalingGroups",
    "autoscaling:DescribeAutoScalingInstances",
    "autoscaling:DescribeLaunchConfigurations",
    "autoscaling:DescribeTags",
    "autoscaling:SetDesiredCapacity",
    "autoscaling:TerminateInstanceInAutoScalingGroup",
)


@dataclass(frozen=True)
class TrustBinding:
    federation_arn: str
    issuer_url: str
    principal: str


def build_permission_document() -> dict:
    return {
        "Version": POLICY_VERSION,
        "Statement": [{
            "Effect": "Allow",
            "Action": list(AUTOSCALING_ACTIONS),
            "Resource": "*",
        }],
    }


def derive_principal(namespace: str, service_account_name: str = SERVICE_ACCOUNT_NAME) -> str:
    return f"system:serviceaccount:{namespace}:{service_account_name}"


def build_trust_document(federation_arn: str, issuer_url: str, principal: str) -> dict:
    """Trust policy letting one service account assume the role through the cluster OIDC issuer.

    Inputs are not validated; empty strings produce a well-formed document
    that nothing can assume.
    """
    return {
        "Version": POLICY_VERSION,
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Federated": federation_arn},
            "Action": ASSUME_ROLE_ACTION,
            "Condition": {
                "StringEquals": {f"{issuer_url}:sub": principal},
            },
        }],
    }


def parse_trust_document(document: dict) -> TrustBinding:
    statements = document.get("Statement") or []
    if len(statements) != 1:
        raise ValueError(f"expected exactly one trust statement, got {len(statements)}")
    statement = statements[0]

    if statement.get("Action") != ASSUME_ROLE_ACTION:
        raise ValueError(f"unexpected trust action: {statement.get('Action')!r}")

    federation_arn = statement.get("Principal", {}).get("Federated")
    if federation_arn is None:
        raise ValueError("trust statement has no federated principal")

    conditions = statement.get("Condition", {}).get("StringEquals", {})
    if len(conditions) != 1:
        raise ValueError(f"expected a single StringEquals condition, got {len(conditions)}")
    (key, principal), = conditions.items()
    if not key.endswith(":sub"):
        raise ValueError(f"condition key {key!r} is not a subject claim")

    return TrustBinding(
        federation_arn=federation_arn,
        issuer_url=key[:-len(":sub")],
        principal=principal,
    )


def federated_principal(document: dict) -> iam.FederatedPrincipal:
    statement = document["Statement"][0]
    return iam.FederatedPrincipal(
        statement["Principal"]["Federated"],
        conditions=statement["Condition"],
        assume_role_action=statement["Action"],
    )
