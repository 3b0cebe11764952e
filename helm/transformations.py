from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

ROLE_ARN_ANNOTATION = "eks.amazonaws.com/role-arn"


@dataclass(frozen=True)
class RenderOptions:
    release: str
    namespace: str


Transformation = Callable[[Dict[str, Any], RenderOptions], None]


def annotate_service_account(role_arn: str) -> Transformation:
    """Hook binding an IAM role to every rendered ServiceAccount.

    ``role_arn`` is normally a token such as ``role.role_arn``. It is written
    into the object unresolved and only turns into the real ARN at synth time,
    so the hook may run before the role exists.
    """

    def transform(obj: Dict[str, Any], options: RenderOptions) -> None:
        if obj.get("kind") != "ServiceAccount":
            return
        metadata = obj.setdefault("metadata", {})
        annotations = metadata.get("annotations")
        if annotations is None:
            annotations = metadata["annotations"] = {}
        annotations[ROLE_ARN_ANNOTATION] = role_arn

    return transform


def apply_transformations(
    objects: List[Dict[str, Any]],
    transformations: Sequence[Transformation],
    options: RenderOptions,
) -> List[Dict[str, Any]]:
    for obj in objects:
        for transform in transformations:
            transform(obj, options)
    return objects
