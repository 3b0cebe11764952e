import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import yaml
from aws_cdk import Token

from helm.errors import ChartRenderError, ServiceAccountBindingError
from helm.transformations import ROLE_ARN_ANNOTATION, RenderOptions, Transformation, apply_transformations
from observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ChartSpec:
    chart: str
    repository: str
    release: str
    version: Optional[str] = None


def _unresolved_paths(value: Any, path: str = "") -> List[str]:
    if isinstance(value, dict):
        return [p for key, item in value.items() for p in _unresolved_paths(item, f"{path}.{key}" if path else key)]
    if isinstance(value, (list, tuple)):
        return [p for i, item in enumerate(value) for p in _unresolved_paths(item, f"{path}[{i}]")]
    if Token.is_unresolved(value):
        return [path]
    return []


class ChartRenderer:
    """Turns a chart plus values into a list of Kubernetes objects.

    Subclasses provide ``template``; ``render`` runs the transformations once
    per object before the tree is handed back.
    """

    def render(
        self,
        spec: ChartSpec,
        values: Dict[str, Any],
        namespace: str,
        transformations: Sequence[Transformation] = (),
    ) -> List[Dict[str, Any]]:
        unresolved = _unresolved_paths(values)
        if unresolved:
            raise ChartRenderError(
                f"chart {spec.chart} is rendered at synth time, values must be concrete: {', '.join(unresolved)}"
            )

        objects = [obj for obj in self.template(spec, values, namespace) if obj]
        apply_transformations(objects, transformations, RenderOptions(release=spec.release, namespace=namespace))

        log.info(
            "chart_rendered",
            chart=spec.chart,
            release=spec.release,
            namespace=namespace,
            objects=len(objects),
            kinds=sorted({str(obj.get("kind")) for obj in objects}),
        )
        return objects

    def template(self, spec: ChartSpec, values: Dict[str, Any], namespace: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class HelmTemplateRenderer(ChartRenderer):
    def __init__(self, helm_binary: str = "helm"):
        self.helm_binary = helm_binary

    def template(self, spec: ChartSpec, values: Dict[str, Any], namespace: str) -> List[Dict[str, Any]]:
        command = [
            self.helm_binary, "template", spec.release, spec.chart,
            "--repo", spec.repository,
            "--namespace", namespace,
            "--values", "-",
        ]
        if spec.version:
            command += ["--version", spec.version]

        log.debug("helm_template", command=" ".join(command))
        result = subprocess.run(
            command,
            input=yaml.safe_dump(values),
            capture_output=True,
            text=True,
            check=True,
        )
        return list(yaml.safe_load_all(result.stdout))


def find_service_account(objects: List[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
    for obj in objects:
        if obj.get("kind") == "ServiceAccount" and obj.get("metadata", {}).get("name") == name:
            return obj
    return None


def verify_service_account_binding(objects: List[Dict[str, Any]], name: str) -> Dict[str, Any]:
    service_account = find_service_account(objects, name)
    if service_account is None:
        raise ServiceAccountBindingError(name, "not found in rendered chart")
    annotations = service_account["metadata"].get("annotations") or {}
    if ROLE_ARN_ANNOTATION not in annotations:
        raise ServiceAccountBindingError(name, f"missing {ROLE_ARN_ANNOTATION} annotation")
    return service_account
