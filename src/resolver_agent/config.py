"""YAML configuration loader for the resolver agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import yaml

from kube_resolver.config import ResolverOptions, options_from_mapping


@dataclass
class KubernetesConfig:
    in_cluster: Union[bool, str] = "auto"
    kubeconfig: Optional[Path] = None
    context: Optional[str] = None
    default_namespace: Optional[str] = None


@dataclass
class AgentConfig:
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    resolver: ResolverOptions = field(default_factory=ResolverOptions)
    targets: Sequence[str] = field(default_factory=list)


def _parse_in_cluster(value) -> Union[bool, str]:
    if isinstance(value, bool):
        return value
    if str(value).lower() == "auto":
        return "auto"
    raise ValueError(f"'in_cluster' must be true, false or auto, got '{value}'")


def _parse_kubernetes(section: dict) -> KubernetesConfig:
    kubeconfig = section.get("kubeconfig")
    return KubernetesConfig(
        in_cluster=_parse_in_cluster(section.get("in_cluster", "auto")),
        kubeconfig=Path(kubeconfig).expanduser() if kubeconfig else None,
        context=section.get("context"),
        default_namespace=section.get("default_namespace"),
    )


def _parse_targets(entries) -> List[str]:
    if not isinstance(entries, list):
        raise ValueError("'targets' section must be a list")
    targets: List[str] = []
    for entry in entries:
        if not isinstance(entry, str):
            raise ValueError(f"target entries must be locator strings, got {entry!r}")
        targets.append(entry)
    return targets


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    kubernetes_section = data.get("kubernetes", {}) or {}
    if not isinstance(kubernetes_section, dict):
        raise ValueError("'kubernetes' section must be a mapping")

    resolver_section = data.get("resolver", {}) or {}
    if not isinstance(resolver_section, dict):
        raise ValueError("'resolver' section must be a mapping")

    targets = _parse_targets(data.get("targets", []))

    return AgentConfig(
        kubernetes=_parse_kubernetes(kubernetes_section),
        resolver=options_from_mapping(resolver_section),
        targets=targets,
    )
