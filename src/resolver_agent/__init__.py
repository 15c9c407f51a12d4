"""Resolver agent runtime helpers."""

from .config import AgentConfig, KubernetesConfig, load_config  # noqa: F401

__all__ = [
    "AgentConfig",
    "KubernetesConfig",
    "load_config",
]
