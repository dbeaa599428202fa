from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

_PIPELINE_CONFIG_CACHE: dict[str, Any] | None = None
_PIPELINE_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "pipeline.yaml"


def get_pipeline_config() -> dict[str, Any]:
    """Load cache/TTL tuning from repo-level config/pipeline.yaml and cache it."""
    global _PIPELINE_CONFIG_CACHE

    if _PIPELINE_CONFIG_CACHE is not None:
        return _PIPELINE_CONFIG_CACHE

    if not _PIPELINE_CONFIG_PATH.exists():
        raise RuntimeError(
            f"Pipeline config not found at '{_PIPELINE_CONFIG_PATH}'. "
            "Expected file: config/pipeline.yaml"
        )

    try:
        raw = _PIPELINE_CONFIG_PATH.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read pipeline config '{_PIPELINE_CONFIG_PATH}': {exc}"
        ) from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(
            f"Invalid YAML in pipeline config '{_PIPELINE_CONFIG_PATH}': {exc}"
        ) from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid pipeline config '{_PIPELINE_CONFIG_PATH}': expected a top-level mapping."
        )

    _PIPELINE_CONFIG_CACHE = parsed
    return _PIPELINE_CONFIG_CACHE


def get_pipeline_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'caches.ai.max_size'."""
    if not path:
        return default

    current: Any = get_pipeline_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key not in current:
            return default
        current = current[key]
    return current


def get_ttl(operation: str, default: float) -> float:
    return float(get_pipeline_value(f"ttl.{operation}", default))
