from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

from .settings import settings

DEFAULT_PIPELINE_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "pipeline.yaml"

# Knobs that feed a gate or a loop bound must stay inside these ranges.
_BOUNDED_KNOBS: dict[str, tuple[float, float]] = {
    "extraction.min_text_chars": (1, 100_000),
    "classification.resume_threshold": (0.0, 1.0),
    "classification.job_posting_threshold": (0.0, 1.0),
    "classification.sample_chars": (100, 100_000),
    "ocr.render_scale": (1.0, 8.0),
    "ocr.contrast_shift": (0, 127),
    "ocr.binarize_threshold": (0, 255),
    "optimization.default_retry_count": (0, 10),
    "job_details.max_field_chars": (4, 500),
}

_MISSING = object()


def pipeline_config_path() -> Path:
    if settings.pipeline_config_path:
        return Path(settings.pipeline_config_path).expanduser()
    return DEFAULT_PIPELINE_CONFIG_PATH


def _lookup(config: Mapping[str, Any], dotted: str) -> Any:
    current: Any = config
    for key in dotted.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def validate_pipeline_config(config: Mapping[str, Any], source: str = "<memory>") -> None:
    for dotted, (low, high) in _BOUNDED_KNOBS.items():
        value = _lookup(config, dotted)
        if value is _MISSING:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RuntimeError(f"Invalid pipeline config '{source}': {dotted} must be a number.")
        if not low <= value <= high:
            raise RuntimeError(
                f"Invalid pipeline config '{source}': {dotted}={value} is outside [{low}, {high}]."
            )


def load_pipeline_config(path: Path) -> dict[str, Any]:
    """Read and validate one pipeline YAML file. An empty file means all defaults."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeError(f"Pipeline config not found at '{path}'.") from exc
    except OSError as exc:
        raise RuntimeError(f"Failed to read pipeline config '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in pipeline config '{path}': {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid pipeline config '{path}': expected a top-level mapping.")
    validate_pipeline_config(parsed, str(path))
    return parsed


@lru_cache(maxsize=1)
def get_pipeline_config() -> dict[str, Any]:
    return load_pipeline_config(pipeline_config_path())


def get_pipeline_value(path: str, default: Any = None) -> Any:
    """Dot-path lookup, e.g. 'classification.resume_threshold'; callers own the default."""
    if not path:
        return default
    value = _lookup(get_pipeline_config(), path)
    return default if value is _MISSING else value
