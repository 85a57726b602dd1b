"""Data loaders for the GPU catalog and model presets."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .models import GPUSpec, ModelPreset

logger = logging.getLogger(__name__)


def _get_data_dir() -> Path:
    """Get the data directory path."""
    package_data = Path(__file__).parent / "data"
    if package_data.exists():
        return package_data

    raise FileNotFoundError(
        "Data directory not found. Expected at lhc/data"
    )


def _load_json(filename: str) -> dict:
    path = _get_data_dir() / filename
    logger.debug("Loading %s", path)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=1)
def load_gpus() -> tuple[GPUSpec, ...]:
    """Load the GPU catalog from gpus.json."""
    data = _load_json("gpus.json")
    return tuple(GPUSpec(**gpu) for gpu in data["gpus"])


@lru_cache(maxsize=1)
def load_presets() -> tuple[ModelPreset, ...]:
    """Load all model presets from presets.json."""
    data = _load_json("presets.json")
    return tuple(ModelPreset(**preset) for preset in data["presets"])


def get_gpu(name: str) -> Optional[GPUSpec]:
    """Get a GPU by catalog key or display name (case-insensitive)."""
    name_lower = name.strip().lower()
    for gpu in load_gpus():
        if gpu.key.lower() == name_lower or gpu.name.lower() == name_lower:
            return gpu
    return None


def get_preset(name: str) -> Optional[ModelPreset]:
    """Get model preset by name (case-insensitive)."""
    name_lower = name.strip().lower()
    for preset in load_presets():
        if preset.name.lower() == name_lower:
            return preset
    return None


def list_gpu_keys() -> list[str]:
    """List all GPU catalog keys."""
    return [gpu.key for gpu in load_gpus()]


def list_preset_names() -> list[str]:
    """List all available model preset names."""
    return [preset.name for preset in load_presets()]
