"""LHC - LLM Hardware Calculator for inference resource planning."""

from .engine import (
    batch_scaling,
    bytes_per_param,
    compare_quantizations,
    estimate_disk_space,
    estimate_inference_speed,
    estimate_kv_cache_bytes,
    estimate_system_ram,
    estimate_vram,
    format_gb,
    format_speed,
    gpu_speed_factor,
    gpu_vram_capacity,
    kv_bytes_per_param,
    quant_speed_factor,
    recommend_hardware,
    speed_by_batch_size,
    summarize_speed,
)
from .loader import (
    get_gpu,
    get_preset,
    list_gpu_keys,
    list_preset_names,
    load_gpus,
    load_presets,
)
from .models import (
    BatchSpeedPoint,
    EstimationResult,
    GPUSpec,
    HardwareConfig,
    MemoryMode,
    ModelConfig,
    ModelPreset,
    Quantization,
    QuantizationComparison,
    SpeedSummary,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "estimate_vram",
    "estimate_kv_cache_bytes",
    "estimate_system_ram",
    "estimate_disk_space",
    "estimate_inference_speed",
    "recommend_hardware",
    "batch_scaling",
    "bytes_per_param",
    "kv_bytes_per_param",
    "quant_speed_factor",
    "gpu_vram_capacity",
    "gpu_speed_factor",
    "compare_quantizations",
    "speed_by_batch_size",
    "summarize_speed",
    "format_gb",
    "format_speed",
    # Loader
    "load_gpus",
    "load_presets",
    "get_gpu",
    "get_preset",
    "list_gpu_keys",
    "list_preset_names",
    # Models
    "ModelConfig",
    "HardwareConfig",
    "EstimationResult",
    "MemoryMode",
    "Quantization",
    "GPUSpec",
    "ModelPreset",
    "QuantizationComparison",
    "BatchSpeedPoint",
    "SpeedSummary",
]
