"""Core estimation engine for LLM inference hardware requirements.

Every function here is a pure function of its arguments and the constant
tables below. Unknown quantization or GPU names never raise: they resolve to
the documented defaults.
"""

import logging
import math
from typing import Iterable, Optional

from .loader import get_gpu
from .models import (
    BatchSpeedPoint,
    EstimationResult,
    HardwareConfig,
    ModelConfig,
    Quantization,
    QuantizationComparison,
    QuantizationLike,
    SpeedSummary,
    parse_quantization,
)

logger = logging.getLogger(__name__)

GIB = 1024**3

# Bytes per parameter for model weights
BYTES_PER_PARAM: dict[Quantization, float] = {
    Quantization.FP32: 4.0,
    Quantization.FP16: 2.0,
    Quantization.BF16: 2.0,
    Quantization.INT8: 1.0,
    Quantization.INT6: 0.75,
    Quantization.INT5: 0.625,
    Quantization.INT4: 0.5,
    Quantization.INT3: 0.375,
    Quantization.INT2: 0.25,
    Quantization.GPTQ: 0.5,
    Quantization.AWQ: 0.5,
}

# Bytes per element for the KV cache
KV_BYTES_PER_PARAM: dict[Quantization, float] = {
    Quantization.FP32: 4.0,
    Quantization.FP16: 2.0,
    Quantization.BF16: 2.0,
    Quantization.INT8: 1.0,
    Quantization.INT5: 0.625,
    Quantization.INT4: 0.5,
}

# Throughput relative to FP16
QUANT_SPEED_FACTORS: dict[Quantization, float] = {
    Quantization.FP32: 0.5,
    Quantization.FP16: 1.0,
    Quantization.BF16: 1.0,
    Quantization.INT8: 1.5,
    Quantization.INT4: 2.0,
    Quantization.GPTQ: 1.8,
    Quantization.AWQ: 1.8,
}

DEFAULT_BYTES_PER_PARAM = 1.0
DEFAULT_SPEED_FACTOR = 1.0
DEFAULT_GPU_VRAM_GB = 24.0
DEFAULT_GPU_SPEED_FACTOR = 1.0

UNIFIED_MEMORY_FRACTION = 0.75
SYSTEM_RAM_MULTIPLIER = 1.5
DISK_OVERHEAD = 1.1

KV_HEAD_DIM = 128
KV_HEAD_DIVISOR = 4 * 768 * 768

BASE_SPEED_TOKENS_PER_SECOND = 30.0  # 7B at FP16 on an RTX 3090
REFERENCE_MODEL_BILLIONS = 7.0

DEFAULT_BATCH_SIZES = (1, 2, 4, 8, 16, 32)

COMPARISON_METHODS: tuple[tuple[str, Quantization], ...] = (
    ("FP32", Quantization.FP32),
    ("FP16/BF16", Quantization.FP16),
    ("INT8", Quantization.INT8),
    ("INT4", Quantization.INT4),
    ("GPTQ", Quantization.GPTQ),
)


def _lookup(table: dict[Quantization, float], quantization: QuantizationLike, default: float) -> float:
    q = parse_quantization(quantization)
    if q is None or q not in table:
        logger.debug("No factor for quantization %r, using default %s", quantization, default)
        return default
    return table[q]


def bytes_per_param(quantization: QuantizationLike) -> float:
    """Bytes per weight for a quantization scheme (1.0 if unknown)."""
    return _lookup(BYTES_PER_PARAM, quantization, DEFAULT_BYTES_PER_PARAM)


def kv_bytes_per_param(quantization: QuantizationLike) -> float:
    """Bytes per KV cache element (1.0 if not a KV cache format)."""
    return _lookup(KV_BYTES_PER_PARAM, quantization, DEFAULT_BYTES_PER_PARAM)


def quant_speed_factor(quantization: QuantizationLike) -> float:
    """Throughput multiplier relative to FP16 (1.0 if unknown)."""
    return _lookup(QUANT_SPEED_FACTORS, quantization, DEFAULT_SPEED_FACTOR)


def gpu_vram_capacity(gpu_model: str) -> float:
    """VRAM of one GPU in GB (24 GB if the model is not in the catalog)."""
    gpu = get_gpu(gpu_model)
    if gpu is None:
        logger.debug("Unknown GPU %r, assuming %s GB", gpu_model, DEFAULT_GPU_VRAM_GB)
        return DEFAULT_GPU_VRAM_GB
    return gpu.memory_gb


def gpu_speed_factor(gpu_model: str) -> float:
    """Relative speed of a GPU (1.0 if the model is not in the catalog)."""
    gpu = get_gpu(gpu_model)
    if gpu is None:
        return DEFAULT_GPU_SPEED_FACTOR
    return gpu.speed_factor


def estimate_kv_cache_bytes(config: ModelConfig) -> float:
    """
    Approximate KV cache size in bytes.

    The head count is derived from the parameter count:
        num_heads = ceil(params / (4 * 768 * 768))
        kv = 2 (K and V) * num_heads * 128 * context * batch * kv_bytes

    Returns 0 when the KV cache is disabled.
    """
    if not config.kv_cache_enabled:
        return 0.0

    num_heads = math.ceil(config.parameter_count_billions * 1e9 / KV_HEAD_DIVISOR)
    return float(
        2
        * num_heads
        * KV_HEAD_DIM
        * config.context_length_tokens
        * config.batch_size
        * kv_bytes_per_param(config.kv_cache_quantization)
    )


def _weights_bytes(config: ModelConfig) -> float:
    return config.parameter_count_billions * 1e9 * bytes_per_param(config.quantization)


def estimate_vram(config: ModelConfig) -> float:
    """VRAM needed for weights plus KV cache, in GB (2^30 bytes)."""
    return (_weights_bytes(config) + estimate_kv_cache_bytes(config)) / GIB


def estimate_system_ram(vram_gb: float) -> float:
    """System RAM requirement for a given VRAM requirement, in GB."""
    return vram_gb * SYSTEM_RAM_MULTIPLIER


def estimate_disk_space(config: ModelConfig) -> float:
    """On-disk size of the quantized weights plus ~10% metadata, in GB."""
    return _weights_bytes(config) / GIB * DISK_OVERHEAD


def batch_scaling(batch_size: int) -> float:
    """
    Diminishing-returns throughput multiplier for batching.

    Formula: log2(b) / log2(4) + 0.5, which is 1.0 at batch size 4.
    """
    if batch_size <= 0:
        raise ValueError(f"Batch size must be positive, got {batch_size}")
    return math.log2(batch_size) / math.log2(4) + 0.5


def estimate_inference_speed(
    config: ModelConfig,
    hardware: HardwareConfig,
    gpus_required: int,
    batch_size: Optional[int] = None,
) -> float:
    """
    Estimate generation throughput in tokens per second.

    Formula: 30 * gpu_speed * quant_speed * (7 / params_B) * gpus * batch_scaling

    Args:
        config: Model configuration
        hardware: Hardware configuration (GPU model selects the speed factor)
        gpus_required: Number of GPUs the model is split across
        batch_size: Override for config.batch_size

    Returns:
        Tokens per second, 0.0 when there are no GPUs or no parameters
    """
    if config.parameter_count_billions <= 0 or gpus_required <= 0:
        return 0.0

    batch = max(1, batch_size if batch_size is not None else config.batch_size)
    model_size_factor = REFERENCE_MODEL_BILLIONS / config.parameter_count_billions

    return (
        BASE_SPEED_TOKENS_PER_SECOND
        * gpu_speed_factor(hardware.gpu_model)
        * quant_speed_factor(config.quantization)
        * model_size_factor
        * gpus_required
        * batch_scaling(batch)
    )


def _gpu_display_name(gpu_model: str) -> str:
    gpu = get_gpu(gpu_model)
    return gpu.name if gpu is not None else gpu_model


def recommend_hardware(config: ModelConfig, hardware: HardwareConfig) -> EstimationResult:
    """
    Estimate all hardware requirements for a configuration.

    Unified memory: 75% of system RAM is usable as VRAM; if the model does not
    fit, gpus_required is 0. Discrete GPU: the model is split across as many
    GPUs of the selected type as needed, so it always fits.

    Args:
        config: Model configuration
        hardware: Hardware configuration

    Returns:
        Complete estimation result
    """
    warnings: list[str] = []
    notes: list[str] = []

    required_vram = estimate_vram(config)

    if parse_quantization(config.quantization) not in BYTES_PER_PARAM:
        warnings.append(
            f"Unknown quantization '{config.quantization}', assuming {DEFAULT_BYTES_PER_PARAM} bytes per parameter"
        )
    if config.kv_cache_enabled:
        if parse_quantization(config.kv_cache_quantization) not in KV_BYTES_PER_PARAM:
            warnings.append(
                f"Unsupported KV cache quantization '{config.kv_cache_quantization}', "
                f"assuming {DEFAULT_BYTES_PER_PARAM} bytes per element"
            )
        kv_gb = estimate_kv_cache_bytes(config) / GIB
        notes.append(f"KV cache accounts for {format_gb(kv_gb)}")

    if hardware.is_unified:
        available_vram = hardware.system_ram_gb * UNIFIED_MEMORY_FRACTION
        fits = required_vram <= available_vram
        gpus_required = 1 if fits else 0
        speed = None
        if fits:
            summary = "Unified memory (e.g. Apple silicon)"
        else:
            summary = "Unified memory (insufficient)"
            warnings.append(
                f"Model needs {format_gb(required_vram)} but only {format_gb(available_vram)} "
                f"of {format_gb(hardware.system_ram_gb)} system RAM is usable as VRAM"
            )
    else:
        available_vram = gpu_vram_capacity(hardware.gpu_model)
        if get_gpu(hardware.gpu_model) is None:
            warnings.append(
                f"Unknown GPU '{hardware.gpu_model}', assuming {DEFAULT_GPU_VRAM_GB:g}GB VRAM"
            )
        gpus_required = max(1, math.ceil(required_vram / available_vram))
        fits = True
        speed = estimate_inference_speed(config, hardware, gpus_required)
        gpu_name = _gpu_display_name(hardware.gpu_model)
        if gpus_required == 1:
            summary = f"Single {gpu_name} ({available_vram:g}GB)"
        else:
            summary = f"{gpus_required}x {gpu_name} ({available_vram:g}GB each)"
            notes.append(f"Model is split across {gpus_required} GPUs")

    system_ram_required = estimate_system_ram(required_vram)
    if system_ram_required > hardware.system_ram_gb:
        warnings.append(
            f"Recommended system RAM ({format_gb(system_ram_required)}) exceeds "
            f"available {format_gb(hardware.system_ram_gb)}"
        )

    return EstimationResult(
        vram_required_gb=required_vram,
        system_ram_required_gb=system_ram_required,
        disk_space_required_gb=estimate_disk_space(config),
        gpus_required=gpus_required,
        inference_speed_tokens_per_second=speed,
        fits_in_available_memory=fits,
        available_vram_gb=available_vram,
        vram_utilization=required_vram / available_vram if available_vram > 0 else 0.0,
        hardware_summary=summary,
        warnings=warnings,
        notes=notes,
    )


def compare_quantizations(
    config: ModelConfig,
    methods: Iterable[tuple[str, Quantization]] = COMPARISON_METHODS,
) -> list[QuantizationComparison]:
    """VRAM requirement for each quantization method, all else equal."""
    rows = []
    for name, quantization in methods:
        variant = config.model_copy(update={"quantization": quantization})
        rows.append(
            QuantizationComparison(
                name=name,
                quantization=quantization,
                bytes_per_param=bytes_per_param(quantization),
                vram_gb=estimate_vram(variant),
            )
        )
    return rows


def speed_by_batch_size(
    config: ModelConfig,
    hardware: HardwareConfig,
    gpus_required: int,
    batch_sizes: Iterable[int] = DEFAULT_BATCH_SIZES,
) -> list[BatchSpeedPoint]:
    """Estimated throughput (rounded to 0.1 tok/s) at each batch size."""
    return [
        BatchSpeedPoint(
            batch_size=b,
            tokens_per_second=round(
                estimate_inference_speed(config, hardware, gpus_required, batch_size=b), 1
            ),
        )
        for b in batch_sizes
        if b > 0
    ]


def summarize_speed(tokens_per_second: float) -> SpeedSummary:
    """Derive tokens per minute and time for 1000 tokens."""
    seconds = 1000 / tokens_per_second if tokens_per_second > 0 else math.inf
    return SpeedSummary(
        tokens_per_second=tokens_per_second,
        tokens_per_minute=tokens_per_second * 60,
        seconds_per_1000_tokens=seconds,
    )


def format_gb(value: float) -> str:
    """Format a GB figure to a human-readable string."""
    if value >= 1024:
        return f"{value / 1024:.2f} TB"
    elif value >= 1:
        return f"{value:.2f} GB"
    else:
        return f"{value * 1024:.0f} MB"


def format_speed(tokens_per_second: Optional[float]) -> str:
    """Format throughput to a human-readable string."""
    if tokens_per_second is None:
        return "N/A"
    return f"{tokens_per_second:.1f} tok/s"
