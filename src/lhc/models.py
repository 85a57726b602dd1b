"""Pydantic data models for LHC."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Quantization(str, Enum):
    """Weight / KV cache quantization schemes."""

    FP32 = "fp32"
    FP16 = "fp16"
    BF16 = "bf16"
    INT8 = "int8"
    INT6 = "int6"
    INT5 = "int5"
    INT4 = "int4"
    INT3 = "int3"
    INT2 = "int2"
    GPTQ = "gptq"  # GPTQ-style optimized 4-bit
    AWQ = "awq"  # AWQ-style optimized 4-bit


class MemoryMode(str, Enum):
    """How VRAM is provided to the model."""

    DISCRETE_GPU = "DISCRETE_GPU"
    UNIFIED_MEMORY = "UNIFIED_MEMORY"


# Upper bounds keep byte counts finite
MAX_PARAMETER_BILLIONS = 1_000_000
MAX_CONTEXT_TOKENS = 1_000_000_000
MAX_BATCH_SIZE = 1_000_000

# Unknown strings are kept as-is and resolved to default factors by the engine
QuantizationLike = Union[Quantization, str]


def parse_quantization(value: QuantizationLike) -> Optional[Quantization]:
    """Resolve a quantization name (case-insensitive), or None if unknown."""
    if isinstance(value, Quantization):
        return value
    try:
        return Quantization(str(value).strip().lower())
    except ValueError:
        return None


def _coerce_quantization(value):
    return parse_quantization(value) or value


class GPUSpec(BaseModel):
    """GPU catalog entry."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    vendor: str = "NVIDIA"
    memory_gb: float = Field(gt=0)
    speed_factor: float = Field(default=1.0, gt=0, description="Relative to RTX 3090 at FP16")


class ModelConfig(BaseModel):
    """Model and workload configuration."""

    model_config = ConfigDict(frozen=True)

    parameter_count_billions: float = Field(
        ..., gt=0, le=MAX_PARAMETER_BILLIONS, allow_inf_nan=False, description="Model parameters in billions"
    )
    quantization: QuantizationLike = Field(default=Quantization.FP16)
    context_length_tokens: int = Field(default=4096, gt=0, le=MAX_CONTEXT_TOKENS)
    kv_cache_enabled: bool = Field(default=True)
    kv_cache_quantization: QuantizationLike = Field(
        default=Quantization.FP16, description="Only used when the KV cache is enabled"
    )
    batch_size: int = Field(default=1, gt=0, le=MAX_BATCH_SIZE)

    @field_validator("quantization", "kv_cache_quantization", mode="before")
    @classmethod
    def normalize_quantization(cls, value):
        return _coerce_quantization(value)


class HardwareConfig(BaseModel):
    """Hardware the model is expected to run on."""

    model_config = ConfigDict(frozen=True)

    memory_mode: MemoryMode = Field(default=MemoryMode.DISCRETE_GPU)
    gpu_model: str = Field(default="rtx4090", description="GPU catalog key (discrete mode)")
    system_ram_gb: float = Field(default=32, gt=0, allow_inf_nan=False)

    @property
    def is_unified(self) -> bool:
        return self.memory_mode == MemoryMode.UNIFIED_MEMORY


class EstimationResult(BaseModel):
    """Hardware requirement estimates for one configuration."""

    model_config = ConfigDict(frozen=True)

    vram_required_gb: float = Field(ge=0)
    system_ram_required_gb: float = Field(ge=0)
    disk_space_required_gb: float = Field(ge=0)
    gpus_required: int = Field(ge=0, description="0 means the configuration does not fit")
    inference_speed_tokens_per_second: Optional[float] = Field(default=None, ge=0)
    fits_in_available_memory: bool

    available_vram_gb: float = Field(ge=0, description="Single GPU capacity or usable unified pool")
    vram_utilization: float = Field(ge=0, description="Required / available VRAM")
    hardware_summary: str

    warnings: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class ModelPreset(BaseModel):
    """Named model preset used to populate a ModelConfig."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters_billions: float = Field(gt=0, le=MAX_PARAMETER_BILLIONS, allow_inf_nan=False)
    default_quantization: QuantizationLike = Quantization.FP16
    default_context_length: int = Field(default=4096, gt=0, le=MAX_CONTEXT_TOKENS)
    description: str = ""

    @field_validator("default_quantization", mode="before")
    @classmethod
    def normalize_quantization(cls, value):
        return _coerce_quantization(value)

    def to_model_config(self, **overrides) -> ModelConfig:
        """Build a ModelConfig from this preset, with optional field overrides."""
        values = {
            "parameter_count_billions": self.parameters_billions,
            "quantization": self.default_quantization,
            "context_length_tokens": self.default_context_length,
        }
        values.update(overrides)
        return ModelConfig(**values)


class QuantizationComparison(BaseModel):
    """VRAM requirement of one quantization method for a fixed config."""

    name: str
    quantization: Quantization
    bytes_per_param: float
    vram_gb: float


class BatchSpeedPoint(BaseModel):
    """Estimated throughput at a given batch size."""

    batch_size: int
    tokens_per_second: float


class SpeedSummary(BaseModel):
    """Throughput figures derived from tokens per second."""

    tokens_per_second: float
    tokens_per_minute: float
    seconds_per_1000_tokens: float
