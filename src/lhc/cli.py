"""CLI interface for LHC."""

import logging
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .engine import (
    compare_quantizations,
    format_gb,
    format_speed,
    recommend_hardware,
    speed_by_batch_size,
    summarize_speed,
)
from .loader import get_gpu, get_preset, list_gpu_keys, list_preset_names, load_gpus, load_presets
from .models import EstimationResult, HardwareConfig, MemoryMode, ModelConfig, Quantization

app = typer.Typer(
    name="lhc",
    help="LLM Hardware Calculator - inference hardware requirement estimates",
    no_args_is_help=True,
)
console = Console()

gpu_app = typer.Typer(help="GPU catalog commands")
model_app = typer.Typer(help="Model preset commands")
app.add_typer(gpu_app, name="gpu")
app.add_typer(model_app, name="model")

QUANT_CHOICES = ", ".join(q.value for q in Quantization)


def parse_billion(value: str) -> float:
    """Parse a value with optional B suffix (e.g., '70B' -> 70.0)."""
    value = value.strip().upper()
    if value.endswith("B"):
        return float(value[:-1])
    return float(value)


def build_configs(
    params: Optional[str],
    preset: Optional[str],
    quant: Optional[str],
    context: Optional[int],
    batch_size: int,
    kv_cache: bool,
    kv_quant: str,
    gpu: str,
    unified: bool,
    ram: float,
) -> tuple[ModelConfig, HardwareConfig]:
    """Turn CLI options into validated configs, exiting on unknown names or bad values."""
    overrides = {
        "batch_size": batch_size,
        "kv_cache_enabled": kv_cache,
        "kv_cache_quantization": kv_quant,
    }
    if quant is not None:
        overrides["quantization"] = quant
    if context is not None:
        overrides["context_length_tokens"] = context

    model_preset = None
    if preset:
        model_preset = get_preset(preset)
        if model_preset is None:
            console.print(f"[red]Model preset '{preset}' not found.[/red]")
            console.print(f"Available: {', '.join(list_preset_names())}")
            raise typer.Exit(1)
        if params is not None:
            overrides["parameter_count_billions"] = parse_billion(params)
    else:
        overrides.setdefault("quantization", Quantization.FP16)
        overrides["parameter_count_billions"] = parse_billion(params or "7B")

    if not unified and get_gpu(gpu) is None:
        console.print(f"[red]GPU '{gpu}' not found.[/red]")
        console.print(f"Available: {', '.join(list_gpu_keys())}")
        raise typer.Exit(1)

    try:
        model = model_preset.to_model_config(**overrides) if model_preset else ModelConfig(**overrides)
        hardware = HardwareConfig(
            memory_mode=MemoryMode.UNIFIED_MEMORY if unified else MemoryMode.DISCRETE_GPU,
            gpu_model=gpu,
            system_ram_gb=ram,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]Invalid {field}: {error['msg']}[/red]")
        raise typer.Exit(1)
    return model, hardware


def _quant_label(value) -> str:
    return value.value.upper() if isinstance(value, Quantization) else str(value)


def print_full_report(result: EstimationResult, model: ModelConfig, hardware: HardwareConfig):
    """Print the full hardware requirement report."""
    console.print()
    console.print(Panel("[bold cyan]LLM Hardware Calculator Report[/bold cyan]", border_style="blue"))

    # Input section
    input_table = Table(title="Input", show_header=False, box=None, padding=(0, 2))
    input_table.add_column("Property", style="dim")
    input_table.add_column("Value", style="white")
    input_table.add_row("Model", f"{model.parameter_count_billions:g}B Params")
    input_table.add_row("Quantization", _quant_label(model.quantization))
    input_table.add_row("Context Length", f"{model.context_length_tokens:,} tokens")
    input_table.add_row("Batch Size", str(model.batch_size))
    kv_str = f"Enabled ({_quant_label(model.kv_cache_quantization)})" if model.kv_cache_enabled else "Disabled"
    input_table.add_row("KV Cache", kv_str)
    if hardware.is_unified:
        input_table.add_row("Memory", f"Unified ({hardware.system_ram_gb:g} GB)")
    else:
        gpu = get_gpu(hardware.gpu_model)
        gpu_str = f"{gpu.name} ({gpu.memory_gb:g} GB)" if gpu else hardware.gpu_model
        input_table.add_row("GPU", gpu_str)
        input_table.add_row("System RAM", f"{hardware.system_ram_gb:g} GB")
    console.print(input_table)
    console.print()

    # Requirements section
    req_table = Table(title="Requirements", show_header=False, box=None, padding=(0, 2))
    req_table.add_column("Property", style="dim")
    req_table.add_column("Value", style="green")
    req_table.add_row("VRAM", format_gb(result.vram_required_gb))
    req_table.add_row("System RAM", format_gb(result.system_ram_required_gb))
    req_table.add_row("Disk Space", format_gb(result.disk_space_required_gb))
    console.print(req_table)
    console.print()

    # Recommendation section
    rec_table = Table(title="Recommendation", show_header=False, box=None, padding=(0, 2))
    rec_table.add_column("Property", style="dim")
    rec_table.add_column("Value", style="cyan")
    rec_table.add_row("Hardware", result.hardware_summary)
    rec_table.add_row("GPUs Required", str(result.gpus_required))
    rec_table.add_row(
        "VRAM Usage",
        f"{format_gb(result.vram_required_gb)} / {format_gb(result.available_vram_gb)} "
        f"({result.vram_utilization:.0%})",
    )
    if result.fits_in_available_memory:
        rec_table.add_row("Status", "[green]Viable[/green]")
    else:
        rec_table.add_row("Status", "[red]Does not fit[/red]")
    console.print(rec_table)
    console.print()

    if result.inference_speed_tokens_per_second is not None:
        summary = summarize_speed(result.inference_speed_tokens_per_second)
        speed_table = Table(title="Inference Speed", show_header=False, box=None, padding=(0, 2))
        speed_table.add_column("Property", style="dim")
        speed_table.add_column("Value", style="green")
        speed_table.add_row("Tokens / second", format_speed(summary.tokens_per_second))
        speed_table.add_row("Tokens / minute", f"{summary.tokens_per_minute:,.0f}")
        speed_table.add_row("1000 tokens", f"{summary.seconds_per_1000_tokens:.1f} seconds")
        console.print(speed_table)
        console.print()

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    for note in result.notes:
        console.print(f"[dim]Note:[/dim] {note}")

    console.print()


# Shared option declarations
ParamsOpt = Annotated[Optional[str], typer.Option("--params", "-p", help="Model parameters (e.g., 70B)")]
PresetOpt = Annotated[Optional[str], typer.Option("--preset", help="Use a model preset")]
QuantOpt = Annotated[Optional[str], typer.Option("--quant", "-q", help=f"Quantization ({QUANT_CHOICES})")]
ContextOpt = Annotated[Optional[int], typer.Option("--context", "-c", help="Context length in tokens")]
BatchOpt = Annotated[int, typer.Option("--batch-size", "-b", help="Batch size")]
KvOpt = Annotated[bool, typer.Option("--kv-cache/--no-kv-cache", help="Account for the KV cache")]
KvQuantOpt = Annotated[str, typer.Option("--kv-quant", help="KV cache quantization")]
GpuOpt = Annotated[str, typer.Option("--gpu", "-g", help="GPU catalog key")]
UnifiedOpt = Annotated[bool, typer.Option("--unified", help="Unified memory instead of discrete GPUs")]
RamOpt = Annotated[float, typer.Option("--ram", help="System RAM in GB")]


@app.command("estimate")
def estimate(
    params: ParamsOpt = None,
    preset: PresetOpt = None,
    quant: QuantOpt = None,
    context: ContextOpt = None,
    batch_size: BatchOpt = 1,
    kv_cache: KvOpt = True,
    kv_quant: KvQuantOpt = "fp16",
    gpu: GpuOpt = "rtx4090",
    unified: UnifiedOpt = False,
    ram: RamOpt = 32,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
):
    """Estimate hardware requirements for running a model."""
    model, hardware = build_configs(params, preset, quant, context, batch_size, kv_cache, kv_quant, gpu, unified, ram)
    result = recommend_hardware(model, hardware)

    if json_output:
        typer.echo(result.model_dump_json(indent=2))
        return

    print_full_report(result, model, hardware)


@app.command("compare")
def compare(
    params: ParamsOpt = None,
    preset: PresetOpt = None,
    context: ContextOpt = None,
    batch_size: BatchOpt = 1,
    kv_cache: KvOpt = True,
    kv_quant: KvQuantOpt = "fp16",
):
    """Compare VRAM requirements across quantization methods."""
    model, _ = build_configs(params, preset, None, context, batch_size, kv_cache, kv_quant, "rtx4090", True, 32)

    table = Table(title=f"Quantization Comparison ({model.parameter_count_billions:g}B)")
    table.add_column("Method", style="cyan")
    table.add_column("Bytes / Param", justify="right")
    table.add_column("VRAM", justify="right", style="green")

    for row in compare_quantizations(model):
        table.add_row(row.name, f"{row.bytes_per_param:g}", format_gb(row.vram_gb))

    console.print(table)


@app.command("speed")
def speed(
    params: ParamsOpt = None,
    preset: PresetOpt = None,
    quant: QuantOpt = None,
    context: ContextOpt = None,
    kv_cache: KvOpt = True,
    kv_quant: KvQuantOpt = "fp16",
    gpu: GpuOpt = "rtx4090",
):
    """Show estimated inference speed by batch size."""
    model, hardware = build_configs(params, preset, quant, context, 1, kv_cache, kv_quant, gpu, False, 32)
    result = recommend_hardware(model, hardware)

    table = Table(title=f"Inference Speed on {result.hardware_summary}")
    table.add_column("Batch Size", justify="right", style="cyan")
    table.add_column("Tokens / s", justify="right", style="green")

    for point in speed_by_batch_size(model, hardware, result.gpus_required):
        table.add_row(str(point.batch_size), f"{point.tokens_per_second:.1f}")

    console.print(table)


@app.command("check")
def check(
    params: ParamsOpt = "7B",
    quant: QuantOpt = "fp16",
    context: ContextOpt = 4096,
    batch_size: BatchOpt = 1,
    kv_cache: KvOpt = True,
    kv_quant: KvQuantOpt = "fp16",
    gpu: GpuOpt = "rtx4090",
    unified: UnifiedOpt = False,
    ram: RamOpt = 32,
    max_gpus: Annotated[int, typer.Option("--max-gpus", help="Maximum acceptable GPU count")] = 1,
):
    """Check if a model configuration is feasible (for CI/CD)."""
    model, hardware = build_configs(params, None, quant, context, batch_size, kv_cache, kv_quant, gpu, unified, ram)
    result = recommend_hardware(model, hardware)

    if not result.fits_in_available_memory:
        console.print(
            f"[red]FAIL[/red]: {format_gb(result.vram_required_gb)} VRAM required, "
            f"{format_gb(result.available_vram_gb)} available"
        )
        raise typer.Exit(1)

    if result.gpus_required > max_gpus:
        console.print(
            f"[red]FAIL[/red]: needs {result.gpus_required} GPUs (max {max_gpus})"
        )
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]WARNING[/yellow]: {warning}")

    console.print(
        f"[green]PASS[/green]: {model.parameter_count_billions:g}B model fits on {result.hardware_summary} "
        f"({format_gb(result.vram_required_gb)})"
    )


@gpu_app.command("list")
def gpu_list():
    """List all GPUs in the catalog."""
    table = Table(title="Available GPUs")
    table.add_column("Key", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("VRAM", justify="right")
    table.add_column("Speed Factor", justify="right")

    for gpu in load_gpus():
        table.add_row(gpu.key, gpu.name, f"{gpu.memory_gb:g} GB", f"{gpu.speed_factor:.1f}x")

    console.print(table)


@gpu_app.command("show")
def gpu_show(name: str):
    """Show details of a specific GPU."""
    gpu = get_gpu(name)
    if gpu is None:
        console.print(f"[red]GPU '{name}' not found.[/red]")
        console.print(f"Available: {', '.join(list_gpu_keys())}")
        raise typer.Exit(1)

    table = Table(title=f"GPU: {gpu.name}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Key", gpu.key)
    table.add_row("Vendor", gpu.vendor)
    table.add_row("VRAM", f"{gpu.memory_gb:g} GB")
    table.add_row("Speed Factor", f"{gpu.speed_factor:.1f}x")

    console.print(table)


@model_app.command("list")
def model_list():
    """List all available model presets."""
    table = Table(title="Available Model Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters", justify="right")
    table.add_column("Quantization", justify="center")
    table.add_column("Context", justify="right")

    for preset in load_presets():
        table.add_row(
            preset.name,
            f"{preset.parameters_billions:g}B",
            _quant_label(preset.default_quantization),
            f"{preset.default_context_length:,}",
        )

    console.print(table)


@model_app.command("show")
def model_show(name: str):
    """Show details of a specific model preset."""
    preset = get_preset(name)
    if preset is None:
        console.print(f"[red]Model preset '{name}' not found.[/red]")
        console.print(f"Available: {', '.join(list_preset_names())}")
        raise typer.Exit(1)

    table = Table(title=f"Model: {preset.name}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Parameters", f"{preset.parameters_billions:g}B")
    table.add_row("Default Quantization", _quant_label(preset.default_quantization))
    table.add_row("Default Context", f"{preset.default_context_length:,}")
    table.add_row("Description", preset.description)

    console.print(table)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """LHC - LLM Hardware Calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


if __name__ == "__main__":
    app()
