"""Streamlit Web UI for LHC."""

import pandas as pd
import streamlit as st

from .engine import (
    compare_quantizations,
    format_gb,
    format_speed,
    recommend_hardware,
    speed_by_batch_size,
    summarize_speed,
)
from .loader import get_gpu, get_preset, list_gpu_keys, list_preset_names
from .models import HardwareConfig, MemoryMode, ModelConfig, Quantization

QUANT_LABELS = {
    Quantization.FP32: "FP32 (32-bit float)",
    Quantization.FP16: "FP16 (16-bit float)",
    Quantization.BF16: "BF16 (16-bit brain float)",
    Quantization.INT8: "INT8 (8-bit integer)",
    Quantization.INT6: "INT6 (6-bit integer)",
    Quantization.INT5: "INT5 (5-bit integer)",
    Quantization.INT4: "INT4 (4-bit integer)",
    Quantization.INT3: "INT3 (3-bit integer)",
    Quantization.INT2: "INT2 (2-bit integer)",
    Quantization.GPTQ: "GPTQ (optimized quantization)",
    Quantization.AWQ: "AWQ (activation-aware quantization)",
}
KV_QUANTS = [Quantization.FP32, Quantization.FP16, Quantization.INT8, Quantization.INT5, Quantization.INT4]

NO_PRESET = "Custom"


def sidebar_inputs() -> tuple[ModelConfig, HardwareConfig]:
    """Render sidebar widgets and return the current configuration."""
    with st.sidebar:
        st.header("Configuration")

        # Model
        st.subheader("Model")
        preset_name = st.selectbox("Model Preset", [NO_PRESET] + list_preset_names())
        preset = get_preset(preset_name) if preset_name != NO_PRESET else None

        quants = list(Quantization)
        params_b = st.number_input(
            "Model Size (billions of parameters)",
            min_value=0.1,
            max_value=1000.0,
            value=float(preset.parameters_billions) if preset else 7.0,
            step=0.1,
        )
        default_quant = preset.default_quantization if preset else Quantization.FP16
        quantization = st.selectbox(
            "Quantization Method",
            quants,
            index=quants.index(default_quant) if default_quant in quants else 1,
            format_func=lambda q: QUANT_LABELS[q],
        )
        context_length = st.slider(
            "Context Length (tokens)",
            128,
            131072,
            preset.default_context_length if preset else 4096,
            128,
        )
        kv_cache = st.toggle("Enable KV Cache", value=True)
        kv_quant = st.selectbox(
            "KV Cache Quantization",
            KV_QUANTS,
            index=1,
            format_func=lambda q: q.value.upper(),
            disabled=not kv_cache,
        )
        batch_size = st.slider("Batch Size", 1, 32, 1)

        # Hardware
        st.subheader("Hardware")
        unified = st.toggle("Unified Memory (e.g. Apple silicon)", value=False)
        gpu_keys = list_gpu_keys()
        gpu_model = st.selectbox(
            "GPU Model",
            gpu_keys,
            format_func=lambda key: f"{get_gpu(key).name} ({get_gpu(key).memory_gb:g}GB)",
            disabled=unified,
        )
        system_ram = st.slider("System RAM (GB)", 4, 512, 32, 4)

    model = ModelConfig(
        parameter_count_billions=params_b,
        quantization=quantization,
        context_length_tokens=context_length,
        kv_cache_enabled=kv_cache,
        kv_cache_quantization=kv_quant,
        batch_size=batch_size,
    )
    hardware = HardwareConfig(
        memory_mode=MemoryMode.UNIFIED_MEMORY if unified else MemoryMode.DISCRETE_GPU,
        gpu_model=gpu_model,
        system_ram_gb=system_ram,
    )
    return model, hardware


def run_app():
    """Run the Streamlit application."""
    st.set_page_config(
        page_title="LLM Hardware Calculator",
        page_icon="🖥️",
        layout="wide",
    )

    st.title("🖥️ LLM Hardware Calculator")
    st.markdown("**Estimate VRAM, system RAM, disk and GPU needs for LLM inference**")
    st.markdown("---")

    # Streamlit reruns this script on every widget change
    model, hardware = sidebar_inputs()
    result = recommend_hardware(model, hardware)

    col1, col2 = st.columns(2)

    with col1:
        st.header("📊 Requirements")
        m1, m2, m3 = st.columns(3)
        with m1:
            st.metric("VRAM", format_gb(result.vram_required_gb))
        with m2:
            st.metric("System RAM", format_gb(result.system_ram_required_gb))
        with m3:
            st.metric("Disk Space", format_gb(result.disk_space_required_gb))

        if result.fits_in_available_memory:
            st.success(f"✅ Viable: {result.hardware_summary}")
        else:
            st.error(f"❌ {result.hardware_summary}: model does not fit in usable memory")

        st.caption(
            f"VRAM usage: {format_gb(result.vram_required_gb)} / {format_gb(result.available_vram_gb)} "
            f"({result.vram_utilization:.0%})"
        )
        st.progress(min(result.vram_utilization, 1.0))

        requirements = pd.DataFrame({
            "Resource": ["VRAM", "System RAM", "Disk Space"],
            "GB": [
                round(result.vram_required_gb, 2),
                round(result.system_ram_required_gb, 2),
                round(result.disk_space_required_gb, 2),
            ],
        })
        st.bar_chart(requirements.set_index("Resource"))

        for warning in result.warnings:
            st.warning(warning)

    with col2:
        st.header("⚡ Inference Speed")
        if result.inference_speed_tokens_per_second is None:
            st.info("Speed estimates are only available for discrete GPUs.")
        else:
            summary = summarize_speed(result.inference_speed_tokens_per_second)
            s1, s2, s3 = st.columns(3)
            with s1:
                st.metric("Tokens / second", format_speed(summary.tokens_per_second))
            with s2:
                st.metric("Tokens / minute", f"{summary.tokens_per_minute:,.0f}")
            with s3:
                st.metric("1000 tokens", f"{summary.seconds_per_1000_tokens:.1f} s")

            speeds = pd.DataFrame(
                [p.model_dump() for p in speed_by_batch_size(model, hardware, result.gpus_required)]
            )
            st.line_chart(speeds.set_index("batch_size"))

        st.header("🔬 Quantization Comparison")
        rows = compare_quantizations(model)
        comparison = pd.DataFrame({
            "Method": [row.name for row in rows],
            "VRAM (GB)": [round(row.vram_gb, 2) for row in rows],
        })
        st.bar_chart(comparison.set_index("Method"))

    st.markdown("---")
    st.download_button(
        "📥 Download Estimate (JSON)",
        result.model_dump_json(indent=2),
        file_name="lhc_estimate.json",
        mime="application/json",
    )


def main():
    """Entry point for the web application."""
    run_app()


if __name__ == "__main__":
    main()
