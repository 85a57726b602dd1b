"""Tests for the GPU catalog and model preset loaders."""

import pytest

from lhc import loader
from lhc import (
    Quantization,
    get_gpu,
    get_preset,
    list_gpu_keys,
    list_preset_names,
    load_gpus,
)


class TestGpuCatalog:
    """Tests for GPU loading."""

    def test_load_gpus(self):
        """The catalog holds 13 GPUs between 8 and 80 GB."""
        gpus = load_gpus()
        assert len(gpus) == 13
        assert min(g.memory_gb for g in gpus) == 8
        assert max(g.memory_gb for g in gpus) == 80
        assert all(0.5 <= g.speed_factor <= 2.5 for g in gpus)

    def test_list_gpu_keys(self):
        keys = list_gpu_keys()
        assert "rtx4090" in keys
        assert "a100_40gb" in keys

    def test_get_gpu_case_insensitive(self):
        """Lookup by key or display name ignores case."""
        assert get_gpu("RTX4090").key == "rtx4090"
        assert get_gpu("nvidia a40").memory_gb == 48

    def test_get_gpu_unknown(self):
        assert get_gpu("voodoo5") is None


class TestPresets:
    """Tests for model preset loading."""

    def test_list_presets(self):
        names = list_preset_names()
        assert "Llama 3 70B" in names
        assert "Mixtral 8x7B" in names

    def test_get_preset(self):
        preset = get_preset("llama 3 70b")
        assert preset is not None
        assert preset.parameters_billions == 70
        assert preset.default_quantization is Quantization.INT8
        assert preset.default_context_length == 8192

    def test_preset_to_model_config(self):
        """Presets populate a ModelConfig, with overrides."""
        config = get_preset("Falcon 7B").to_model_config(batch_size=4)
        assert config.parameter_count_billions == 7
        assert config.context_length_tokens == 2048
        assert config.quantization is Quantization.FP16
        assert config.batch_size == 4

    def test_get_preset_unknown(self):
        assert get_preset("GPT-5") is None


class TestDataDir:
    """Tests for locating the bundled data."""

    def test_ignores_working_directory_data(self, tmp_path, monkeypatch):
        """A ./data directory in the working directory is never read."""
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "gpus.json").write_text('{"gpus": [{"key": "fake", "name": "Fake", "memory_gb": 1}]}')
        monkeypatch.chdir(tmp_path)
        load_gpus.cache_clear()
        try:
            assert len(load_gpus()) == 13
            assert get_gpu("fake") is None
            assert get_gpu("rtx4090") is not None
        finally:
            load_gpus.cache_clear()

    def test_missing_package_data(self, tmp_path, monkeypatch):
        """Missing package data raises instead of falling back."""
        (tmp_path / "data").mkdir()
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(loader, "__file__", str(tmp_path / "pkg" / "loader.py"))
        with pytest.raises(FileNotFoundError):
            loader._get_data_dir()
