"""Tests for the LHC command line interface."""

import json

from typer.testing import CliRunner

from lhc.cli import app, parse_billion

runner = CliRunner()


def test_parse_billion():
    assert parse_billion("70B") == 70.0
    assert parse_billion(" 6.7b ") == 6.7
    assert parse_billion("13") == 13.0


class TestEstimateCommand:
    """Tests for `lhc estimate`."""

    def test_json_output(self):
        """70B INT8 without KV cache needs three 24GB GPUs."""
        result = runner.invoke(
            app, ["estimate", "-p", "70B", "-q", "int8", "--no-kv-cache", "-g", "rtx3090", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["gpus_required"] == 3
        assert data["fits_in_available_memory"] is True

    def test_report(self):
        result = runner.invoke(app, ["estimate", "--preset", "Mistral 7B", "--gpu", "rtx4090"])
        assert result.exit_code == 0
        assert "LLM Hardware Calculator Report" in result.stdout
        assert "Viable" in result.stdout

    def test_unified_insufficient(self):
        result = runner.invoke(app, ["estimate", "-p", "70B", "--unified", "--ram", "16", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["gpus_required"] == 0
        assert data["inference_speed_tokens_per_second"] is None

    def test_unknown_preset(self):
        result = runner.invoke(app, ["estimate", "--preset", "GPT-5"])
        assert result.exit_code == 1

    def test_unknown_gpu(self):
        result = runner.invoke(app, ["estimate", "-p", "7B", "--gpu", "voodoo5"])
        assert result.exit_code == 1


class TestCheckCommand:
    """Tests for `lhc check`."""

    def test_pass(self):
        result = runner.invoke(app, ["check", "-p", "7B", "-q", "int4", "-g", "rtx4090"])
        assert result.exit_code == 0
        assert "PASS" in result.stdout

    def test_fail_unified(self):
        result = runner.invoke(app, ["check", "-p", "70B", "--unified", "--ram", "16"])
        assert result.exit_code == 1
        assert "FAIL" in result.stdout

    def test_fail_too_many_gpus(self):
        result = runner.invoke(app, ["check", "-p", "70B", "-q", "fp16", "-g", "rtx4090", "--max-gpus", "2"])
        assert result.exit_code == 1

    def test_kv_cache_options(self):
        """10B FP16 at 8K context needs a second GPU only for its KV cache."""
        base = ["check", "-p", "10B", "-q", "fp16", "-c", "8192", "-g", "rtx4090"]
        assert runner.invoke(app, base).exit_code == 1
        assert runner.invoke(app, base + ["--no-kv-cache"]).exit_code == 0
        assert runner.invoke(app, base + ["--kv-quant", "int4"]).exit_code == 0

    def test_batch_size_option(self):
        """A larger batch grows the KV cache past one GPU."""
        base = ["check", "-p", "7B", "-q", "int4", "-g", "rtx4090"]
        assert runner.invoke(app, base + ["-b", "1"]).exit_code == 0
        result = runner.invoke(app, base + ["-b", "4"])
        assert result.exit_code == 1
        assert "needs 2 GPUs" in result.stdout

    def test_rejects_invalid_values(self):
        """Out-of-range inputs exit with an error instead of a traceback."""
        for params in ("inf", "nan", "1e300"):
            result = runner.invoke(app, ["check", "-p", params])
            assert result.exit_code == 1
            assert "Invalid parameter_count_billions" in result.stdout
        assert runner.invoke(app, ["estimate", "-p", "7B", "--ram", "inf"]).exit_code == 1


class TestOtherCommands:
    """Tests for the table commands."""

    def test_compare(self):
        result = runner.invoke(app, ["compare", "-p", "13B"])
        assert result.exit_code == 0
        assert "GPTQ" in result.stdout

    def test_speed(self):
        result = runner.invoke(app, ["speed", "-p", "7B", "-g", "h100"])
        assert result.exit_code == 0
        assert "32" in result.stdout

    def test_gpu_list_and_show(self):
        assert "rtx4090" in runner.invoke(app, ["gpu", "list"]).stdout
        result = runner.invoke(app, ["gpu", "show", "h100"])
        assert result.exit_code == 0
        assert "80 GB" in result.stdout
        assert runner.invoke(app, ["gpu", "show", "voodoo5"]).exit_code == 1

    def test_model_list_and_show(self):
        assert "Gemma 2B" in runner.invoke(app, ["model", "list"]).stdout
        result = runner.invoke(app, ["model", "show", "Llama 3 8B"])
        assert result.exit_code == 0
        assert "8B" in result.stdout
