"""Tests for the benchmark driver using in-process numpy kernels."""

import json
import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from dgemm_bench.benchmark.exceptions import (
    ArtifactNotFoundError,
    CompilationFailedError,
    ConfigurationError,
    KernelSourceNotFoundError,
    VerificationFailedError,
)
from dgemm_bench.benchmark.models import Layout, Transpose
from dgemm_bench.harness.driver import BenchmarkConfig, BenchmarkDriver


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "naive.c"
    path.write_text("void call_dgemm(void) {}\n")
    return path


def _config(source, tmp_path, **overrides):
    fields = dict(
        kernel_source=source,
        scratch_path=tmp_path / ".temp",
        repeats=3,
        m=4,
        n=3,
        k=5,
    )
    fields.update(overrides)
    return BenchmarkConfig(**fields)


class TestBenchmarkConfig:
    """Validation in BenchmarkConfig."""

    def test_zero_repeats_rejected(self, source, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            _config(source, tmp_path, repeats=0)
        assert exc_info.value.config_key == "repeats"

    def test_negative_dimension_rejected(self, source, tmp_path):
        with pytest.raises(ConfigurationError):
            _config(source, tmp_path, m=-1)

    def test_string_enums_are_parsed(self, source, tmp_path):
        config = _config(source, tmp_path, layout="col", trans_a="T", trans_b="C")
        assert config.layout is Layout.COL
        assert config.transpose_pair == (Transpose.TRANS, Transpose.CONJ)

    def test_defaults_apply(self, source, small_defaults):
        config = BenchmarkConfig(kernel_source=source)
        assert config.repeats == 3
        assert config.dimensions == (4, 3, 5)
        assert config.layout is Layout.ROW


class TestBenchmarkDriver:
    """End-to-end runs with in-process kernels."""

    def test_successful_run(self, source, tmp_path, make_recorder):
        recorder = make_recorder()
        kernel = recorder.kernel
        outcome = BenchmarkDriver(_config(source, tmp_path), loader=recorder.load, compiler=recorder.compile).run()

        assert len(outcome.samples) == 3
        assert kernel.calls == 3
        assert kernel.closed
        report = outcome.report
        assert report.name == "naive.c"
        assert report.dimensions == (4, 3, 5)
        assert report.repeat_count == 3
        assert report.statistics.minimum == min(outcome.samples)
        assert report.statistics.maximum == max(outcome.samples)
        assert outcome.verification_norm == pytest.approx(0.0, abs=1e-9)

    def test_scratch_artifact_removed(self, source, tmp_path, make_recorder):
        recorder = make_recorder()
        BenchmarkDriver(_config(source, tmp_path), loader=recorder.load, compiler=recorder.compile).run()
        assert recorder.compiled[0][2] == tmp_path / ".temp"
        assert recorder.loaded == [tmp_path / ".temp"]
        assert not (tmp_path / ".temp").exists()

    def test_scratch_artifact_removed_on_failure(self, source, tmp_path, make_recorder):
        recorder = make_recorder(error=0.01)
        driver = BenchmarkDriver(_config(source, tmp_path), loader=recorder.load, compiler=recorder.compile)
        with pytest.raises(VerificationFailedError):
            driver.run()
        assert not (tmp_path / ".temp").exists()
        assert recorder.kernel.closed

    def test_verification_stops_after_first_repeat(self, source, tmp_path, make_recorder):
        recorder = make_recorder(error=0.01)
        kernel = recorder.kernel
        with pytest.raises(VerificationFailedError):
            BenchmarkDriver(_config(source, tmp_path), loader=recorder.load, compiler=recorder.compile).run()
        assert kernel.calls == 1

    def test_skip_verification(self, source, tmp_path, make_recorder):
        recorder = make_recorder(error=0.01)
        kernel = recorder.kernel
        config = _config(source, tmp_path, skip_verification=True)
        outcome = BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()
        assert kernel.calls == 3
        assert outcome.verification_norm is None

    def test_warmup_calls_are_not_timed(self, source, tmp_path, make_recorder):
        recorder = make_recorder()
        kernel = recorder.kernel
        config = _config(source, tmp_path, warmup=2, beta=0.0)
        outcome = BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()
        assert kernel.calls == 5
        assert len(outcome.samples) == 3

    @pytest.mark.parametrize("layout", ["ROW", "COL"])
    @pytest.mark.parametrize("trans_a,trans_b", [("N", "N"), ("T", "N"), ("N", "T"), ("C", "T")])
    def test_layouts_and_transposes_verify(self, source, tmp_path, make_recorder, layout, trans_a, trans_b):
        recorder = make_recorder()
        config = _config(source, tmp_path, layout=layout, trans_a=trans_a, trans_b=trans_b, alpha=1.5, beta=0.5)
        outcome = BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()
        assert outcome.verification_norm == pytest.approx(0.0, abs=1e-9)

    def test_explicit_output_is_kept(self, source, tmp_path, make_recorder):
        output = tmp_path / "build" / "naive.so"
        output.parent.mkdir()
        recorder = make_recorder()
        config = _config(source, tmp_path, output_path=output, compile=True)
        BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()
        assert output.exists()
        assert recorder.loaded == [output]

    def test_no_compile_without_output_loads_source(self, source, tmp_path, make_recorder):
        recorder = make_recorder()
        config = _config(source, tmp_path, compile=False)
        BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()
        assert recorder.compiled == []
        assert recorder.loaded == [source]

    def test_missing_artifact_without_compile(self, source, tmp_path, make_recorder):
        recorder = make_recorder()
        config = _config(source, tmp_path, output_path=tmp_path / "absent.so", compile=False)
        with pytest.raises(ArtifactNotFoundError):
            BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()
        assert recorder.loaded == []

    def test_missing_source(self, tmp_path, make_recorder):
        recorder = make_recorder()
        config = _config(tmp_path / "absent.c", tmp_path)
        with pytest.raises(KernelSourceNotFoundError):
            BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()

    def test_compile_failure_cleans_scratch(self, source, tmp_path, make_recorder):
        def failing_compiler(compiler, src, output, extra_args):
            Path(output).write_text("partial")
            raise CompilationFailedError("compilation failed", command=[compiler], returncode=1)

        recorder = make_recorder()
        with pytest.raises(CompilationFailedError):
            BenchmarkDriver(_config(source, tmp_path), loader=recorder.load, compiler=failing_compiler).run()
        assert not (tmp_path / ".temp").exists()

    def test_saves_report_and_history(self, source, tmp_path, make_recorder):
        recorder = make_recorder()
        config = _config(
            source,
            tmp_path,
            save_as=tmp_path / "out" / "report.json",
            save_history_as=tmp_path / "out" / "history.txt",
        )
        outcome = BenchmarkDriver(config, loader=recorder.load, compiler=recorder.compile).run()

        data = json.loads((tmp_path / "out" / "report.json").read_text())
        assert data["repeats"] == 3
        assert data["name"] == "naive.c"
        history = (tmp_path / "out" / "history.txt").read_text().split("\n")
        assert len(history) == len(outcome.samples)
