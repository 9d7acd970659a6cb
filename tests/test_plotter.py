from pathlib import Path

import pytest

from gyrofilter.tools import plotter


@pytest.mark.parametrize(
    "command",
    [
        ["response", "--type", "pt2", "--cutoff", "150"],
        ["response", "--type", "notch", "--cutoff", "250", "--q", "8"],
        ["decimation", "--cutoff", "200"],
        ["pipeline"],
        ["dyn-notch"],
    ],
)
def test_commands_write_figures(tmp_path: Path, command: list) -> None:
    out = tmp_path / "figure.png"
    assert plotter.main(["--seed", "1", "--out", str(out), *command]) == 0
    assert out.exists()
    assert out.stat().st_size > 0


def test_invalid_filter_kind_returns_error_code(tmp_path: Path) -> None:
    out = tmp_path / "figure.png"
    assert plotter.main(["--out", str(out), "response", "--type", "kalman"]) == 2
    assert not out.exists()


def test_cutoff_above_nyquist_returns_error_code(tmp_path: Path) -> None:
    out = tmp_path / "figure.png"
    args = ["--sample-rate", "1000", "--out", str(out), "response", "--type", "butterworth", "--cutoff", "600"]
    assert plotter.main(args) == 2


def test_missing_subcommand_exits() -> None:
    with pytest.raises(SystemExit):
        plotter.main([])


def test_packaged_pipeline_yaml_is_the_default_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "bench.yaml"
    path.write_text(
        "gyrofilter:\n  sample_rate_hz: 8000\npipeline:\n  - {type: pt3, cutoff_hz: 90, name: smooth}\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(plotter, "DEFAULT_CONFIG_PATH", path)
    cfg = plotter._resolve_config(plotter._build_arg_parser().parse_args(["pipeline"]))
    assert cfg.sample_rate_hz == 8000.0
    assert [s.label for s in cfg.stages] == ["smooth"]


def test_explicit_config_overrides_packaged_default(tmp_path: Path) -> None:
    path = tmp_path / "other.yaml"
    path.write_text("gyrofilter:\n  buffer_length: 128\n", encoding="utf-8")
    args = plotter._build_arg_parser().parse_args(["--config", str(path), "--sample-rate", "2000", "pipeline"])
    cfg = plotter._resolve_config(args)
    assert cfg.buffer_length == 128
    assert cfg.sample_rate_hz == 2000.0
