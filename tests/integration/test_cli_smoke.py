from __future__ import annotations

import json
from pathlib import Path

import pytest

from roadlabels import cli
from roadlabels.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from tests.fakes import BrokenFrostApi, FakeFrostApi, FakeRegistry, write_fast_overlay

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
CONDITIONS = {
    "SN100:0": (0.0, 0.0, 0.0),
    "SN200:0": (0.4, 0.0, 0.0),
}


def _patch(monkeypatch, api):
    monkeypatch.setattr(cli, "build_frost_api", lambda _cfg, _client: api)
    monkeypatch.setattr(cli, "build_registry", lambda _bundle: FakeRegistry(CONDITIONS))


def _args(data_dir: Path, *extra: str):
    return cli.parse_args(
        [
            "build",
            "--config-dir",
            str(CONFIG_DIR),
            "--overlay-config-dir",
            write_fast_overlay(data_dir.parent / f"overlay-{data_dir.name}"),
            "--data-dir",
            str(data_dir),
            "--run-id",
            "run-test",
            "--start",
            "2023-02-10",
            "--stop",
            "2023-02-12",
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_build_generates_expected_artifacts(monkeypatch, tmp_path: Path):
    _patch(monkeypatch, FakeFrostApi(CONDITIONS))
    data_dir = tmp_path / "data"

    exit_code = cli.run_command(_args(data_dir))

    out_dir = data_dir / "out" / "run-test"
    assert exit_code == EXIT_SUCCESS
    assert (out_dir / "sources.json").exists()
    assert (out_dir / "class_0_dry.csv").exists()
    assert (out_dir / "class_3_ice.csv").exists()
    assert (data_dir / "run_meta" / "run-test.log.jsonl").exists()

    summary = json.loads((out_dir / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "success"
    assert summary["dataset"]["retained_counts"]["Dry"] == 8
    assert summary["dataset"]["retained_counts"]["Ice"] == 48


@pytest.mark.integration
def test_cli_skipped_window_is_partial_or_hard_fail_when_strict(monkeypatch, tmp_path: Path):
    _patch(monkeypatch, FakeFrostApi(CONDITIONS, failing_days={"2023-02-11"}))

    assert cli.run_command(_args(tmp_path / "a")) == EXIT_PARTIAL
    assert cli.run_command(_args(tmp_path / "b", "--strict")) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_resolution_failure_is_hard_fail(monkeypatch, tmp_path: Path):
    _patch(monkeypatch, BrokenFrostApi(CONDITIONS))

    args = [
        "build",
        "--config-dir",
        str(CONFIG_DIR),
        "--overlay-config-dir",
        write_fast_overlay(tmp_path / "overlay"),
        "--data-dir",
        str(tmp_path),
        "--run-id",
        "run-x",
    ]
    assert cli.main(args) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_run_with_every_window_skipped_is_a_hard_failure(monkeypatch, tmp_path: Path):
    _patch(monkeypatch, FakeFrostApi(CONDITIONS, failing_days={"2023-02-10", "2023-02-11"}))
    data_dir = tmp_path / "data"

    assert cli.run_command(_args(data_dir)) == EXIT_HARD_FAIL

    summary = json.loads((data_dir / "out" / "run-test" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "error"
    assert summary["harvest"]["windows_fetched"] == 0


@pytest.mark.integration
def test_cli_dataset_manifest_carries_label_app_names(monkeypatch, tmp_path: Path):
    _patch(monkeypatch, FakeFrostApi(CONDITIONS))
    data_dir = tmp_path / "data"

    assert cli.run_command(_args(data_dir)) == EXIT_SUCCESS

    manifest = json.loads((data_dir / "out" / "run-test" / "dataset.json").read_text(encoding="utf-8"))
    assert manifest["label_app"]["names"]["1"] == "Water"
    assert manifest["label_app"]["names"]["7"] == "Snow+Ice+Water"
    assert manifest["label_app"]["counts"] == {"Dry": 8, "Ice": 48}
