from __future__ import annotations

from datetime import datetime, timezone

import pytest

from roadlabels.common.errors import ResolutionError
from roadlabels.discovery.stations import resolve_sources
from roadlabels.pipeline.build import RunOptions, run_label_pipeline
from roadlabels.pipeline.classify import CoarseClass, FineClass, Taxonomy
from tests.fakes import BrokenFrostApi, FakeFrostApi, FakeRegistry

CONDITIONS = {
    "SN100:0": (0.0, 0.0, 0.0),
    "SN200:0": (1.2, 0.0, 0.3),
    "SN300:0": (0.0, 0.5, 0.0),
}


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _run(api, options):
    source_map = resolve_sources(api, FakeRegistry(CONDITIONS), sleep=lambda _s: None)
    return run_label_pipeline(api, source_map, options)


@pytest.mark.integration
def test_failed_window_is_skipped_and_the_rest_of_the_span_is_labelled():
    api = FakeFrostApi(CONDITIONS, failing_days={"2023-02-11"})
    options = RunOptions(taxonomy=Taxonomy.FINE, start=_utc(2023, 2, 10), stop=_utc(2023, 2, 13))

    result = _run(api, options)

    assert [ref[:10] for ref in api.requested] == ["2023-02-10", "2023-02-11", "2023-02-12"]
    assert result.partial is True
    assert [w["window"] for w in result.harvest.skipped_windows] == ["2023-02-11"]
    assert result.harvest.windows_fetched == 2

    by_class = result.dataset.records_by_class
    assert len(by_class[FineClass.DRY]) == 8
    assert len(by_class[FineClass.SNOW_ICE]) == 48
    assert len(by_class[FineClass.WET]) == 48
    dry_days = [r.reference_time.date().isoformat() for r in by_class[FineClass.DRY]]
    assert dry_days == ["2023-02-10"] * 4 + ["2023-02-12"] * 4
    times = [r.reference_time for r in by_class[FineClass.WET]]
    assert times == sorted(times)


@pytest.mark.integration
def test_coarse_taxonomy_with_denylist():
    api = FakeFrostApi(CONDITIONS)
    options = RunOptions(
        taxonomy=Taxonomy.COARSE,
        start=_utc(2023, 2, 10),
        stop=_utc(2023, 2, 11),
        denylist=frozenset({"SN300:0"}),
    )

    result = _run(api, options)

    assert result.partial is False
    assert set(result.dataset.records_by_class) == {CoarseClass.DRY, CoarseClass.SNOW_OR_ICE}
    record = result.dataset.records_by_class[CoarseClass.SNOW_OR_ICE][0]
    assert (record.ice_thickness, record.water_film_thickness, record.snow_thickness) == (1.2, 0.0, 0.3)
    assert record.camera_id == 2
    assert record.taxonomy == "coarse"
    assert result.dataset.discarded["denylisted"] == 24
    assert result.dataset.discarded["unaligned"] == 120 * 3


@pytest.mark.integration
def test_broken_catalog_fails_the_run_before_any_window():
    api = BrokenFrostApi(CONDITIONS)

    with pytest.raises(ResolutionError):
        resolve_sources(api, FakeRegistry(CONDITIONS), sleep=lambda _s: None)
    assert api.requested == []


@pytest.mark.integration
def test_mid_day_span_bounds_are_honoured():
    api = FakeFrostApi(CONDITIONS)

    early = _run(api, RunOptions(taxonomy=Taxonomy.FINE, start=_utc(2023, 2, 10), stop=_utc(2023, 2, 10, 6)))
    late = _run(api, RunOptions(taxonomy=Taxonomy.FINE, start=_utc(2023, 2, 10, 12), stop=_utc(2023, 2, 11)))

    assert [ref[:10] for ref in api.requested] == ["2023-02-10", "2023-02-10"]
    early_hours = [r.reference_time.hour for r in early.dataset.records_by_class[FineClass.SNOW_ICE]]
    assert early_hours == [0, 1, 2, 3, 4, 5]
    assert [r.reference_time.hour for r in early.dataset.records_by_class[FineClass.DRY]] == [0]
    assert early.dataset.discarded["out_of_span"] == 3 * (144 - 36)

    late_times = [r.reference_time for r in late.dataset.records_by_class[FineClass.WET]]
    assert [t.hour for t in late_times] == list(range(12, 24))
    assert [r.reference_time.hour for r in late.dataset.records_by_class[FineClass.DRY]] == [12, 18]
