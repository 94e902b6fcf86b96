from __future__ import annotations

from datetime import datetime, timedelta, timezone

from roadlabels.common.models import LabeledRecord
from roadlabels.pipeline.classify import CoarseClass, FineClass, Taxonomy
from roadlabels.pipeline.sampling import SamplingPolicy, StratifiedSampler

DAY = datetime(2023, 2, 10, tzinfo=timezone.utc)


def _day_of_records(condition: int, source_id: str = "SN63595:0") -> list[LabeledRecord]:
    return [
        LabeledRecord(
            reference_time=DAY + timedelta(minutes=10 * i),
            source_id=source_id,
            camera_id=7,
            ice_thickness=0.0,
            water_film_thickness=0.0,
            snow_thickness=0.0,
            condition=condition,
            taxonomy="fine",
        )
        for i in range(144)
    ]


def test_dry_day_keeps_four_readings_at_six_hour_cadence():
    sampler = StratifiedSampler(Taxonomy.FINE)
    for record in _day_of_records(FineClass.DRY):
        sampler.add(record)

    dataset = sampler.result()
    kept = dataset.records_by_class[FineClass.DRY]
    assert [r.reference_time.hour for r in kept] == [0, 6, 12, 18]
    assert all(r.reference_time.minute == 0 for r in kept)
    assert dataset.retained_counts[FineClass.DRY] == 4
    assert dataset.classified_counts[FineClass.DRY] == 24


def test_minority_class_keeps_every_minute_aligned_reading():
    sampler = StratifiedSampler(Taxonomy.FINE)
    records = _day_of_records(FineClass.ICE)
    for record in records:
        sampler.add(record)

    dataset = sampler.result()
    aligned = [r for r in records if r.reference_time.minute == 0]
    assert dataset.records_by_class[FineClass.ICE] == aligned
    assert len(aligned) == 24
    assert dataset.discarded["unaligned"] == 120
    assert "downsampled" not in dataset.discarded


def test_each_record_lands_in_exactly_one_class_in_arrival_order():
    sampler = StratifiedSampler(Taxonomy.COARSE)
    wet = _day_of_records(CoarseClass.WET, source_id="SN1:0")[::6]
    snowy = _day_of_records(CoarseClass.SNOW_OR_ICE, source_id="SN2:0")[::6]
    for a, b in zip(wet, snowy):
        sampler.add(a)
        sampler.add(b)

    dataset = sampler.result()
    assert dataset.records_by_class[CoarseClass.WET] == wet
    assert dataset.records_by_class[CoarseClass.SNOW_OR_ICE] == snowy
    assert CoarseClass.DRY not in dataset.records_by_class


def test_policy_from_config_maps_labels_to_codes():
    policy = SamplingPolicy.from_config(
        {"minute_aligned": True, "cadence_hours": {"Dry": [0, 12], "Wet": [6], "Snow": None}},
        Taxonomy.FINE,
    )

    assert policy.cadence_hours == {FineClass.DRY: frozenset({0, 12}), FineClass.WET: frozenset({6})}


def test_policy_without_alignment_keeps_sub_hour_readings():
    sampler = StratifiedSampler(Taxonomy.FINE, SamplingPolicy(cadence_hours={}, minute_aligned=False))
    for record in _day_of_records(FineClass.SNOW):
        sampler.add(record)

    assert sampler.result().retained_counts[FineClass.SNOW] == 144


def test_summary_and_label_app_view():
    sampler = StratifiedSampler(Taxonomy.FINE)
    for record in _day_of_records(FineClass.WET)[:1] + _day_of_records(FineClass.DRY)[:1]:
        sampler.add(record)

    dataset = sampler.result()
    summary = dataset.summary()
    assert summary["retained_counts"]["Wet"] == 1
    assert summary["retained_counts"]["Snow+Ice+Wet"] == 0
    assert summary["retained_total"] == 2
    assert list(dataset.by_label()) == ["Dry", "Water"]
