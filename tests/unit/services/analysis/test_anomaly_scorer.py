"""
Unit tests for meteo.services.analysis.anomaly_scorer.

Covers both formulas:
- deep (threshold, z-score, gradient and coherence layers)
- boundary (reduced thresholds for readings without history)
"""

from __future__ import annotations

import random

import pytest

from meteo.domain.reading import Reading
from meteo.enums import RiskLevel, ScoringVariant
from meteo.services.analysis import (
    ANOMALY_THRESHOLD,
    BOUNDARY_ANOMALY_THRESHOLD,
    AnomalyScorer,
    WindowRegistry,
    risk_level_for,
)

BASE_TS = 1_700_006_400


class TestRiskLevel:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (0.0, RiskLevel.NORMAL),
            (0.3999, RiskLevel.NORMAL),
            (0.40, RiskLevel.ELEVATED),
            (0.6499, RiskLevel.ELEVATED),
            (0.65, RiskLevel.HIGH),
            (0.8499, RiskLevel.HIGH),
            (0.85, RiskLevel.CRITICAL),
            (1.0, RiskLevel.CRITICAL),
        ],
    )
    def test_step_boundaries(self, score, expected):
        assert risk_level_for(score) == expected

    def test_non_decreasing(self):
        ranks = [risk_level_for(i / 100).rank for i in range(101)]
        assert ranks == sorted(ranks)


class TestThresholdLayer:
    def test_critical_temperature_without_history(self, scorer, make_reading):
        reading = make_reading(temperature=45.0, humidity=50.0, pressure=1013.0, wind_speed=2.0, rain_level=0.0)

        result = scorer.score("node-001", reading)

        assert result.anomaly_score == pytest.approx(0.35)
        assert result.risk_level == risk_level_for(result.anomaly_score)
        assert result.is_anomaly is False
        assert result.variant == ScoringVariant.DEEP
        assert any("Critical temperature" in factor for factor in result.factors)

    def test_depression_with_dry_air_stacks_with_coherence(self, scorer, make_reading):
        reading = make_reading(temperature=30.0, pressure=995.0, humidity=35.0)

        result = scorer.score("node-001", reading)

        assert result.anomaly_score == pytest.approx(0.37)
        assert any("Atmospheric depression" in factor for factor in result.factors)
        assert any("Incoherent readings" in factor for factor in result.factors)

    def test_freeze_stacks_with_low_temperature(self, scorer, make_reading):
        result = scorer.score("node-001", make_reading(temperature=-2.0))

        assert result.anomaly_score == pytest.approx(0.40)
        assert result.risk_level == RiskLevel.ELEVATED

    def test_heat_index_coherence(self, scorer, make_reading):
        result = scorer.score("node-001", make_reading(temperature=36.0, humidity=75.0))

        assert result.anomaly_score == pytest.approx(0.15)
        assert any("heat index" in factor for factor in result.factors)

    def test_extreme_reading_is_clamped_and_critical(self, scorer, make_reading):
        reading = make_reading(temperature=43.0, humidity=96.0, pressure=990.0, wind_speed=22.0, rain_level=12.0)

        result = scorer.score("node-001", reading)

        assert result.anomaly_score == 1.0
        assert result.is_anomaly is True
        assert result.risk_level == RiskLevel.CRITICAL
        assert "Verify sensors and on-site conditions immediately" in result.recommendations
        assert "Notify the field team" in result.recommendations
        assert "Enable cooling / check sun exposure" in result.recommendations
        assert "Prepare storm protection measures" in result.recommendations
        assert "Check humidity sensor (possible condensation)" in result.recommendations
        assert "Secure outdoor equipment" in result.recommendations

    def test_missing_fields_are_skipped(self, scorer):
        reading = Reading(node_id="node-001", timestamp=BASE_TS)

        result = scorer.score("node-001", reading)

        assert result.anomaly_score == 0.0
        assert result.risk_level == RiskLevel.NORMAL
        assert result.factors == []


class TestZScoreLayer:
    def test_strong_deviation_adds_factor(self, scorer, fill_window, make_reading):
        for index in range(10):
            fill_window(1, end_ts=BASE_TS - 600 + index * 60, temperature=20.0 + index % 2)

        result = scorer.score("node-001", make_reading(temperature=25.0))

        assert result.anomaly_score == pytest.approx(0.18)
        assert any(factor.startswith("temperature: z-score=9.0") for factor in result.factors)

    def test_weak_deviation_is_silent(self, scorer, fill_window, make_reading):
        for index in range(10):
            fill_window(1, end_ts=BASE_TS - 600 + index * 60, temperature=20.0 + index % 2)

        result = scorer.score("node-001", make_reading(temperature=21.9))

        assert result.anomaly_score == pytest.approx(0.08)
        assert result.factors == []

    def test_small_window_is_ignored(self, scorer, fill_window, make_reading):
        for index in range(7):
            fill_window(1, end_ts=BASE_TS - 600 + index * 60, temperature=20.0 + index % 2)

        result = scorer.score("node-001", make_reading(temperature=25.0))

        assert result.anomaly_score == 0.0

    def test_zero_variance_is_skipped(self, scorer, fill_window, make_reading):
        fill_window(10, end_ts=BASE_TS - 60)

        result = scorer.score("node-001", make_reading(temperature=30.0))

        assert result.anomaly_score == 0.0

    def test_scoring_does_not_mutate_window(self, scorer, registry, fill_window, make_reading):
        fill_window(10, end_ts=BASE_TS - 60)

        scorer.score("node-001", make_reading(temperature=30.0))

        assert len(registry.snapshot("node-001")) == 10


class TestGradientLayer:
    def test_pressure_swing(self, scorer, make_reading):
        previous = make_reading(timestamp=BASE_TS, pressure=1015.0)
        current = make_reading(timestamp=BASE_TS + 300, pressure=1005.0)

        result = scorer.score("node-001", current, previous)

        assert result.anomaly_score == pytest.approx(0.18)
        assert any("10.0 hPa in 5min" in factor for factor in result.factors)

    def test_temperature_and_humidity_jumps(self, scorer, make_reading):
        previous = make_reading(timestamp=BASE_TS, temperature=20.0, humidity=40.0)
        current = make_reading(timestamp=BASE_TS + 120, temperature=25.0, humidity=65.0)

        result = scorer.score("node-001", current, previous)

        assert result.anomaly_score == pytest.approx(0.25)

    @pytest.mark.parametrize("elapsed", [0, -60, 600, 3600])
    def test_elapsed_outside_range_is_ignored(self, scorer, make_reading, elapsed):
        previous = make_reading(timestamp=BASE_TS, pressure=1015.0)
        current = make_reading(timestamp=BASE_TS + elapsed, pressure=1005.0)

        result = scorer.score("node-001", current, previous)

        assert result.anomaly_score == 0.0

    def test_missing_previous_field_is_skipped(self, scorer, make_reading):
        previous = make_reading(timestamp=BASE_TS, pressure=None)
        current = make_reading(timestamp=BASE_TS + 60, pressure=1005.0)

        assert scorer.score("node-001", current, previous).anomaly_score == 0.0


class TestJitter:
    def test_score_and_flag_invariants_hold_with_jitter(self, make_reading):
        registry = WindowRegistry(window_size=20)
        scorer = AnomalyScorer(registry, rng=random.Random(11), jitter_enabled=True)
        source = random.Random(3)

        previous = None
        for index in range(200):
            reading = make_reading(
                timestamp=BASE_TS + index * 60,
                temperature=source.uniform(-10, 50),
                humidity=source.uniform(5, 100),
                pressure=source.uniform(960, 1045),
                wind_speed=source.uniform(0, 30),
                rain_level=source.uniform(0, 20),
            )
            result = scorer.score("node-001", reading, previous)
            registry.push(reading.with_analysis(result.anomaly_score, result.is_anomaly))
            previous = reading

            assert 0.0 <= result.anomaly_score <= 1.0
            assert result.is_anomaly == (result.anomaly_score >= ANOMALY_THRESHOLD)
            assert result.risk_level == risk_level_for(result.anomaly_score)

    def test_seeded_scorers_agree_on_independent_windows(self, make_reading):
        results = []
        for _ in range(2):
            registry = WindowRegistry(window_size=30)
            for index in range(12):
                registry.push(make_reading(timestamp=BASE_TS + index * 60, temperature=20.0 + index % 3))
            scorer = AnomalyScorer(registry, rng=random.Random(42), jitter_enabled=True)
            results.append(scorer.score("node-001", make_reading(timestamp=BASE_TS + 900, temperature=31.0)))

        assert results[0] == results[1]


class TestBoundaryVariant:
    def test_neutral_reading_scores_baseline(self, scorer, make_reading):
        result = scorer.score_without_history(make_reading())

        assert result.anomaly_score == pytest.approx(0.04)
        assert result.is_anomaly is False
        assert result.variant == ScoringVariant.BOUNDARY
        assert result.threshold == BOUNDARY_ANOMALY_THRESHOLD

    def test_threshold_is_inclusive(self, scorer, make_reading):
        reading = make_reading(temperature=38.0, humidity=95.0, pressure=1000.0)

        result = scorer.score_without_history(reading)

        assert result.anomaly_score == pytest.approx(0.70)
        assert result.is_anomaly is True

    def test_stacked_conditions_are_clamped(self, scorer, make_reading):
        reading = make_reading(temperature=38.0, humidity=95.0, pressure=1000.0, wind_speed=16.0, rain_level=9.0)

        result = scorer.score_without_history(reading)

        assert result.anomaly_score == 1.0
        assert result.is_anomaly is True

    def test_previous_reading_checks(self, scorer, make_reading):
        previous = make_reading(timestamp=BASE_TS, temperature=25.0, pressure=1013.0)
        current = make_reading(timestamp=BASE_TS + 60, temperature=29.0, pressure=1006.0)

        result = scorer.score_without_history(current, previous)

        assert result.anomaly_score == pytest.approx(0.38)
        assert any("Temperature jump" in factor for factor in result.factors)
        assert any("Pressure drop" in factor for factor in result.factors)

    def test_jitter_stays_within_baseline_band(self, registry, make_reading):
        scorer = AnomalyScorer(registry, rng=random.Random(5), jitter_enabled=True)

        for _ in range(50):
            result = scorer.score_without_history(make_reading())
            assert 0.04 <= result.anomaly_score <= 0.12
            assert result.anomaly_score == round(result.anomaly_score, 3)
