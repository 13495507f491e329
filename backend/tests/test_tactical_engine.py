"""
Tactical Engine Tests

Tests for:
- Period weather distance and wind quadrants
- Seasonal session weighting by similarity, recency and ability
- Aggregation of weighted periods into tactical tallies
- Personal stats threshold and data confidence labels
"""

from datetime import date

import pytest

from models.advice import WeatherReading
from models.diary import AnglerVenueStats, PeriodWeather, SessionPeriod, SessionSummary
from services.conditions import quadrant_distance, wind_quadrant
from services.tactical_engine import (
    MAX_WEIGHTED_PERIODS,
    WeightedPeriod,
    period_weather_distance,
    personal_stats,
    summarize_periods,
    tactical_data_confidence,
    weight_periods,
)

TARGET = date(2024, 7, 4)
TARGET_WEEK = 27


def _period(**kwargs) -> SessionPeriod:
    return SessionPeriod(**kwargs)


# =============================================================================
# DISTANCE TESTS
# =============================================================================


class TestPeriodWeatherDistance:
    """Tests for reading vs logged period weather"""

    def test_nothing_comparable_is_one(self):
        assert period_weather_distance(None, PeriodWeather(temp=10.0)) == 1.0
        assert period_weather_distance(WeatherReading(temp=10.0), None) == 1.0
        assert period_weather_distance(WeatherReading(temp=10.0), PeriodWeather(wind_speed=5.0)) == 1.0

    def test_identical_weather_is_zero(self):
        reading = WeatherReading(temp=12.0, wind_speed_mph=8.0, wind_dir="SW", precip_mm=0.0)
        weather = PeriodWeather(temp=12.0, wind_speed=8.0, wind_dir="S", precip=0.0)

        assert period_weather_distance(reading, weather) == 0.0

    def test_mean_of_compared_components(self):
        reading = WeatherReading(temp=10.0, wind_dir="W")
        weather = PeriodWeather(temp=15.0, wind_dir="NW")

        # temperature 5/10 and one quadrant apart 1/2
        assert period_weather_distance(reading, weather) == pytest.approx(0.5)

    def test_wind_speed_scale_is_mph(self):
        reading = WeatherReading(wind_speed_mph=20.0)
        weather = PeriodWeather(wind_speed=5.0)

        assert period_weather_distance(reading, weather) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "direction,quadrant",
        [("N", "N"), ("nnw", "N"), ("ENE", "E"), ("SSE", "S"), ("WSW", "W"), ("", "N"), (None, "N"), ("X", "N")],
    )
    def test_wind_quadrant(self, direction, quadrant):
        assert wind_quadrant(direction) == quadrant

    def test_quadrant_distance_wraps(self):
        assert quadrant_distance("N", "S") == 2
        assert quadrant_distance("N", "W") == 1
        assert quadrant_distance("E", "E") == 0


# =============================================================================
# WEIGHTING TESTS
# =============================================================================


class TestWeightPeriods:
    """Tests for weighting seasonal session periods"""

    def test_same_day_identical_weather_scaled_by_ability(self):
        session = SessionSummary(
            user_id="u1",
            session_date=TARGET,
            weather_periods=[{"weather": {"temp": 12.0}}],
        )

        count, weighted = weight_periods(
            [session], {"u1": 1.5}, TARGET, TARGET_WEEK, 2, WeatherReading(temp=12.0)
        )

        assert count == 1
        assert weighted[0].weight == pytest.approx(30.0)

    def test_unknown_angler_has_default_ability(self):
        session = SessionSummary(session_date=TARGET, weather_periods=[{}])

        _, weighted = weight_periods([session], {}, TARGET, TARGET_WEEK, 2)

        assert weighted[0].weight == pytest.approx(1 / 1.05)

    def test_sessions_outside_window_are_dropped(self):
        sessions = [
            SessionSummary(session_date=date(2023, 7, 6), weather_periods=[{}, {}]),
            SessionSummary(session_date=date(2023, 12, 1), weather_periods=[{}]),
        ]

        count, weighted = weight_periods(sessions, {}, TARGET, TARGET_WEEK, 2)

        assert count == 1
        assert len(weighted) == 2

    def test_recency_uses_fixed_decay(self):
        session = SessionSummary(session_date=date(2023, 7, 5), weather_periods=[{}])

        _, weighted = weight_periods([session], {}, TARGET, TARGET_WEEK, 2)

        assert weighted[0].weight == pytest.approx(0.8 / 1.05)


# =============================================================================
# AGGREGATION TESTS
# =============================================================================


class TestSummarizePeriods:
    """Tests for tactical tallies over weighted periods"""

    def test_weighted_tallies(self):
        heavy = _period(
            techniques=[{"style": "Washing line", "catches": 3, "minutes": 60}],
            flies=[{"fly": "Blob", "catches": 2}],
            spots=[{"spot": "Dam wall", "catches": 1}],
            catch_by_hour={"14": 2, "9": 1},
        )
        light = _period(
            techniques=[
                {"style": "Washing line", "catches": 1, "minutes": 30},
                {"style": "Dry fly", "catches": 4, "minutes": 90},
            ],
            flies=[{"fly": "Hopper", "catches": 5}],
            catch_by_hour={"9": 3},
        )

        tactical = summarize_periods(
            2, [WeightedPeriod(period=light, weight=1.0), WeightedPeriod(period=heavy, weight=2.0)]
        )

        washing_line, dry_fly = tactical.techniques
        assert (washing_line.technique, washing_line.weighted_catches) == ("Washing line", 7.0)
        assert washing_line.weighted_minutes == 150
        assert washing_line.score == 3.0
        assert (dry_fly.technique, dry_fly.weighted_catches, dry_fly.weighted_minutes) == ("Dry fly", 4.0, 90)
        assert [(f.name, f.weighted_catches, f.score) for f in tactical.flies] == [
            ("Hopper", 5.0, 1.0),
            ("Blob", 4.0, 2.0),
        ]
        assert [s.name for s in tactical.spots] == ["Dam wall"]
        assert list(tactical.catch_by_hour) == ["9", "14"]
        assert tactical.catch_by_hour == {"9": 5.0, "14": 4.0}
        assert tactical.session_count == 2
        assert tactical.period_count == 2

    def test_only_heaviest_periods_count(self):
        weighted = [
            WeightedPeriod(period=_period(flies=[{"fly": f"Fly {i}", "catches": 1}]), weight=float(i))
            for i in range(MAX_WEIGHTED_PERIODS + 10)
        ]

        tactical = summarize_periods(1, weighted)

        assert tactical.period_count == MAX_WEIGHTED_PERIODS
        assert tactical.flies[0].name == f"Fly {MAX_WEIGHTED_PERIODS + 9}"
        assert len(tactical.flies) == 10

    def test_blank_names_and_null_catches(self):
        period = _period(
            techniques=[{"style": " ", "catches": 5}, {"style": "Nymph", "catches": None}],
            flies=[{"fly": None, "catches": 2}],
        )

        tactical = summarize_periods(1, [WeightedPeriod(period=period, weight=1.0)])

        assert [t.technique for t in tactical.techniques] == ["Nymph"]
        assert tactical.techniques[0].weighted_catches == 0.0
        assert tactical.flies == []

    def test_no_periods(self):
        tactical = summarize_periods(0, [])

        assert tactical.techniques == []
        assert tactical.catch_by_hour == {}
        assert tactical.period_count == 0


# =============================================================================
# PERSONAL AND CONFIDENCE TESTS
# =============================================================================


class TestPersonalStats:
    """Tests for the personal stats threshold"""

    def test_no_stats(self):
        stats = personal_stats(None)

        assert stats.has_personal is False
        assert stats.message == "Log more sessions to unlock personalised advice (need 3+, have 0)"

    def test_below_threshold(self):
        stats = personal_stats(AnglerVenueStats(total_sessions=2, total_fish=5))

        assert stats.has_personal is False
        assert stats.total_sessions == 2
        assert "have 2" in stats.message

    def test_at_threshold(self):
        stats = personal_stats(
            AnglerVenueStats(
                total_sessions=3,
                total_fish=11,
                general_ability=1.3,
                catch_rate=3.7,
                fish_per_hour=0.6,
                technique_stats={"Washing line": {"catches": 8, "sessions": 2}},
            )
        )

        assert stats.has_personal is True
        assert stats.total_fish == 11
        assert stats.general_ability == 1.3
        assert stats.technique_stats["Washing line"]["catches"] == 8
        assert stats.message is None

    @pytest.mark.parametrize(
        "periods,expected",
        [(0, "none"), (1, "low"), (4, "low"), (5, "medium"), (19, "medium"), (20, "high")],
    )
    def test_tactical_data_confidence(self, periods, expected):
        assert tactical_data_confidence(periods) == expected
