from datetime import date, datetime, timedelta, timezone

import pytest

from app.services.analytics_engine import (
    InvalidInputError,
    TrendDirection,
    best_streak,
    calculate_average,
    calculate_streak,
    calculate_trend,
    distribution_buckets,
    filter_by_date_range,
    group_by_period,
    parse_timestamp,
    pearson_correlation,
    round_half_up,
    standard_deviation,
    time_of_day_averages,
    trend_direction,
    weekday_averages,
    week_number,
    week_start,
)

# Wednesday
NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)


def ts(days_ago=0, hour=9):
    day = NOW - timedelta(days=days_ago)
    return day.replace(hour=hour, minute=0).isoformat()


def mood(score, days_ago=0, hour=9):
    return {"score": score, "timestamp": ts(days_ago, hour)}


# --- parsing / validation ---

def test_parse_timestamp_handles_zulu_and_naive():
    assert parse_timestamp("2025-03-12T09:00:00Z") == datetime(2025, 3, 12, 9, tzinfo=timezone.utc)
    assert parse_timestamp("2025-03-12T09:00:00").hour == 9


@pytest.mark.parametrize("bad", ["not a date", "", None, 12345])
def test_bad_timestamps_are_rejected(bad):
    with pytest.raises(InvalidInputError):
        weekday_averages([{"score": 5, "timestamp": bad}], "score")


@pytest.mark.parametrize("bad", ["entries", {"score": 1}, 42])
def test_non_list_input_is_rejected(bad):
    with pytest.raises(InvalidInputError):
        calculate_streak(bad)


def test_non_numeric_value_is_rejected():
    with pytest.raises(InvalidInputError):
        calculate_average([{"score": "7", "timestamp": ts()}], "score")


def test_missing_values_are_skipped():
    entries = [mood(4), {"timestamp": ts(1)}, mood(6, 2)]
    assert calculate_average(entries, "score") == 5.0


# --- filtering / grouping ---

def test_filter_by_date_range_is_inclusive_and_ordered():
    entries = [mood(1, 5), mood(2, 3), mood(3, 1), mood(4, 0)]
    result = filter_by_date_range(entries, ts(3), ts(1))
    assert [e["score"] for e in result] == [2, 3]


def test_filter_by_date_range_empty_cases():
    assert filter_by_date_range([], ts(3), ts(0)) == []
    assert filter_by_date_range([mood(5, 10)], ts(3), ts(0)) == []


def test_group_by_day_averages_and_sorts():
    entries = [mood(8, 0), mood(7, 1), mood(8, 1, hour=20), mood(8, 1, hour=21)]
    grouped = group_by_period(entries, "score", "day")
    assert [g["date"] for g in grouped] == ["2025-03-11", "2025-03-12"]
    assert grouped[0]["value"] == 7.7
    assert grouped[0]["count"] == 3


def test_week_number_formula():
    assert week_number(datetime(2025, 1, 1)) == 1
    assert week_number(datetime(2025, 1, 5)) == 2
    assert week_number(datetime(2025, 3, 12)) == 11


def test_group_by_week_and_month_keys_sort_chronologically():
    entries = [
        {"score": 6, "timestamp": "2025-03-12T00:00:00Z"},
        {"score": 4, "timestamp": "2025-01-05T00:00:00Z"},
        {"score": 2, "timestamp": "2025-01-01T00:00:00Z"},
    ]
    weeks = group_by_period(entries, "score", "week")
    assert [w["date"] for w in weeks] == ["2025-W01", "2025-W02", "2025-W11"]

    months = group_by_period(entries, "score", "month")
    assert [(m["date"], m["value"]) for m in months] == [("2025-01", 3.0), ("2025-03", 6.0)]


def test_group_by_unknown_granularity():
    with pytest.raises(InvalidInputError):
        group_by_period([mood(5)], "score", "fortnight")


# --- weekday / time of day ---

def test_weekday_averages_empty_returns_seven_zero_rows():
    rows = weekday_averages([], "score")
    assert [r["name"] for r in rows] == [
        "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"
    ]
    assert all(r["value"] == 0 and r["entries"] == 0 for r in rows)


def test_weekday_averages_buckets_by_day():
    rows = {r["name"]: r for r in weekday_averages([mood(6), mood(8), mood(3, 3)], "score")}
    assert rows["Wednesday"] == {"name": "Wednesday", "value": 7.0, "entries": 2}
    assert rows["Sunday"]["entries"] == 1
    assert rows["Monday"]["entries"] == 0


def test_time_of_day_averages_wraps_midnight():
    entries = [mood(4, hour=6), mood(6, hour=13), mood(8, hour=18), mood(2, hour=23), mood(4, 1, hour=2)]
    rows = time_of_day_averages(entries, "score")
    assert [(r["name"], r["value"], r["entries"]) for r in rows] == [
        ("Morning (5-11)", 4.0, 1),
        ("Afternoon (12-16)", 6.0, 1),
        ("Evening (17-21)", 8.0, 1),
        ("Night (22-4)", 3.0, 2),
    ]


def test_time_of_day_averages_empty():
    rows = time_of_day_averages([], "score")
    assert len(rows) == 4
    assert all(r["value"] == 0 and r["entries"] == 0 for r in rows)


# --- streaks ---

def test_streak_empty():
    assert calculate_streak([], now=NOW) == 0


def test_streak_today_and_yesterday():
    assert calculate_streak([mood(5, 0), mood(5, 1)], now=NOW) == 2


def test_streak_stops_at_gap():
    assert calculate_streak([mood(5, 0), mood(5, 2)], now=NOW) == 1


def test_streak_requires_entry_today():
    assert calculate_streak([mood(5, 1), mood(5, 2), mood(5, 3)], now=NOW) == 0


def test_streak_ignores_time_of_day_and_duplicates():
    entries = [mood(5, 0, hour=0), mood(5, 0, hour=23), mood(5, 1, hour=23)]
    assert calculate_streak(entries, now=NOW) == 2


def test_best_streak():
    entries = [mood(5, d) for d in (0, 4, 5, 6, 10)]
    assert best_streak(entries) == 3
    assert best_streak([]) == 0


# --- trend ---

def test_trend_improving_declining_stable():
    assert calculate_trend([mood(1, 3), mood(1, 2), mood(9, 1)], "score") == "improving"
    assert calculate_trend([mood(9, 3), mood(1, 2), mood(1, 1)], "score") == "declining"
    assert calculate_trend([mood(5, 3), mood(5.1, 2), mood(5.2, 1)], "score") == "stable"


def test_trend_sorts_by_timestamp():
    entries = [mood(9, 1), mood(1, 3), mood(1, 2)]
    assert calculate_trend(entries, "score") == "improving"


def test_trend_needs_three_entries():
    assert calculate_trend([mood(1, 2), mood(9, 1)], "score") == "stable"
    assert calculate_trend([], "score") == "stable"


def test_trend_over_a_week_of_mood():
    entries = [mood(3, 4), mood(5, 2), mood(8, 0)]
    assert calculate_trend(entries, "score") == "improving"


def test_trend_polarity_for_stress():
    rising_stress = [{"level": 2, "timestamp": ts(3)}, {"level": 3, "timestamp": ts(2)}, {"level": 8, "timestamp": ts(1)}]
    assert trend_direction(rising_stress, "level") is TrendDirection.increasing
    assert calculate_trend(rising_stress, "level", positive_is_good=False) == "declining"


def test_trend_threshold():
    entries = [mood(5, 3), mood(5, 2), mood(6, 1)]
    assert calculate_trend(entries, "score") == "stable"
    assert calculate_trend(entries, "score", threshold=0.2) == "improving"


# --- dispersion / correlation ---

def test_standard_deviation_is_population():
    entries = [mood(v, i) for i, v in enumerate([2, 4, 4, 4, 5, 5, 7, 9])]
    assert standard_deviation(entries, "score") == 2.0


def test_standard_deviation_small_inputs():
    assert standard_deviation([], "score") == 0
    assert standard_deviation([mood(5)], "score") == 0


def test_pearson_perfect_linear():
    pairs = [{"x": 1, "y": 2}, {"x": 2, "y": 4}, {"x": 3, "y": 6}]
    assert pearson_correlation(pairs, "x", "y") == pytest.approx(1.0)


def test_pearson_negative():
    pairs = [{"x": 1, "y": 6}, {"x": 2, "y": 4}, {"x": 3, "y": 2}]
    assert pearson_correlation(pairs, "x", "y") == pytest.approx(-1.0)


def test_pearson_degenerate_cases_return_zero():
    constant_y = [{"x": 1, "y": 5}, {"x": 2, "y": 5}, {"x": 3, "y": 5}]
    assert pearson_correlation(constant_y, "x", "y") == 0
    assert pearson_correlation([{"x": 1, "y": 2}, {"x": 2, "y": 3}], "x", "y") == 0
    assert pearson_correlation([], "x", "y") == 0


def test_pearson_skips_incomplete_items():
    pairs = [{"x": 1, "y": 2}, {"x": 2}, {"x": 3, "y": 6}, {"y": 1}, {"x": 4, "y": 8}]
    assert pearson_correlation(pairs, "x", "y") == pytest.approx(1.0)


# --- distribution ---

def test_distribution_buckets():
    entries = [mood(v) for v in (1, 2, 5, 9, 10)]
    ranges = [(1, 2), (3, 4), (5, 6), (7, 8), (9, 10)]
    labels = ["Very Low", "Low", "Neutral", "Good", "Excellent"]
    result = distribution_buckets(entries, "score", ranges, labels)

    assert [b["count"] for b in result] == [2, 0, 1, 0, 2]
    assert [b["percentage"] for b in result] == [40, 0, 20, 0, 40]
    assert result[0]["range"] == "1-2"
    assert result[0]["label"] == "Very Low"


def test_distribution_first_matching_range_wins():
    result = distribution_buckets([mood(4)], "score", [{"min": 1, "max": 5}, {"min": 3, "max": 8}], ["a", "b"])
    assert [b["count"] for b in result] == [1, 0]


def test_distribution_empty_and_mismatched():
    result = distribution_buckets([], "score", [(1, 5)], ["all"])
    assert result[0]["count"] == 0 and result[0]["percentage"] == 0

    with pytest.raises(InvalidInputError):
        distribution_buckets([mood(4)], "score", [(1, 5)], ["a", "b"])


# --- rounding ---

def test_round_half_up():
    assert round_half_up(2.25) == 2.3
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-0.125, 2) == -0.13
    assert round_half_up(12.5, 0) == 13


def test_averages_round_halves_up():
    entries = [mood(2), mood(2), mood(2), mood(3)]
    assert calculate_average(entries, "score") == 2.3
    assert group_by_period(entries, "score", "day")[0]["value"] == 2.3
    assert weekday_averages(entries, "score")[3]["value"] == 2.3


def test_distribution_percentages_round_halves_up():
    entries = [mood(1)] + [mood(9)] * 7
    result = distribution_buckets(entries, "score", [(1, 5), (6, 10)], ["low", "high"])
    assert [b["percentage"] for b in result] == [13, 88]


# --- week labels ---

def test_week_start_matches_week_number():
    assert week_start(2025, 1) == date(2024, 12, 28)
    assert week_start(2025, 11) == date(2025, 3, 8)


def test_week_label_covers_the_bucket_days():
    entries = [
        {"score": 4, "timestamp": "2025-03-08T09:00:00Z"},  # Saturday
        {"score": 6, "timestamp": "2025-03-14T20:00:00Z"},  # Friday
        {"score": 8, "timestamp": "2025-03-15T09:00:00Z"},  # next Saturday
    ]
    weeks = group_by_period(entries, "score", "week")
    assert [(w["date"], w["display_date"], w["count"]) for w in weeks] == [
        ("2025-W11", "Mar 08 - Mar 14, 2025", 2),
        ("2025-W12", "Mar 15 - Mar 21, 2025", 1),
    ]
