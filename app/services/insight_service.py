# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import calendar
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.services.analytics_engine import (
    WELLNESS_TIMEZONE,
    InvalidInputError,
    ensure_entries,
    entry_time,
    local_today,
    entry_value,
    active_dates,
    calculate_average,
    calculate_streak,
    calculate_trend,
    filter_by_date_range,
    parse_timestamp,
    pearson_correlation,
    round_half_up,
    standard_deviation,
)

# 🧭 Metric registry: collection, value field and which direction is "good"
METRICS: Dict[str, Dict[str, Any]] = {
    "mood": {"collection": "mood_entries", "value_key": "score", "positive_is_good": True},
    "sleep": {"collection": "sleep_entries", "value_key": "hours", "positive_is_good": True},
    "stress": {"collection": "stress_entries", "value_key": "level", "positive_is_good": False},
}

MOOD_DISTRIBUTION = {
    "ranges": [(1, 2), (3, 4), (5, 6), (7, 8), (9, 10)],
    "labels": ["Very Low", "Low", "Neutral", "Good", "Excellent"],
}

SLEEP_DISTRIBUTION = {
    "ranges": [(0, 4.9), (5, 5.9), (6, 6.9), (7, 7.9), (8, 8.9), (9, 24)],
    "labels": ["Less than 5 hrs", "5-6 hrs", "6-7 hrs", "7-8 hrs", "8-9 hrs", "More than 9 hrs"],
}

STRESS_DISTRIBUTION = {
    "ranges": [(1, 2), (3, 4), (5, 6), (7, 8), (9, 10)],
    "labels": ["Very Calm", "Calm", "Moderate", "Stressed", "Very Stressed"],
}

DISTRIBUTIONS = {"mood": MOOD_DISTRIBUTION, "sleep": SLEEP_DISTRIBUTION, "stress": STRESS_DISTRIBUTION}

OPTIMAL_SLEEP_HOURS = 8
CORRELATION_MIN_DAYS = 5
CORRELATION_STRENGTH = 0.4


def _now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(WELLNESS_TIMEZONE)
    return parse_timestamp(now)


def _shift_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def get_date_range(period: str = "week", base: Optional[datetime] = None) -> Dict[str, datetime]:
    """
    Start/end of a reporting window ending at `base` (default: now).

    'day' covers the whole calendar day; 'week', 'month' and 'year' reach
    back from `base`. Unknown periods fall back to a week.
    """
    now = _now(base)
    start, end = now, now

    if period == "day":
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end = now.replace(hour=23, minute=59, second=59, microsecond=999999)
    elif period == "month":
        start = _shift_months(now, -1)
    elif period == "year":
        start = _shift_months(now, -12)
    else:
        start = now - timedelta(days=7)

    return {"start_date": start, "end_date": end}


def metric_summary(
    entries,
    value_key: str,
    period: str = "week",
    now: Optional[datetime] = None,
    positive_is_good: bool = True,
) -> Dict[str, Any]:
    window = get_date_range(period, now)
    filtered = filter_by_date_range(entries, window["start_date"], window["end_date"])
    values = [v for v in (entry_value(e, value_key) for e in filtered) if v is not None]

    if not values:
        return {"average": 0, "trend": "stable", "count": 0, "std_dev": 0, "min": 0, "max": 0}

    return {
        "average": calculate_average(filtered, value_key),
        "trend": calculate_trend(filtered, value_key, positive_is_good=positive_is_good),
        "count": len(values),
        "std_dev": standard_deviation(filtered, value_key),
        "min": min(values),
        "max": max(values),
    }


def _window_point(entries, value_key: str, start: datetime, end: datetime, label: str) -> Optional[Dict[str, Any]]:
    values = [
        v for v in (entry_value(e, value_key) for e in filter_by_date_range(entries, start, end))
        if v is not None
    ]
    if not values:
        return None
    return {
        "label": label,
        "value": round_half_up(sum(values) / len(values)),
        "count": len(values),
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
    }


def _end_of_today(now: Optional[datetime] = None) -> datetime:
    return _now(now).replace(hour=23, minute=59, second=59, microsecond=999999)


def daily_aggregation(entries, value_key: str, days: int = 14, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    entries = ensure_entries(entries)
    if not entries:
        return []

    result = []
    end = _end_of_today(now)
    for _ in range(days):
        start = end.replace(hour=0, minute=0, second=0, microsecond=0)
        point = _window_point(entries, value_key, start, end, start.strftime("%b %d"))
        if point:
            result.insert(0, point)
        end = start - timedelta(microseconds=1)
    return result


def weekly_aggregation(entries, value_key: str, weeks: int = 8, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    entries = ensure_entries(entries)
    if not entries:
        return []

    result = []
    end = _end_of_today(now)
    for _ in range(weeks):
        start = (end - timedelta(days=6)).replace(hour=0, minute=0, second=0, microsecond=0)
        label = f"{start.strftime('%b %d')} - {end.strftime('%b %d')}"
        point = _window_point(entries, value_key, start, end, label)
        if point:
            result.insert(0, point)
        end = start - timedelta(microseconds=1)
    return result


def build_daily_timeline(mood=None, sleep=None, stress=None, start=None, end=None) -> List[Dict[str, Any]]:
    """
    Joins mood/sleep/stress by calendar day into rows like
    {"date": "2025-03-02", "mood": 7, "sleep": 6.5}. The latest entry of a
    day wins. `start`/`end` optionally bound the window.
    """
    timeline: Dict[str, Dict[str, Any]] = {}
    for name, entries in (("mood", mood), ("sleep", sleep), ("stress", stress)):
        entries = ensure_entries(entries)
        if start is not None and end is not None:
            entries = filter_by_date_range(entries, start, end)
        value_key = METRICS[name]["value_key"]
        for entry in sorted(entries, key=entry_time):
            value = entry_value(entry, value_key)
            if value is None:
                continue
            day_key = entry_time(entry).date().isoformat()
            timeline.setdefault(day_key, {"date": day_key})[name] = value
    return [timeline[k] for k in sorted(timeline)]


def format_relative_time(timestamp, now: Optional[datetime] = None) -> str:
    try:
        then = parse_timestamp(timestamp)
    except InvalidInputError:
        return "Invalid Date"

    seconds = int((_now(now) - then).total_seconds())
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if days > 30:
        months = days // 30
        return f"{months} month{'s' if months != 1 else ''} ago"
    if days > 0:
        return "Yesterday" if days == 1 else f"{days} days ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    return "Just now"


# 💡 Insight cards
def _card(category: str, title: str, description: str, priority: int) -> Dict[str, Any]:
    return {"category": category, "title": title, "description": description, "priority": priority}


def _mood_insights(entries, period: str) -> List[Dict[str, Any]]:
    cards = []
    if not entries:
        return cards
    avg = calculate_average(entries, "score")
    trend = calculate_trend(entries, "score")
    scores = [e["score"] for e in entries if e.get("score") is not None]

    if trend == "improving":
        cards.append(_card("mood", "Your mood is improving!",
                           f"Your average mood has been trending upward over the {period}. Great job on your progress!", 80))
    elif trend == "declining" and avg < 5:
        cards.append(_card("mood", "Your mood has been declining",
                           f"Your average mood has been trending downward over the {period}. Consider using some self-care strategies.", 90))

    if len(scores) >= 5:
        spread = standard_deviation(entries, "score")
        if spread > 2.5:
            cards.append(_card("mood", "Your mood varies significantly",
                               f"Your mood has high variability, with scores ranging from {min(scores)} to {max(scores)}. Stabilizing routines may help.", 70))
        elif spread < 0.8 and len(scores) >= 7:
            cards.append(_card("mood", "Your mood is very consistent",
                               "Your mood shows little variation day-to-day, which can be a sign of emotional stability.", 60))

    if avg >= 8:
        cards.append(_card("mood", "Your mood has been excellent!",
                           f"Your average mood of {avg}/10 is excellent. Whatever you're doing, keep it up!", 75))
    elif avg <= 4:
        cards.append(_card("mood", "Your mood has been lower than ideal",
                           f"Your average mood of {avg}/10 indicates you might be going through a difficult time. Reach out for support if needed.", 85))
    return cards


def _sleep_insights(entries) -> List[Dict[str, Any]]:
    cards = []
    if not entries:
        return cards
    avg = calculate_average(entries, "hours")
    spread = standard_deviation(entries, "hours")
    count = len(entries)
    sleep_debt = round_half_up((OPTIMAL_SLEEP_HOURS - avg) * count)

    if avg < 6:
        cards.append(_card("sleep", "You may not be getting enough sleep",
                           f"Your average of {avg} hours is below the recommended 7-9 hours for adults. This can affect mood and energy.", 95))
    elif avg > 9.5:
        cards.append(_card("sleep", "You might be oversleeping",
                           f"Your average of {avg} hours is above the typical recommendation. Excessive sleep can sometimes indicate other issues.", 75))
    elif 7 <= avg <= 9:
        cards.append(_card("sleep", "Your sleep duration is optimal",
                           f"Your average of {avg} hours falls within the recommended range for adults. Great job!", 60))

    if spread > 1.5 and count >= 5:
        cards.append(_card("sleep", "Your sleep schedule is inconsistent",
                           "Your sleep duration varies significantly from day to day. A more consistent schedule may improve sleep quality.", 80))
    elif spread < 0.8 and count >= 5:
        cards.append(_card("sleep", "Your sleep schedule is very consistent",
                           "You maintain a regular sleep duration, which supports healthy circadian rhythms.", 65))

    if sleep_debt > 7:
        cards.append(_card("sleep", "You have significant sleep debt",
                           f"You've accumulated about {sleep_debt} hours of sleep debt. Try to gradually catch up on rest.", 85))
    return cards


def _stress_insights(entries) -> List[Dict[str, Any]]:
    cards = []
    if not entries:
        return cards
    avg = calculate_average(entries, "level")
    trend = calculate_trend(entries, "level", positive_is_good=False)
    count = len(entries)

    if avg > 7:
        cards.append(_card("stress", "Your stress levels are high",
                           f"Your average stress level of {avg}/10 is high. Consider stress management techniques like meditation or exercise.", 90))
    elif avg < 4:
        cards.append(_card("stress", "Your stress levels are low",
                           f"Your average stress level of {avg}/10 indicates you're managing stress well. Great job!", 65))

    if trend == "declining" and avg > 5:
        cards.append(_card("stress", "Your stress is increasing",
                           "Your stress levels have been rising. Take time for activities that help you relax.", 85))
    elif trend == "improving" and count >= 5:
        cards.append(_card("stress", "Your stress is decreasing",
                           "Your stress levels have been going down. Whatever you're doing is working!", 70))
    return cards


def _correlation_insights(mood, sleep, stress) -> List[Dict[str, Any]]:
    cards = []
    timeline = build_daily_timeline(mood, sleep, stress)

    mood_sleep = [d for d in timeline if "mood" in d and "sleep" in d]
    if len(mood_sleep) >= CORRELATION_MIN_DAYS:
        r = pearson_correlation(mood_sleep, "sleep", "mood")
        if r > CORRELATION_STRENGTH:
            cards.append(_card("correlation", "Sleep affects your mood",
                               "There is a positive correlation between your sleep hours and mood scores. Getting enough sleep might help maintain a better mood.", 85))
        elif r < -CORRELATION_STRENGTH:
            cards.append(_card("correlation", "Unusual sleep-mood pattern",
                               "There appears to be a negative correlation between sleep duration and mood in your data. This is uncommon and might be worth exploring.", 70))

    mood_stress = [d for d in timeline if "mood" in d and "stress" in d]
    if len(mood_stress) >= CORRELATION_MIN_DAYS:
        r = pearson_correlation(mood_stress, "stress", "mood")
        if r < -CORRELATION_STRENGTH:
            cards.append(_card("correlation", "Stress seems to affect your mood",
                               "There is a negative correlation between your stress levels and mood. Managing stress might help improve your overall mood.", 80))
    return cards


def _streak_insights(mood, now: Optional[datetime]) -> List[Dict[str, Any]]:
    days = active_dates(mood)
    if not days:
        return []

    streak = calculate_streak(mood, now)
    if streak >= 7:
        return [_card("streak", f"{streak}-day streak!",
                      f"You've been tracking your mood for {streak} consecutive days. Impressive consistency!", 90)]
    if streak >= 3:
        return [_card("streak", f"{streak}-day streak",
                      f"You've logged your mood for {streak} days in a row. Keep going!", 75)]
    if streak == 0:
        since = (local_today(now) - max(days)).days
        if since <= 3:
            return [_card("streak", "Continue your tracking journey",
                          f"It's been {since} day{'s' if since != 1 else ''} since your last entry. Log your mood today to build consistency.", 70)]
        if since <= 7:
            return [_card("streak", "Welcome back!",
                          "It's been a few days since your last entry. Regular tracking helps you spot patterns.", 65)]
    return []


def generate_insights(mood=None, sleep=None, stress=None, period: str = "month", now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Builds prioritized insight cards over the reporting window, highest
    priority first.
    """
    window = get_date_range(period, now)
    start, end = window["start_date"], window["end_date"]

    mood_in = filter_by_date_range(mood, start, end)
    sleep_in = filter_by_date_range(sleep, start, end)
    stress_in = filter_by_date_range(stress, start, end)

    cards = []
    cards += _mood_insights(mood_in, period)
    cards += _sleep_insights(sleep_in)
    cards += _stress_insights(stress_in)
    cards += _correlation_insights(mood_in, sleep_in, stress_in)
    cards += _streak_insights(ensure_entries(mood), now)

    return sorted(cards, key=lambda c: -c["priority"])
