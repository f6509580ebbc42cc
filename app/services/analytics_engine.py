# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import enum
import math
import os
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

import pytz

# ✅ Only load .env in local/dev
if os.getenv("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()

# 🌍 Every calendar computation happens in this zone
WELLNESS_TIMEZONE = pytz.timezone(os.getenv("WELLNESS_TIMEZONE", "UTC"))

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

TIME_SLOTS = [
    ("Morning (5-11)", 5, 11),
    ("Afternoon (12-16)", 12, 16),
    ("Evening (17-21)", 17, 21),
    ("Night (22-4)", 22, 4),
]

GRANULARITIES = ("day", "week", "month")


class InvalidInputError(ValueError):
    """Malformed entries: not a list, bad timestamp or non-numeric value."""


class TrendDirection(str, enum.Enum):
    increasing = "increasing"
    decreasing = "decreasing"
    stable = "stable"


# 🧹 Input helpers
def ensure_entries(entries) -> List[Any]:
    if entries is None:
        return []
    if not isinstance(entries, (list, tuple)):
        raise InvalidInputError(f"Expected a list of entries, got {type(entries).__name__}.")
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise InvalidInputError(f"Expected each entry to be a mapping, got {type(entry).__name__}.")
    return list(entries)


def parse_timestamp(value, tz=None) -> datetime:
    """
    Parses an ISO-8601 string (or datetime) into an aware datetime in `tz`.

    Naive values are taken as already local to `tz`.
    """
    tz = tz or WELLNESS_TIMEZONE

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(f"Unparseable timestamp: {value!r}") from None
    else:
        raise InvalidInputError(f"Missing or invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt.astimezone(tz)


def entry_time(entry: Mapping, tz=None) -> datetime:
    return parse_timestamp(entry.get("timestamp"), tz)


def entry_value(entry: Mapping, value_key: str) -> Optional[float]:
    raw = entry.get(value_key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidInputError(f"Value for {value_key!r} must be numeric, got {raw!r}.")
    if math.isnan(raw) or math.isinf(raw):
        raise InvalidInputError(f"Value for {value_key!r} must be finite.")
    return float(raw)


def _values(entries: List[Mapping], value_key: str) -> List[float]:
    values = (entry_value(e, value_key) for e in entries)
    return [v for v in values if v is not None]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def round_half_up(value: float, digits: int = 1) -> float:
    """Rounds halves away from zero, so 2.25 -> 2.3 and 12.5 -> 13."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# 📅 Date filtering and grouping
def filter_by_date_range(entries, start, end) -> List[Mapping]:
    entries = ensure_entries(entries)
    if not entries:
        return []
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    return [e for e in entries if start_dt <= entry_time(e) <= end_dt]


def week_number(dt: datetime) -> int:
    """
    Week of year: ceil((days since Jan 1 + Jan 1 weekday + 1) / 7).

    Jan 1 weekday counts Sunday as 0, and the elapsed days include the
    time-of-day fraction. A bucket therefore runs Saturday to Friday; an
    entry at exactly Saturday 00:00 still lands in the earlier bucket.
    """
    local = dt.replace(tzinfo=None)
    jan1 = datetime(local.year, 1, 1)
    elapsed_days = (local - jan1).total_seconds() / 86400
    jan1_dow = (jan1.weekday() + 1) % 7
    return math.ceil((elapsed_days + jan1_dow + 1) / 7)


def week_start(year: int, week: int) -> date:
    """First calendar day of bucket `week` of `year` as numbered by week_number()."""
    jan1 = date(year, 1, 1)
    jan1_dow = (jan1.weekday() + 1) % 7
    return jan1 + timedelta(days=7 * week - 8 - jan1_dow)


def _period_key(dt: datetime, granularity: str) -> str:
    if granularity == "day":
        return dt.date().isoformat()
    if granularity == "week":
        return f"{dt.year}-W{week_number(dt):02d}"
    return f"{dt.year}-{dt.month:02d}"


def _display_date(dt: datetime, granularity: str) -> str:
    if granularity == "day":
        return dt.strftime("%a, %b %d, %Y")
    if granularity == "week":
        first = week_start(dt.year, week_number(dt))
        last = first + timedelta(days=6)
        return f"{first.strftime('%b %d')} - {last.strftime('%b %d, %Y')}"
    return dt.strftime("%B %Y")


def group_by_period(entries, value_key: str, granularity: str = "day") -> List[Dict[str, Any]]:
    """
    Averages `value_key` per day, week or month bucket.

    Returns [{date, display_date, value, count}] sorted by bucket key, with
    value rounded to one decimal.
    """
    if granularity not in GRANULARITIES:
        raise InvalidInputError(f"Unknown granularity {granularity!r}; use one of {GRANULARITIES}.")

    entries = ensure_entries(entries)
    buckets: Dict[str, Dict[str, Any]] = {}

    for entry in entries:
        dt = entry_time(entry)
        value = entry_value(entry, value_key)
        if value is None:
            continue
        key = _period_key(dt, granularity)
        bucket = buckets.setdefault(key, {
            "date": key,
            "display_date": _display_date(dt, granularity),
            "total": 0.0,
            "count": 0,
        })
        bucket["total"] += value
        bucket["count"] += 1

    return [
        {
            "date": b["date"],
            "display_date": b["display_date"],
            "value": round_half_up(b["total"] / b["count"]),
            "count": b["count"],
        }
        for _, b in sorted(buckets.items())
    ]


def _bucket_rows(names: List[str], totals: List[float], counts: List[int]) -> List[Dict[str, Any]]:
    return [
        {
            "name": name,
            "value": round_half_up(totals[i] / counts[i]) if counts[i] else 0,
            "entries": counts[i],
        }
        for i, name in enumerate(names)
    ]


def weekday_averages(entries, value_key: str) -> List[Dict[str, Any]]:
    entries = ensure_entries(entries)
    totals = [0.0] * 7
    counts = [0] * 7

    for entry in entries:
        dt = entry_time(entry)
        value = entry_value(entry, value_key)
        if value is None:
            continue
        idx = (dt.weekday() + 1) % 7  # Sunday first
        totals[idx] += value
        counts[idx] += 1

    return _bucket_rows(WEEKDAY_NAMES, totals, counts)


def time_slot_index(hour: int) -> int:
    for idx, (_, first, last) in enumerate(TIME_SLOTS[:-1]):
        if first <= hour <= last:
            return idx
    return len(TIME_SLOTS) - 1  # Night wraps midnight


def time_of_day_averages(entries, value_key: str) -> List[Dict[str, Any]]:
    entries = ensure_entries(entries)
    totals = [0.0] * len(TIME_SLOTS)
    counts = [0] * len(TIME_SLOTS)

    for entry in entries:
        dt = entry_time(entry)
        value = entry_value(entry, value_key)
        if value is None:
            continue
        idx = time_slot_index(dt.hour)
        totals[idx] += value
        counts[idx] += 1

    return _bucket_rows([slot[0] for slot in TIME_SLOTS], totals, counts)


# 🔥 Streaks
def local_today(now: Optional[datetime] = None) -> date:
    if now is None:
        return datetime.now(WELLNESS_TIMEZONE).date()
    return parse_timestamp(now).date()


def active_dates(entries) -> set:
    return {entry_time(e).date() for e in ensure_entries(entries)}


def calculate_streak(entries, now: Optional[datetime] = None) -> int:
    """
    Consecutive days with at least one entry, counted back from today.

    No entry today means a streak of 0, whatever happened before.
    """
    days = active_dates(entries)
    if not days:
        return 0

    streak = 0
    day = local_today(now)
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def best_streak(entries) -> int:
    days = sorted(active_dates(entries))
    if not days:
        return 0
    best = current = 1
    for prev, cur in zip(days, days[1:]):
        if cur == prev + timedelta(days=1):
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best


# 📈 Statistics
def calculate_average(entries, value_key: str) -> float:
    values = _values(ensure_entries(entries), value_key)
    if not values:
        return 0
    return round_half_up(_mean(values))


def trend_direction(entries, value_key: str, threshold: float = 0.5) -> TrendDirection:
    entries = ensure_entries(entries)
    timed = [(entry_time(e), entry_value(e, value_key)) for e in entries]
    timed = [(dt, v) for dt, v in timed if v is not None]
    if len(timed) < 3:
        return TrendDirection.stable

    timed.sort(key=lambda item: item[0])
    half = len(timed) // 2
    first_mean = _mean([v for _, v in timed[:half]])
    second_mean = _mean([v for _, v in timed[half:]])

    if second_mean - first_mean > threshold:
        return TrendDirection.increasing
    if first_mean - second_mean > threshold:
        return TrendDirection.decreasing
    return TrendDirection.stable


def calculate_trend(entries, value_key: str, threshold: float = 0.5, positive_is_good: bool = True) -> str:
    """
    Returns 'improving', 'declining' or 'stable'.

    `positive_is_good=False` flips the reading for metrics such as stress,
    where a rising number means wellbeing is getting worse.
    """
    direction = trend_direction(entries, value_key, threshold)
    if direction is TrendDirection.stable:
        return "stable"
    rising = direction is TrendDirection.increasing
    return "improving" if rising == positive_is_good else "declining"


def standard_deviation(entries, value_key: str) -> float:
    values = _values(ensure_entries(entries), value_key)
    if len(values) < 2:
        return 0
    mean = _mean(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return round_half_up(math.sqrt(variance), 2)


def pearson_correlation(pairs, key_a: str, key_b: str) -> float:
    """
    Pearson r between `key_a` and `key_b` over items carrying both.

    Fewer than 3 usable pairs, or a constant series on either side, yields 0
    rather than NaN.
    """
    pairs = ensure_entries(pairs)
    xs, ys = [], []
    for item in pairs:
        x, y = entry_value(item, key_a), entry_value(item, key_b)
        if x is None or y is None:
            continue
        xs.append(x)
        ys.append(y)

    if len(xs) < 3 or len(set(xs)) == 1 or len(set(ys)) == 1:
        return 0

    mean_x, mean_y = _mean(xs), _mean(ys)
    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    var_x = sum((x - mean_x) ** 2 for x in xs)
    var_y = sum((y - mean_y) ** 2 for y in ys)
    denominator = math.sqrt(var_x * var_y)
    if denominator == 0:
        return 0

    r = max(-1.0, min(1.0, cov / denominator))
    return round_half_up(r, 2)


# 📊 Distribution
def _range_bounds(bounds) -> tuple:
    if isinstance(bounds, Mapping):
        low, high = bounds.get("min"), bounds.get("max")
    elif isinstance(bounds, (list, tuple)) and len(bounds) == 2:
        low, high = bounds
    else:
        raise InvalidInputError(f"Range must be (min, max) or {{'min', 'max'}}, got {bounds!r}.")
    if not all(isinstance(b, (int, float)) and not isinstance(b, bool) for b in (low, high)):
        raise InvalidInputError(f"Range bounds must be numeric, got {bounds!r}.")
    return low, high


def distribution_buckets(entries, value_key: str, ranges, labels) -> List[Dict[str, Any]]:
    entries = ensure_entries(entries)
    if len(ranges) != len(labels):
        raise InvalidInputError("Each distribution range needs exactly one label.")

    buckets = []
    for bounds, label in zip(ranges, labels):
        low, high = _range_bounds(bounds)
        buckets.append({"range": f"{low}-{high}", "label": label, "min": low, "max": high, "count": 0})

    for entry in entries:
        value = entry_value(entry, value_key)
        if value is None:
            continue
        for bucket in buckets:
            if bucket["min"] <= value <= bucket["max"]:
                bucket["count"] += 1
                break

    total = len(entries)
    for bucket in buckets:
        bucket["percentage"] = int(round_half_up(bucket["count"] / total * 100, 0)) if total else 0
    return buckets
