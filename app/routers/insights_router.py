# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.models.database import get_db
from app.services.analytics_engine import (
    InvalidInputError,
    best_streak,
    calculate_streak,
    distribution_buckets,
    filter_by_date_range,
    group_by_period,
    pearson_correlation,
    time_of_day_averages,
    weekday_averages,
)
from app.services.document_store import load_collection
from app.services.insight_service import (
    DISTRIBUTIONS,
    METRICS,
    build_daily_timeline,
    daily_aggregation,
    generate_insights,
    get_date_range,
    metric_summary,
    weekly_aggregation,
)

router = APIRouter()


def _load_metric(db: Session, user_id: str, metric: str):
    if metric not in METRICS:
        raise HTTPException(status_code=404, detail=f"Unknown metric '{metric}'.")
    return load_collection(db, user_id, METRICS[metric]["collection"])


@router.get("/insights/{user_id}/correlation")
async def correlation(
    user_id: str,
    metric_a: str = Query("sleep"),
    metric_b: str = Query("mood"),
    period: str = Query("month"),
    db: Session = Depends(get_db)
):
    """
    Pearson r between two metrics joined by calendar day.
    """
    data = {name: _load_metric(db, user_id, name) for name in {metric_a, metric_b}}
    window = get_date_range(period)

    try:
        timeline = build_daily_timeline(
            mood=data.get("mood"),
            sleep=data.get("sleep"),
            stress=data.get("stress"),
            start=window["start_date"],
            end=window["end_date"],
        )
        coefficient = pearson_correlation(timeline, metric_a, metric_b)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))

    shared_days = sum(1 for day in timeline if metric_a in day and metric_b in day)
    return {
        "metric_a": metric_a,
        "metric_b": metric_b,
        "period": period,
        "days": shared_days,
        "correlation": coefficient,
    }


@router.get("/insights/{user_id}/cards")
async def insight_cards(user_id: str, period: str = Query("month"), db: Session = Depends(get_db)):
    try:
        cards = generate_insights(
            mood=_load_metric(db, user_id, "mood"),
            sleep=_load_metric(db, user_id, "sleep"),
            stress=_load_metric(db, user_id, "stress"),
            period=period,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"period": period, "insights": cards}


@router.get("/insights/{user_id}/{metric}")
async def metric_insights(
    user_id: str,
    metric: str,
    period: str = Query("week"),
    granularity: str = Query("day"),
    db: Session = Depends(get_db)
):
    entries = _load_metric(db, user_id, metric)
    meta = METRICS[metric]
    value_key = meta["value_key"]
    window = get_date_range(period)
    distribution = DISTRIBUTIONS[metric]

    try:
        in_window = filter_by_date_range(entries, window["start_date"], window["end_date"])
        return {
            "metric": metric,
            "period": period,
            "summary": metric_summary(entries, value_key, period, positive_is_good=meta["positive_is_good"]),
            "grouped": group_by_period(in_window, value_key, granularity),
            "weekday": weekday_averages(in_window, value_key),
            "time_of_day": time_of_day_averages(in_window, value_key),
            "distribution": distribution_buckets(in_window, value_key, distribution["ranges"], distribution["labels"]),
            "daily": daily_aggregation(entries, value_key),
            "weekly": weekly_aggregation(entries, value_key),
            "streak": calculate_streak(entries),
            "best_streak": best_streak(entries),
        }
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
