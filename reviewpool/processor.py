"""
Review processor — the numbers behind the Dashboard and Analytics pages.

Takes review rows already fetched from the store and reduces them to the
summary figures the pages display: averages, sentiment split, rating
distribution, growth rate and daily trend buckets.

Key design decisions:
    1. Pure functions over lists of dicts, no store access in PART 1.
    2. Every figure has a defined value for an empty input (0 or empty list).
    3. LLM only handles per-review sentiment/summary (PART 2), on demand.
"""

from datetime import datetime, timedelta, timezone
from collections import Counter
from typing import Optional

from dateutil.parser import isoparse

from reviewpool.llm_client import call_llm
from reviewpool.models import SENTIMENT_LABELS, TREND_BUCKETS

# ============================================================
# PART 1: Pure statistics (no LLM needed)
# ============================================================

def compute_average_rating(reviews: list[dict]) -> float:
    """Arithmetic mean of `rating`. Defined as 0 for an empty set."""
    if not reviews:
        return 0
    return sum(r["rating"] for r in reviews) / len(reviews)


def compute_sentiment_split(reviews: list[dict]) -> dict:
    """
    Count positive and negative labels. Neutral is whatever is left over,
    so unlabeled reviews land in the neutral bucket.

    `unscored` reports how many of the neutral ones carry no label at all;
    it is informational and does not change the neutral count.
    """
    labels = Counter(r.get("sentiment_label") for r in reviews)
    total = len(reviews)
    positive = labels.get("positive", 0)
    negative = labels.get("negative", 0)
    return {
        "total": total,
        "positive": positive,
        "negative": negative,
        "neutral": total - positive - negative,
        "unscored": labels.get(None, 0),
    }


def compute_sentiment_percentages(split: dict) -> dict:
    """Whole-number share of each bucket. All zero when there are no reviews."""
    total = split["total"]
    if total == 0:
        return {"positive": 0, "neutral": 0, "negative": 0}
    return {
        label: round(split[label] / total * 100)
        for label in ("positive", "neutral", "negative")
    }


def overall_sentiment(split: dict) -> str:
    return "Positive" if split["positive"] > split["negative"] else "Needs Attention"


def compute_rating_distribution(reviews: list[dict]) -> list[dict]:
    """
    Count of reviews per star, highest star first.
    e.g. [{"rating": 5, "count": 12}, {"rating": 4, "count": 3}, ..., {"rating": 1, "count": 0}]
    """
    counts = Counter(r["rating"] for r in reviews)
    distribution = [{"rating": star, "count": counts.get(star, 0)} for star in range(1, 6)]
    distribution.reverse()
    return distribution


def parse_timestamp(value) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime. Naive means UTC."""
    dt = value if isinstance(value, datetime) else isoparse(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def split_windows(reviews: list[dict], days: int,
                  now: Optional[datetime] = None) -> tuple[list[dict], list[dict]]:
    """
    Split reviews into the current window [now-N, now] and the one before it
    [now-2N, now-N). Anything older or in the future is ignored.
    """
    now = parse_timestamp(now or datetime.now(timezone.utc))
    window_start = now - timedelta(days=days)
    previous_start = window_start - timedelta(days=days)

    current, previous = [], []
    for r in reviews:
        created = parse_timestamp(r["created_at"])
        if window_start <= created <= now:
            current.append(r)
        elif previous_start <= created < window_start:
            previous.append(r)
    return current, previous


def compute_growth_rate(current_count: int, previous_count: int) -> float:
    """
    Percentage change in review volume between two equal windows.
    Returns 0 when the previous window is empty (no baseline to compare to).
    """
    if previous_count == 0:
        return 0
    return (current_count - previous_count) / previous_count * 100


def compute_daily_buckets(reviews: list[dict], limit: int = TREND_BUCKETS) -> list[dict]:
    """
    Group reviews by the UTC calendar date they were created on.

    Returns the last `limit` days that have reviews, oldest first:
        [{"date": "2026-01-15", "count": 4, "avg_rating": 4.25}, ...]
    The cap applies whatever time range the reviews were fetched for.
    """
    days = {}
    for r in reviews:
        day = parse_timestamp(r["created_at"]).date().isoformat()
        bucket = days.setdefault(day, {"count": 0, "total_rating": 0})
        bucket["count"] += 1
        bucket["total_rating"] += r["rating"]

    buckets = [
        {"date": day, "count": b["count"], "avg_rating": b["total_rating"] / b["count"]}
        for day, b in sorted(days.items())
    ]
    return buckets[-limit:] if limit else buckets


def compute_dashboard_stats(reviews: list[dict]) -> dict:
    """Headline figures for the Dashboard page."""
    split = compute_sentiment_split(reviews)
    return {
        "total_reviews": len(reviews),
        "average_rating": compute_average_rating(reviews),
        "approved_reviews": sum(1 for r in reviews if r.get("status") == "approved"),
        "pending_reviews": sum(1 for r in reviews if r.get("status") == "pending"),
        "sentiment": split,
        "sentiment_percent": compute_sentiment_percentages(split),
        "overall_sentiment": overall_sentiment(split),
    }


def compute_analytics(reviews: list[dict], previous_count: int) -> dict:
    """
    Everything the Analytics page shows for one time range.

    Args:
        reviews:        reviews inside the selected window, oldest first.
        previous_count: how many reviews the window before it held.
    """
    split = compute_sentiment_split(reviews)
    return {
        "total_reviews": len(reviews),
        "average_rating": compute_average_rating(reviews),
        "review_growth": compute_growth_rate(len(reviews), previous_count),
        "sentiment": split,
        "sentiment_percent": compute_sentiment_percentages(split),
        "rating_distribution": compute_rating_distribution(reviews),
        "daily_stats": compute_daily_buckets(reviews),
    }


# ============================================================
# PART 2: LLM-powered analysis (on demand, one review at a time)
# ============================================================

REVIEW_ANALYSIS_SYSTEM_PROMPT = """You are a careful customer review analyst.
Read ONE product review and judge how the customer feels.

RULES — follow these exactly:
1. "sentiment_label" is exactly one of: "positive", "neutral", "negative".
2. "sentiment_score" is a number from -1.0 (very negative) to 1.0 (very positive).
3. "summary" is ONE sentence, at most 25 words, in plain language.
4. Judge the text, not just the star rating. A 4-star review full of complaints is not positive.
5. Do NOT invent details the customer did not write.

Respond in this exact JSON format:
{
    "sentiment_label": "positive" | "neutral" | "negative",
    "sentiment_score": number,
    "summary": "one sentence"
}"""


def analyze_review(review: dict, provider: Optional[str] = None,
                   api_key: Optional[str] = None) -> dict:
    """
    Ask the LLM for a sentiment label, score and one-line summary of a review.

    Returns the three review columns ready to be written back:
        {"sentiment_label": ..., "sentiment_score": ..., "ai_summary": ...}
    Raises ValueError when the model's answer can't be used.
    """
    title = review.get("title") or ""
    user_prompt = f"""Rating: {review['rating']}/5
Title: {title}
Review: "{review['content'][:2000]}\""""

    print(f"Sending review {review.get('id', '?')} to LLM for sentiment analysis...")
    result = call_llm(
        system_prompt=REVIEW_ANALYSIS_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        temperature=0.0,
        provider=provider,
        api_key=api_key,
    )

    label = str(result.get("sentiment_label", "")).lower().strip()
    if label not in SENTIMENT_LABELS:
        raise ValueError(f"LLM returned an unusable sentiment label: {result!r}")

    try:
        score = float(result.get("sentiment_score", 0))
    except (TypeError, ValueError):
        score = 0.0

    return {
        "sentiment_label": label,
        "sentiment_score": round(max(-1.0, min(1.0, score)), 2),
        "ai_summary": (result.get("summary") or "").strip() or None,
    }
