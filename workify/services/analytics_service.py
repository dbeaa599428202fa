from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone

from workify.core.cache import TTLCache, analytics_key
from workify.db.store import Store
from workify.schemas.feedback import CategoryCount, FeedbackInsight, SystemFeedbackAnalytics, UserFeedbackStats
from workify.services.feedback_service import HIGH_PROBABILITY_THRESHOLD

_MISSING = object()
TOP_CATEGORY_LIMIT = 5


def window_start(months: int, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=30 * months)).isoformat()


def _top_categories(insights: list[FeedbackInsight]) -> list[CategoryCount]:
    counts = Counter(insight.category for insight in insights)
    return [
        CategoryCount(category=category, count=count)
        for category, count in counts.most_common(TOP_CATEGORY_LIMIT)
    ]


class AnalyticsService:
    """Feedback statistics over a trailing window of months, cached briefly."""

    def __init__(self, store: Store, cache: TTLCache, months_window: int = 3) -> None:
        self._store = store
        self._cache = cache
        self._months_window = months_window

    def user_stats(self, user_id: str, months: int | None = None) -> UserFeedbackStats:
        months = months or self._months_window
        key = analytics_key("user_stats", f"{user_id}:{months}")
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        records, _ = self._store.list_feedback(user_id=user_id, since=window_start(months), limit=None)
        if records:
            probabilities = [record.selection_probability for record in records]
            stats = UserFeedbackStats(
                total_applications=len(probabilities),
                avg_probability=round(sum(probabilities) / len(probabilities), 2),
                max_probability=max(probabilities),
                min_probability=min(probabilities),
                high_probability_count=sum(1 for p in probabilities if p >= HIGH_PROBABILITY_THRESHOLD),
            )
        else:
            stats = UserFeedbackStats()

        self._cache.set(key, stats)
        return stats

    def system_analytics(self, months: int | None = None) -> SystemFeedbackAnalytics:
        months = months or self._months_window
        key = analytics_key("system", str(months))
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        records, _ = self._store.list_feedback(since=window_start(months), limit=None)
        if records:
            probabilities = [record.selection_probability for record in records]
            high = sum(1 for p in probabilities if p >= HIGH_PROBABILITY_THRESHOLD)
            analytics = SystemFeedbackAnalytics(
                total_feedback=len(records),
                avg_probability=round(sum(probabilities) / len(probabilities), 2),
                high_probability_percentage=round(100 * high / len(records), 2),
                top_strengths=_top_categories([item for record in records for item in record.strengths]),
                common_gaps=_top_categories([item for record in records for item in record.gaps]),
            )
        else:
            analytics = SystemFeedbackAnalytics()

        self._cache.set(key, analytics)
        return analytics
