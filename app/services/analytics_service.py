from datetime import datetime, timedelta
from typing import Iterable
from sqlalchemy.orm import Session
from app.models.feedback import Feedback
from app.models.review_request import ReviewRequest, RequestMethod, ReviewRequestStatus
import logging

logger = logging.getLogger(__name__)

ANALYTICS_WINDOW_DAYS = 30


def summarize_feedback(feedback: Iterable[Feedback]) -> dict:
    """Total, average rating and 1-5 histogram over a feedback set"""
    ratings = [item.rating for item in feedback]
    total = len(ratings)
    return {
        'total': total,
        'averageRating': sum(ratings) / total if total else 0,
        'ratingDistribution': {str(star): ratings.count(star) for star in range(1, 6)},
    }


def summarize_review_requests(requests: Iterable[ReviewRequest]) -> dict:
    """Funnel counts for a set of review requests.

    ``pendingRequests`` counts requests that were sent but have not been
    answered yet (status ``sent``).
    """
    requests = list(requests)
    total = len(requests)
    completed = sum(1 for r in requests if r.status == ReviewRequestStatus.COMPLETED.value)
    awaiting = sum(1 for r in requests if r.status == ReviewRequestStatus.SENT.value)
    return {
        'totalRequests': total,
        'completedRequests': completed,
        'pendingRequests': awaiting,
        'responseRate': (completed / total) * 100 if total else 0,
        'requestsByMethod': {
            method.value: sum(1 for r in requests if r.request_method == method.value)
            for method in RequestMethod
        },
    }


class AnalyticsService:
    """Read-side aggregation; every call loads the candidate rows and reduces them in memory"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def feedback_analytics(self, db: Session, business_id: str) -> dict:
        self.logger.info(f"feedback_analytics: Entry - business: {business_id}")
        feedback = db.query(Feedback).filter(Feedback.business_id == business_id).all()
        result = summarize_feedback(feedback)
        self.logger.info(f"feedback_analytics: Success - business: {business_id}, total: {result['total']}")
        return result

    def review_request_analytics(self, db: Session, business_id: str, now: datetime = None) -> dict:
        now = now or datetime.utcnow()
        self.logger.info(f"review_request_analytics: Entry - business: {business_id}")
        since = now - timedelta(days=ANALYTICS_WINDOW_DAYS)
        requests = db.query(ReviewRequest).filter(
            ReviewRequest.business_id == business_id,
            ReviewRequest.created_at >= since
        ).all()
        result = summarize_review_requests(requests)
        self.logger.info(
            f"review_request_analytics: Success - business: {business_id}, total: {result['totalRequests']}")
        return result
