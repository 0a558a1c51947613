from app.models.user import User
from app.models.business import Business, BusinessCategory
from app.models.subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from app.models.review_request import ReviewRequest, RequestMethod, ReviewRequestStatus
from app.models.feedback import Feedback, FeedbackStatus, FeedbackPlatform, Sentiment

__all__ = [
    "User", "Business", "BusinessCategory", "Subscription", "SubscriptionPlan", "SubscriptionStatus",
    "ReviewRequest", "RequestMethod", "ReviewRequestStatus", "Feedback", "FeedbackStatus",
    "FeedbackPlatform", "Sentiment",
]
