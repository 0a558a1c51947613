from fastapi import APIRouter
from app.api.v1.routes import business, feedback, places, review_requests, sms, subscriptions, users

api_router = APIRouter()

api_router.include_router(business.router, prefix="/business", tags=["business"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(review_requests.router, prefix="/review-request", tags=["review-request"])
api_router.include_router(subscriptions.router, prefix="/subscription", tags=["subscription"])
api_router.include_router(sms.router, prefix="/sms", tags=["sms"])
api_router.include_router(places.router, prefix="/places", tags=["places"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
