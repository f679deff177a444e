from django.urls import path

from .views import (
    ReviewCreateView,
    ReviewReplyView,
    ReviewVerifyView,
    UserRatingSummaryView,
    UserReviewsView,
)

urlpatterns = [
    path("", ReviewCreateView.as_view(), name="review-create"),
    path("<int:review_id>/reply/", ReviewReplyView.as_view(), name="review-reply"),
    path("<int:review_id>/verify/", ReviewVerifyView.as_view(), name="review-verify"),
    path("users/<int:user_id>/", UserReviewsView.as_view(), name="user-reviews"),
    path("users/<int:user_id>/summary/", UserRatingSummaryView.as_view(), name="user-rating-summary"),
]
