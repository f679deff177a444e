from django.contrib.auth import get_user_model
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.views import APIView

from core.exceptions import NotFound
from core.responses import created, success
from core.serializers import parse_input

from .serializers import ReplyInputSerializer, ReviewInputSerializer, ReviewSerializer
from .services import ReviewService, rating_summary

User = get_user_model()


class ReviewCreateView(APIView):
    """POST /api/reviews/ {projectId, rating, comment?, criteria?{quality, deadline, communication, price}}"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        data = parse_input(ReviewInputSerializer, request.data)
        review = ReviewService().create_review(
            request.user,
            data["project_id"],
            rating=data["rating"],
            comment=data.get("comment", ""),
            criteria=data.get("criteria"),
        )
        return created(ReviewSerializer(review).data)


class ReviewReplyView(APIView):
    """POST /api/reviews/<id>/reply/ {reply}"""
    permission_classes = [IsAuthenticated]

    def post(self, request, review_id):
        data = parse_input(ReplyInputSerializer, request.data)
        review = ReviewService().reply(request.user, review_id, data["reply"])
        return success(ReviewSerializer(review).data)


class ReviewVerifyView(APIView):
    """POST /api/reviews/<id>/verify/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, review_id):
        review = ReviewService().verify(request.user, review_id)
        return success(ReviewSerializer(review).data)


def _get_user_or_404(user_id):
    if not User.objects.filter(pk=user_id, is_active=True).exists():
        raise NotFound()
    return user_id


class UserReviewsView(APIView):
    """GET /api/reviews/users/<user_id>/ verified reviews, newest first"""
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request, user_id):
        _get_user_or_404(user_id)
        return success(ReviewSerializer(ReviewService().list_for_user(user_id), many=True).data)


class UserRatingSummaryView(APIView):
    """GET /api/reviews/users/<user_id>/summary/"""
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request, user_id):
        _get_user_or_404(user_id)
        return success(rating_summary(user_id))
