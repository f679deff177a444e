from django.utils.translation import gettext_lazy as _
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from core.exceptions import Forbidden
from core.responses import created, success
from core.serializers import parse_input
from projects.serializers import ProjectSerializer

from .serializers import BidSerializer, BidSubmitSerializer, BidUpdateSerializer
from .services import AcceptanceService, BidService


class BidCreateView(APIView):
    """POST /api/bids/ {orderId, freelancerId, proposal, price, deliveryDays, milestones?}"""
    permission_classes = [IsAuthenticated]
    throttle_scope = "bid-submit"

    def post(self, request):
        data = parse_input(BidSubmitSerializer, request.data)

        freelancer_id = data.get("freelancerId")
        if freelancer_id and freelancer_id != request.user.id:
            raise Forbidden(_("You can only bid on your own behalf."))

        bid = BidService().submit_bid(
            data["project_id"],
            request.user,
            proposal=data["proposal"],
            price=data["price"],
            delivery_days=data["delivery_days"],
            milestones=data.get("milestones"),
        )
        return created(BidSerializer(bid).data, message=_("Bid submitted"))


class MyBidsView(APIView):
    """GET /api/bids/mine/?status="""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        bids = BidService().list_mine(request.user, request.query_params.get("status"))
        return success(BidSerializer(bids, many=True).data)


class BidDetailView(APIView):
    """
    GET /api/bids/<id>/
    PUT /api/bids/<id>/ {status: rejected|withdrawn} or field edits
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, bid_id):
        return success(BidSerializer(BidService().get_bid(bid_id, request.user)).data)

    def put(self, request, bid_id):
        data = parse_input(BidUpdateSerializer, request.data, partial=True)
        bid = BidService().update_bid(bid_id, request.user, data)
        return success(BidSerializer(bid).data)


class BidAcceptView(APIView):
    """POST /api/bids/<id>/accept/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, bid_id):
        project, bid = AcceptanceService().accept_bid(bid_id, request.user)
        return success(
            {
                "project": ProjectSerializer(project, context={"request": request}).data,
                "bid": BidSerializer(bid).data,
            },
            message=_("Bid accepted"),
        )


class ProjectBidsView(APIView):
    """GET /api/projects/<project_id>/bids/?status="""
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        bids = BidService().list_bids(project_id, request.user, request.query_params.get("status"))
        return success(BidSerializer(bids, many=True).data)
