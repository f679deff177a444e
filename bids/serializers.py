from rest_framework import serializers

from core.serializers import JSONListField
from users.serializers import PublicUserSerializer

from .models import Bid


class BidSubmitSerializer(serializers.Serializer):
    """
    POST /api/bids/ payload. `orderId` is the web client's name for the
    project id; `projectId` is accepted too. Values are checked by the service.
    """
    orderId = serializers.IntegerField(required=False)
    projectId = serializers.IntegerField(required=False)
    freelancerId = serializers.IntegerField(required=False)
    proposal = serializers.CharField(allow_blank=True, trim_whitespace=False)
    price = serializers.CharField()
    deliveryDays = serializers.CharField(source="delivery_days")
    milestones = JSONListField(required=False)

    def validate(self, attrs):
        order_id = attrs.pop("orderId", None)
        project_id = attrs.pop("projectId", None)
        if not (order_id or project_id):
            raise serializers.ValidationError({"orderId": ["This field is required."]})
        attrs["project_id"] = order_id or project_id
        return attrs


class BidUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(required=False)
    proposal = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    price = serializers.CharField(required=False)
    deliveryDays = serializers.CharField(source="delivery_days", required=False)
    milestones = JSONListField(required=False)


class BidSerializer(serializers.ModelSerializer):
    freelancer = PublicUserSerializer(read_only=True)
    project_title = serializers.CharField(source="project.title", read_only=True)

    class Meta:
        model = Bid
        fields = [
            "id",
            "project",
            "project_title",
            "freelancer",
            "proposal",
            "price",
            "delivery_days",
            "milestones",
            "status",
            "moderation_score",
            "created_at",
            "updated_at",
            "accepted_at",
        ]
        read_only_fields = fields
