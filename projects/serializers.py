from rest_framework import serializers

from core.serializers import JSONListField
from users.serializers import PublicUserSerializer

from .models import Favorite, Project


class ProjectInputSerializer(serializers.Serializer):
    """
    Create/update payload (JSON or multipart). Field names follow the web
    client's camelCase; validated_data is keyed by model field names.
    Type parsing only: business rules live in ProjectService.clean().
    """
    title = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    description = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    detailedDescription = serializers.CharField(source="detailed_description", required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True)
    subcategory = serializers.CharField(required=False, allow_blank=True)
    skills = JSONListField(child=serializers.CharField(max_length=60), required=False)

    budgetType = serializers.CharField(source="budget_type", required=False, allow_blank=True)
    budgetAmount = serializers.CharField(source="budget_amount", required=False, allow_blank=True, allow_null=True)
    currency = serializers.CharField(required=False, allow_blank=True, max_length=3)

    isRemote = serializers.BooleanField(source="is_remote", required=False)
    isUrgent = serializers.BooleanField(source="is_urgent", required=False)
    city = serializers.CharField(required=False, allow_blank=True)
    cityName = serializers.CharField(required=False, allow_blank=True, write_only=True)
    country = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    deadline = serializers.DateField(required=False, allow_null=True)
    estimatedDuration = serializers.CharField(source="estimated_duration", required=False, allow_blank=True)

    existingImages = JSONListField(source="existing_images", child=serializers.CharField(), required=False)
    status = serializers.ChoiceField(
        choices=[Project.STATUS_DRAFT, Project.STATUS_PUBLISHED], required=False
    )

    def validate(self, attrs):
        city_name = attrs.pop("cityName", None)
        if city_name and not attrs.get("city"):
            attrs["city"] = city_name
        return attrs


class StatusInputSerializer(serializers.Serializer):
    status = serializers.CharField()


class CompleteInputSerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False, allow_null=True)
    comment = serializers.CharField(required=False, allow_blank=True, default="")
    finalAmount = serializers.CharField(source="final_amount", required=False, allow_null=True, allow_blank=True)


class ProjectSerializer(serializers.ModelSerializer):
    client = PublicUserSerializer(read_only=True)
    freelancer = PublicUserSerializer(read_only=True)
    is_owner = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "description",
            "detailed_description",
            "category",
            "subcategory",
            "skills",
            "budget_type",
            "budget_amount",
            "currency",
            "final_amount",
            "status",
            "client",
            "freelancer",
            "is_owner",
            "is_remote",
            "city",
            "country",
            "address",
            "deadline",
            "estimated_duration",
            "images",
            "attachments",
            "is_urgent",
            "is_featured",
            "proposals_count",
            "views_count",
            "moderation_score",
            "moderation_verdict",
            "created_at",
            "updated_at",
            "published_at",
            "completed_at",
        ]
        read_only_fields = fields

    def get_is_owner(self, obj):
        request = self.context.get("request")
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and obj.client_id == user.id)


class ProjectCardSerializer(serializers.ModelSerializer):
    """Compact listing representation."""
    client = PublicUserSerializer(read_only=True)

    class Meta:
        model = Project
        fields = [
            "id", "title", "category", "subcategory", "skills", "budget_type", "budget_amount",
            "currency", "status", "client", "is_remote", "city", "deadline", "images",
            "is_urgent", "is_featured", "proposals_count", "views_count", "published_at", "created_at",
        ]
        read_only_fields = fields


class FavoriteSerializer(serializers.ModelSerializer):
    project = ProjectCardSerializer(read_only=True)

    class Meta:
        model = Favorite
        fields = ["id", "project", "created_at"]
        read_only_fields = fields


class FavoriteInputSerializer(serializers.Serializer):
    projectId = serializers.IntegerField(source="project_id")
