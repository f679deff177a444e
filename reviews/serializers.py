from rest_framework import serializers

from users.serializers import PublicUserSerializer

from .models import Review


class ReviewInputSerializer(serializers.Serializer):
    projectId = serializers.IntegerField(source="project_id")
    rating = serializers.CharField()
    comment = serializers.CharField(required=False, allow_blank=True, default="")
    criteria = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)


class ReplyInputSerializer(serializers.Serializer):
    reply = serializers.CharField(allow_blank=True)


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = PublicUserSerializer(read_only=True)
    project_title = serializers.CharField(source="project.title", read_only=True)
    criteria = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = [
            "id",
            "project",
            "project_title",
            "reviewer",
            "reviewee",
            "rating",
            "comment",
            "criteria",
            "reply",
            "replied_at",
            "is_verified",
            "verified_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_criteria(self, obj):
        return {name: getattr(obj, name) for name in Review.CRITERIA}
