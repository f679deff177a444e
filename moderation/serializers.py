from rest_framework import serializers


class ModerationOptionsSerializer(serializers.Serializer):
    strict = serializers.BooleanField(required=False, default=False)
    mask = serializers.BooleanField(required=False, default=False)
    returnStats = serializers.BooleanField(source="return_stats", required=False, default=False)


class ModerationCheckSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=20000, trim_whitespace=False)
    options = ModerationOptionsSerializer(required=False)


class DecisionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)
