from rest_framework import serializers

from users.serializers import PublicUserSerializer

from .models import Message


class MessageSerializer(serializers.ModelSerializer):
    sender = PublicUserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id", "room", "bid", "sender", "receiver", "type", "content",
            "attachment_url", "reactions", "is_read", "created_at",
        ]
        read_only_fields = fields


class MessageInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[c[0] for c in Message.TYPE_CHOICES], default=Message.TYPE_TEXT)
    content = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)
    attachmentUrl = serializers.CharField(source="attachment_url", required=False, allow_blank=True, default="")


class ReactionInputSerializer(serializers.Serializer):
    emoji = serializers.CharField(max_length=16)
