from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'role',
            'phone',
            'bio',
            'avatar_url',
            'city',
            'rating',
            'reviews_count',
            'completed_projects',
            'date_joined',
        ]
        read_only_fields = ['rating', 'reviews_count', 'completed_projects', 'date_joined']


class PublicUserSerializer(serializers.ModelSerializer):
    """Embedded in projects, bids, reviews and messages."""

    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'avatar_url', 'rating', 'reviews_count']


class UpdateProfileSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False)
    avatarUrl = serializers.CharField(source='avatar_url', required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'phone', 'bio', 'avatar_url', 'avatarUrl', 'city', 'role', 'password']
        extra_kwargs = {'avatar_url': {'required': False}}

    def validate_role(self, value):
        # Admin role is granted through the admin site only
        if value == User.ROLE_ADMIN:
            raise serializers.ValidationError("Role must be client or freelancer.")
        return value

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance
