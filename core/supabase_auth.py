# core/supabase_auth.py
# Custom DRF authentication class to verify Supabase JWTs

import logging

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger("market.auth")

User = get_user_model()


class SupabaseJWTAuthentication(BaseAuthentication):
    """
    Custom authentication class that validates Supabase JWTs.

    This authenticator:
    1. Extracts the JWT from the Authorization header
    2. Verifies the token signature using the Supabase JWT secret
    3. Maps the Supabase user onto a local user (by supabase_uid, then email),
       creating one on first sight
    """

    www_authenticate_realm = "api"

    def authenticate_header(self, request):
        return f'Bearer realm="{self.www_authenticate_realm}"'

    def authenticate(self, request):
        auth_header = request.headers.get("Authorization", "")

        if not auth_header.startswith("Bearer "):
            return None  # Let other auth backends handle it

        token = auth_header.split(" ", 1)[1].strip()

        secret = settings.SUPABASE_JWT_SECRET
        if not secret:
            return None

        try:
            # Supabase uses HS256 by default
            payload = jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid Supabase token: {e}")
            return None  # Let other auth backends try (SimpleJWT)

        supabase_uid = payload.get("sub")
        if not supabase_uid:
            raise AuthenticationFailed("Invalid token: missing user ID")

        user = self._get_or_create_user(supabase_uid, payload.get("email"), payload)
        if not user.is_active:
            raise AuthenticationFailed("User account is disabled")

        return (user, payload)

    def _get_or_create_user(self, supabase_uid: str, email: str, payload: dict):
        user = User.objects.filter(supabase_uid=supabase_uid).first()
        if user:
            return user

        if not email:
            raise AuthenticationFailed("Token missing email claim")

        user = User.objects.filter(email__iexact=email).first()
        if user:
            # First Supabase login for an account created locally
            user.supabase_uid = supabase_uid
            user.save(update_fields=["supabase_uid"])
            return user

        metadata = payload.get("user_metadata") or {}
        role = metadata.get("role")
        if role not in (User.ROLE_CLIENT, User.ROLE_FREELANCER):
            role = User.ROLE_CLIENT

        username = email.split("@")[0]
        # Ensure unique username
        base_username = username
        counter = 1
        while User.objects.filter(username=username).exists():
            username = f"{base_username}_{counter}"
            counter += 1

        user = User.objects.create(
            username=username,
            email=email,
            supabase_uid=supabase_uid,
            role=role,
            first_name=metadata.get("full_name", "")[:150],
        )
        logger.info(f"Created new user from Supabase: {email}")
        return user
