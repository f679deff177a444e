import time

import jwt
from django.db import OperationalError
from django.test import override_settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.test import APIRequestFactory, APITestCase
from rest_framework.views import APIView

from core.tests.fakes import make_user
from users.models import User

JWT_SECRET = "test-supabase-jwt-secret-with-enough-length"


class ErrorEnvelopeTests(APITestCase):
    def test_unauthenticated_request_is_wrapped(self):
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "unauthorized")
        self.assertIn("message", body)

    def test_not_found_is_wrapped(self):
        self.client.force_authenticate(make_user("someone"))
        resp = self.client.get("/api/projects/424242/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["error"], "not_found")

    def test_validation_errors_carry_details(self):
        resp = self.client.post("/api/moderation/check/", {"text": ""}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        body = resp.json()
        self.assertEqual(body["error"], "validation_error")
        self.assertIn("text", body["details"])

    def test_health_reports_storage_backend(self):
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.json()["db"])
        self.assertIn("storage", resp.json())

    def test_database_outage_is_an_upstream_failure(self):
        class BrokenView(APIView):
            permission_classes = [AllowAny]

            def get(self, request):
                raise OperationalError("could not connect to server")

        resp = BrokenView.as_view()(APIRequestFactory().get("/api/anything/"))
        self.assertEqual(resp.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(resp.data["error"], "upstream_failure")
        self.assertNotIn("could not connect", resp.data["message"])


@override_settings(SUPABASE_JWT_SECRET=JWT_SECRET)
class SupabaseAuthenticationTests(APITestCase):
    def _token(self, **claims):
        payload = {
            "sub": "uid-123",
            "email": "new.user@example.com",
            "aud": "authenticated",
            "exp": int(time.time()) + 3600,
            "user_metadata": {"role": "freelancer", "full_name": "New User"},
        }
        payload.update(claims)
        return jwt.encode(payload, JWT_SECRET, algorithm="HS256")

    def _me(self, token):
        return self.client.get("/api/auth/me/", HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_first_login_creates_local_user(self):
        resp = self._me(self._token())
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.json()["data"]
        self.assertEqual(data["email"], "new.user@example.com")
        self.assertEqual(data["role"], "freelancer")
        self.assertTrue(User.objects.filter(supabase_uid="uid-123").exists())

    def test_existing_account_is_linked_by_email(self):
        existing = make_user("old")
        existing.email = "new.user@example.com"
        existing.save(update_fields=["email"])

        resp = self._me(self._token())
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        existing.refresh_from_db()
        self.assertEqual(existing.supabase_uid, "uid-123")
        self.assertEqual(User.objects.filter(email__iexact="new.user@example.com").count(), 1)

    def test_admin_role_in_metadata_is_ignored(self):
        self._me(self._token(sub="uid-9", email="sneaky@example.com", user_metadata={"role": "admin"}))
        self.assertEqual(User.objects.get(supabase_uid="uid-9").role, User.ROLE_CLIENT)

    def test_expired_token_is_rejected(self):
        resp = self._me(self._token(exp=int(time.time()) - 60))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(resp.json()["error"], "unauthorized")
