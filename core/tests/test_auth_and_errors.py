# core/tests/test_auth_and_errors.py
import time
import uuid

import jwt
from django.test import TestCase, override_settings
from rest_framework.test import APIClient
from rest_framework import status

from users.models import PlayerProfile, User

SECRET = "supabase-test-secret"


def supabase_token(email, secret=SECRET, expires_in=3600, sub="0b9f2e1c-aaaa-bbbb-cccc-000000000001"):
    now = int(time.time())
    payload = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@override_settings(SUPABASE_JWT_SECRET=SECRET)
class SupabaseAuthTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_first_login_creates_user_and_profile(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {supabase_token('newplayer@example.com')}")
        resp = self.client.get("/api/auth/me/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["email"], "newplayer@example.com")

        user = User.objects.get(email="newplayer@example.com")
        self.assertEqual(user.username, "newplayer")
        self.assertFalse(user.has_usable_password())
        self.assertTrue(PlayerProfile.objects.filter(user=user).exists())

    def test_existing_user_matched_by_email(self):
        existing = User.objects.create_user(username="known", password="pass", email="Known@example.com")

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {supabase_token('known@example.com')}")
        resp = self.client.get("/api/auth/me/")

        self.assertEqual(resp.json()["id"], existing.id)
        self.assertEqual(User.objects.count(), 1)

    def test_username_collision_gets_suffix(self):
        User.objects.create_user(username="dup", password="pass", email="other@example.com")

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {supabase_token('dup@example.com')}")
        self.client.get("/api/auth/me/")

        self.assertTrue(User.objects.filter(username="dup_1", email="dup@example.com").exists())

    def test_expired_token(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {supabase_token('late@example.com', expires_in=-60)}")
        resp = self.client.get("/api/auth/me/")

        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(User.objects.filter(email="late@example.com").exists())

    def test_foreign_token_falls_through_and_is_rejected(self):
        token = supabase_token("forged@example.com", secret="someone-else")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        resp = self.client.get("/api/auth/me/")

        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(User.objects.filter(email="forged@example.com").exists())


class ErrorEnvelopeTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="errs", password="pass")
        self.client.force_authenticate(user=self.user)

    def test_domain_error_has_code_and_detail(self):
        resp = self.client.get(f"/api/tournaments/registrations/{uuid.uuid4()}/")

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["status_code"], 404)
        self.assertEqual(body["errors"]["code"], "not_found")

    def test_validation_error_is_wrapped(self):
        resp = self.client.post("/api/payments/create-order/", {"registration_id": "nope"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertIn("registration_id", body["errors"])


class HealthCheckTestCase(TestCase):
    @override_settings(RAZORPAY_KEY_ID="", RAZORPAY_KEY_SECRET="")
    def test_health(self):
        resp = APIClient().get("/api/health/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.json()
        self.assertEqual(data["status"], "ok")
        self.assertTrue(data["db"])
        self.assertFalse(data["payments_configured"])
