# core/supabase_auth.py
# Custom DRF authentication class to verify Supabase JWTs

import logging
import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from users.services import ensure_player_profile

logger = logging.getLogger("cos")

User = get_user_model()


class SupabaseJWTAuthentication(BaseAuthentication):
    """
    Validates access tokens issued by the hosted Supabase auth service.

    This authenticator:
    1. Extracts the JWT from the Authorization header
    2. Verifies the token signature using the Supabase JWT secret
    3. Maps the token's email claim to a local auth record (creating the
       user and its player profile on first sight)

    Tokens it cannot verify are left to the next backend (SimpleJWT).
    """

    def authenticate(self, request):
        auth_header = request.headers.get("Authorization", "")

        if not auth_header.startswith("Bearer "):
            return None  # Let other auth backends handle it

        secret = getattr(settings, "SUPABASE_JWT_SECRET", "")
        if not secret:
            return None

        token = auth_header.split(" ", 1)[1]

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
            return None  # Let other auth backends try

        if not payload.get("sub"):
            raise AuthenticationFailed("Invalid token: missing user ID")

        user = self._get_or_create_user(payload.get("email"))
        return (user, payload)

    def authenticate_header(self, request):
        return 'Bearer realm="api"'

    @transaction.atomic
    def _get_or_create_user(self, email: str):
        """
        Email is the join key between the hosted auth service and local
        auth records.
        """
        if not email:
            raise AuthenticationFailed("Token missing email claim")

        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            base_username = email.split("@")[0]
            username = base_username
            counter = 1
            while User.objects.filter(username=username).exists():
                username = f"{base_username}_{counter}"
                counter += 1

            user = User.objects.create(username=username, email=email)
            user.set_unusable_password()
            user.save(update_fields=["password"])
            logger.info(f"Created new user from Supabase: {email}")

        ensure_player_profile(user)
        return user
