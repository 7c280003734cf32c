# users/views.py - Player profile API

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.views import APIView

from .models import PlayerProfile
from .serializers import PlayerProfileSerializer
from .services import ensure_player_profile


class ProfileViewSet(viewsets.GenericViewSet):
    """
    API for managing the caller's player profile
    """
    permission_classes = [IsAuthenticated]
    serializer_class = PlayerProfileSerializer

    def get_object(self):
        return ensure_player_profile(self.request.user)

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        """
        GET /api/users/profile/me/
        PATCH /api/users/profile/me/
        Body: {"username", "display_name", "email", "game_ids"}
        """
        profile = self.get_object()
        if request.method == "GET":
            return Response(self.get_serializer(profile).data)

        serializer = self.get_serializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class UsernameCheckView(APIView):
    """
    GET /api/users/username-check/?username=<name>
    """
    permission_classes = [AllowAny]

    def get(self, request):
        username = (request.query_params.get("username") or "").strip()
        if len(username) < 3:
            return Response({"username": username, "available": False, "reason": "too_short"})

        taken = PlayerProfile.objects.filter(username__iexact=username)
        if request.user.is_authenticated:
            taken = taken.exclude(user=request.user)

        return Response({"username": username, "available": not taken.exists()})
