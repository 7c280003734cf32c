from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework import status

from core.permissions import IsAdminOrReadOnly
from tournaments.models import Tournament
from tournaments.serializers import TournamentSerializer
from tournaments.services import get_tournament


class TournamentListCreateView(APIView):
    """
    GET  /api/tournaments/?status=upcoming&game=valorant
    POST /api/tournaments/   (admin)
    """
    permission_classes = [IsAdminOrReadOnly]

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return super().get_permissions()

    def get(self, request):
        qs = Tournament.objects.all()

        status_param = request.query_params.get("status")
        if status_param:
            qs = qs.filter(status=status_param)

        game = request.query_params.get("game")
        if game:
            qs = qs.filter(game__iexact=game)

        return Response(TournamentSerializer(qs, many=True).data)

    def post(self, request):
        serializer = TournamentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tournament = serializer.save(created_by=request.user)
        return Response(TournamentSerializer(tournament).data, status=status.HTTP_201_CREATED)


class TournamentDetailView(APIView):
    """
    GET   /api/tournaments/<id>/
    PATCH /api/tournaments/<id>/   (admin; counters are read-only)
    """
    permission_classes = [IsAdminOrReadOnly]

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return super().get_permissions()

    def get(self, request, tournament_id):
        return Response(TournamentSerializer(get_tournament(tournament_id)).data)

    def patch(self, request, tournament_id):
        tournament = get_tournament(tournament_id)
        serializer = TournamentSerializer(tournament, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        # Column-scoped UPDATE so a concurrent F() increment of current_teams is not overwritten
        if serializer.validated_data:
            Tournament.objects.filter(pk=tournament.pk).update(**serializer.validated_data)
        tournament.refresh_from_db()
        return Response(TournamentSerializer(tournament).data)
