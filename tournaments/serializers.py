from rest_framework import serializers

from .models import Tournament, Registration
from .state_machine import VALID_TRANSITIONS, get_allowed_transitions


# -----------------------------------------
# TOURNAMENT SERIALIZER
# -----------------------------------------
class TournamentSerializer(serializers.ModelSerializer):
    is_free = serializers.BooleanField(read_only=True)
    spots_left = serializers.SerializerMethodField()

    class Meta:
        model = Tournament
        fields = [
            "id",
            "name",
            "game",
            "description",
            "format",
            "entry_fee",
            "currency",
            "current_teams",
            "max_teams",
            "spots_left",
            "is_free",
            "status",
            "start_date",
            "created_at",
        ]
        read_only_fields = ["id", "current_teams", "created_at"]

    def get_spots_left(self, obj):
        return max(0, obj.max_teams - obj.current_teams)

    def validate_max_teams(self, value):
        if value < 1:
            raise serializers.ValidationError("max_teams must be at least 1")
        return value

    def validate_entry_fee(self, value):
        if value < 0:
            raise serializers.ValidationError("entry_fee cannot be negative")
        return value


# -----------------------------------------
# REGISTRATION SERIALIZERS
# -----------------------------------------
class RegistrationSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    tournament_name = serializers.CharField(source="tournament.name", read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Registration
        fields = [
            "id",
            "tournament",
            "tournament_name",
            "user",
            "username",
            "team_name",
            "team_members",
            "captain",
            "contact_email",
            "contact_phone",
            "payment_method",
            "transaction_id",
            "gateway_order_id",
            "agreed_to_terms",
            "status",
            "payment_status",
            "allowed_transitions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        return get_allowed_transitions(obj)


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=list(VALID_TRANSITIONS))
    expected = serializers.ChoiceField(choices=list(VALID_TRANSITIONS), required=False)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class SweepSerializer(serializers.Serializer):
    max_age_minutes = serializers.IntegerField(required=False, min_value=1)
