from rest_framework import serializers
from .models import PlayerProfile


class PlayerProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    auth_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = PlayerProfile
        fields = [
            "user_id",
            "username",
            "display_name",
            "role",
            "email",
            "auth_email",
            "game_ids",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["user_id", "role", "auth_email", "created_at", "updated_at"]

    def validate_username(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError("Username must be at least 3 characters")
        qs = PlayerProfile.objects.filter(username__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Username is already taken")
        return value

    def validate_game_ids(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("game_ids must be an object")
        return value
