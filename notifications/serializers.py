from rest_framework import serializers

from .models import NotificationLogEntry


class NotificationLogEntrySerializer(serializers.ModelSerializer):
    tournament_name = serializers.CharField(source="tournament.name", read_only=True, default=None)

    class Meta:
        model = NotificationLogEntry
        fields = [
            "id",
            "subject",
            "body",
            "kind",
            "tournament",
            "tournament_name",
            "registration",
            "status",
            "sent_at",
        ]
        read_only_fields = fields


class SendCredentialsSerializer(serializers.Serializer):
    registration_id = serializers.UUIDField(required=False)
    tournament_id = serializers.IntegerField(required=False, min_value=1)
    to_email = serializers.EmailField(required=False, allow_blank=True)
    subject = serializers.CharField(required=False, allow_blank=True, max_length=255)
    message = serializers.CharField(required=False, allow_blank=True)
    force = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get("registration_id") and not attrs.get("tournament_id"):
            raise serializers.ValidationError("registration_id or tournament_id is required")
        return attrs


class BulkSendCredentialsSerializer(serializers.Serializer):
    tournament_id = serializers.IntegerField(required=False, min_value=1)
    registration_ids = serializers.ListField(child=serializers.UUIDField(), required=False, allow_empty=True)
    subject = serializers.CharField(required=False, allow_blank=True, max_length=255)
    message = serializers.CharField(required=False, allow_blank=True)
    # "paid", or ["paid", "confirmed"]
    status_filter = serializers.JSONField(required=False)

    def validate_status_filter(self, value):
        if value in (None, ""):
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return value
        raise serializers.ValidationError("status_filter must be a string or a list of strings")

    def validate(self, attrs):
        if not attrs.get("tournament_id") and not attrs.get("registration_ids"):
            raise serializers.ValidationError("tournament_id or registration_ids is required")
        return attrs
