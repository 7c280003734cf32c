from rest_framework import serializers


class CreateOrderSerializer(serializers.Serializer):
    registration_id = serializers.UUIDField()


class VerifyPaymentSerializer(serializers.Serializer):
    razorpay_payment_id = serializers.CharField(max_length=255)
    razorpay_order_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    razorpay_signature = serializers.CharField(max_length=512, required=False, allow_blank=True)
    registration_id = serializers.UUIDField(required=False, allow_null=True)


class PaymentFailedSerializer(serializers.Serializer):
    registration_id = serializers.UUIDField()
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)
