from django.urls import path
from .views import CreateOrderView, VerifyPaymentView, PaymentFailedView

urlpatterns = [
    path("create-order/", CreateOrderView.as_view(), name="payment-create-order"),
    path("verify/", VerifyPaymentView.as_view(), name="payment-verify"),
    path("failed/", PaymentFailedView.as_view(), name="payment-failed"),
]
