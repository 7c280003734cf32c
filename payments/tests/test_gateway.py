import hashlib
import hmac
from unittest.mock import Mock

import requests
from django.test import SimpleTestCase, override_settings

from core.exceptions import PaymentProviderError
from payments.gateway import RazorpayGateway


def fake_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload if payload is not None else {}
    response.text = str(payload)
    return response


class RazorpayGatewayTestCase(SimpleTestCase):
    def setUp(self):
        self.session = Mock()
        self.gateway = RazorpayGateway("rzp_test_key", "secret", base_url="https://api.example.test/v1/", session=self.session)

    def test_create_order_posts_amount_in_minor_units(self):
        self.session.request.return_value = fake_response(200, {"id": "order_1", "amount": 14950, "currency": "INR"})

        order = self.gateway.create_order(14950, currency="INR", receipt="reg_abc", notes={"k": "v"})

        self.assertEqual(order["id"], "order_1")
        method, url = self.session.request.call_args[0]
        kwargs = self.session.request.call_args[1]
        self.assertEqual(method, "POST")
        self.assertEqual(url, "https://api.example.test/v1/orders")
        self.assertEqual(kwargs["auth"], ("rzp_test_key", "secret"))
        self.assertEqual(kwargs["json"], {"amount": 14950, "currency": "INR", "receipt": "reg_abc", "notes": {"k": "v"}})
        self.assertEqual(kwargs["timeout"], 10)

    def test_fetch_payment(self):
        self.session.request.return_value = fake_response(200, {"id": "pay_1", "status": "captured"})

        payment = self.gateway.fetch_payment("pay_1")

        self.assertEqual(payment["status"], "captured")
        self.assertEqual(self.session.request.call_args[0], ("GET", "https://api.example.test/v1/payments/pay_1"))

    def test_error_response_raises_with_provider_message(self):
        self.session.request.return_value = fake_response(
            400, {"error": {"code": "BAD_REQUEST_ERROR", "description": "The amount must be at least INR 1.00"}}
        )

        with self.assertRaises(PaymentProviderError) as ctx:
            self.gateway.create_order(10)
        self.assertIn("at least INR 1.00", str(ctx.exception.detail))

    def test_network_error_raises(self):
        self.session.request.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(PaymentProviderError):
            self.gateway.fetch_payment("pay_1")

    def test_unconfigured_gateway_never_calls_out(self):
        gateway = RazorpayGateway("", "", session=self.session)

        with self.assertRaises(PaymentProviderError):
            gateway.create_order(100)
        self.session.request.assert_not_called()

    def test_verify_signature(self):
        signature = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()

        self.assertTrue(self.gateway.verify_signature("order_1", "pay_1", signature))
        self.assertFalse(self.gateway.verify_signature("order_1", "pay_2", signature))
        self.assertFalse(self.gateway.verify_signature("order_1", "pay_1", "deadbeef"))
        self.assertFalse(self.gateway.verify_signature("order_1", "pay_1", ""))

    @override_settings(
        RAZORPAY_KEY_ID="rzp_live_x",
        RAZORPAY_KEY_SECRET="s3cret",
        RAZORPAY_BASE_URL="https://api.razorpay.com/v1",
        RAZORPAY_TIMEOUT=5.0,
    )
    def test_from_settings(self):
        gateway = RazorpayGateway.from_settings()

        self.assertTrue(gateway.is_configured)
        self.assertEqual(gateway.key_id, "rzp_live_x")
        self.assertEqual(gateway.timeout, 5.0)
