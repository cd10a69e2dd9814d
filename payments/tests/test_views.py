import json
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from django.test import TestCase, override_settings

from imistore.auth import issue_access_token
from imistore.exceptions import GatewayUnavailableError
from payments import services
from payments.models import Order, OrderStatus, PaymentStatus
from payments.services import CheckoutItem
from .helpers import ADDRESS, CONFIG, callback_payload, make_product, make_user

SHIPPING = {
    "fullName": "Asha Verma",
    "phone": "9876543210",
    "addressLine1": "12 MG Road",
    "city": "Pune",
    "state": "MH",
    "postalCode": "411001",
    "country": "India",
}


class CheckoutViewTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product(stock=5, price="999.00")
        self.client.force_login(self.user)

    def _post(self, body, **extra):
        return self.client.post("/api/checkout", data=json.dumps(body), content_type="application/json", **extra)

    def _body(self, **overrides):
        body = {
            "productRef": self.product.pk,
            "quantity": 2,
            "paymentMethod": "ONLINE",
            "shippingAddress": SHIPPING,
        }
        body.update(overrides)
        return body

    def test_online_checkout_returns_gateway_payload(self):
        resp = self._post(self._body())
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["order"]["paymentStatus"], "Pending")
        self.assertEqual(data["order"]["orderStatus"], "Pending")
        self.assertEqual(data["order"]["totalAmount"], "1998.00")
        self.assertEqual(data["order"]["shippingAddress"]["city"], "Pune")
        self.assertEqual(data["paymentData"]["amount"], "1998.00")
        self.assertEqual(data["paymentData"]["action"], "https://test.payu.in/_payment")
        self.assertEqual(data["paymentData"]["txnid"], data["order"]["paymentTxnRef"])

    def test_cod_checkout_has_no_payload(self):
        resp = self._post(self._body(paymentMethod="COD"))
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertIsNone(data["paymentData"])
        self.assertTrue(data["order"]["deliveryPaymentPending"])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)

    def test_inline_product_partial(self):
        body = self._body(paymentMethod="PARTIAL", productName="Custom Ring", price=199.99, quantity=1)
        del body["productRef"]
        resp = self._post(body)
        self.assertEqual(resp.status_code, 201)
        order = resp.json()["order"]
        self.assertEqual(order["advanceAmount"], "100.00")
        self.assertEqual(order["remainingAmount"], "99.99")
        self.assertEqual(order["lineItems"][0]["productName"], "Custom Ring")

    def test_missing_address(self):
        body = self._body()
        del body["shippingAddress"]
        resp = self._post(body)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "shippingAddress is required")

    def test_incomplete_address(self):
        resp = self._post(self._body(shippingAddress=dict(SHIPPING, postalCode="")))
        self.assertEqual(resp.status_code, 400)
        self.assertIn("postal_code", resp.json()["errors"])

    def test_unknown_payment_method(self):
        resp = self._post(self._body(paymentMethod="online_later"))
        self.assertEqual(resp.status_code, 400)
        self.assertIn("payment_method", resp.json()["errors"])

    def test_ref_and_inline_together_rejected(self):
        resp = self._post(self._body(productName="Other", price=5))
        self.assertEqual(resp.status_code, 400)

    def test_unknown_product(self):
        resp = self._post(self._body(productRef=9999))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "Product not found: 9999")

    def test_insufficient_stock(self):
        resp = self._post(self._body(quantity=6))
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Available: 5", resp.json()["message"])

    def test_invalid_json(self):
        resp = self.client.post("/api/checkout", data="{not json", content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_requires_authentication(self):
        self.client.logout()
        resp = self._post(self._body())
        self.assertEqual(resp.status_code, 401)

    def test_bearer_token_accepted(self):
        self.client.logout()
        token = issue_access_token(self.user)
        resp = self._post(self._body(), HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Order.objects.get().buyer, self.user)


class CallbackViewTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product(stock=5)
        self.order = services.checkout(
            self.user, [CheckoutItem(product_ref=str(self.product.pk))], "ONLINE", ADDRESS, config=CONFIG
        ).order

    def test_success_redirects_to_frontend(self):
        resp = self.client.post("/api/payment/success", callback_payload(self.order))
        self.assertEqual(resp.status_code, 302)
        location = urlparse(resp["Location"])
        self.assertEqual(f"{location.scheme}://{location.netloc}{location.path}", "https://shop.example.com/payment/success")
        self.assertEqual(
            parse_qs(location.query),
            {"txnid": [self.order.payment_txn_ref], "mihpayid": ["403993715531"]},
        )
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.SUCCESS)

    def test_success_hash_mismatch_is_400(self):
        payload = callback_payload(self.order, status="success")
        payload["firstname"] = "Mallory"
        with self.assertLogs("payments.services", level="WARNING"):
            resp = self.client.post("/api/payment/success", payload)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("hash mismatch", resp.json()["message"])
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)

    def test_success_unknown_order_is_404(self):
        payload = callback_payload(self.order, txnid="TXN_nope")
        with self.assertLogs("payments.services", level="ERROR"):
            resp = self.client.post("/api/payment/success", payload)
        self.assertEqual(resp.status_code, 404)

    def test_failure_redirects_and_cancels(self):
        resp = self.client.post("/api/payment/failure", {"txnid": self.order.payment_txn_ref, "status": "failure"})
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(
            resp["Location"], f"https://shop.example.com/payment/failure?txnid={self.order.payment_txn_ref}"
        )
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.FAILED)
        self.assertEqual(self.order.order_status, OrderStatus.CANCELLED)

    def test_failure_for_unknown_txnid_still_redirects(self):
        resp = self.client.post("/api/payment/failure", {"txnid": "TXN_unknown", "status": "failure"})
        self.assertEqual(resp.status_code, 302)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)

    def test_callbacks_reject_get(self):
        self.assertEqual(self.client.get("/api/payment/success").status_code, 405)

    def test_failed_status_on_success_url_goes_to_failure_page(self):
        resp = self.client.post("/api/payment/success", callback_payload(self.order, status="failure"))
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(
            resp["Location"], f"https://shop.example.com/payment/failure?txnid={self.order.payment_txn_ref}"
        )
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.FAILED)

    def test_failure_redirects_without_gateway_credentials(self):
        with override_settings(PAYU={"FRONTEND_URL": "https://shop.example.com/"}):
            with self.assertLogs("payments.integrations.payu", level="ERROR"):
                resp = self.client.post(
                    "/api/payment/failure", {"txnid": self.order.payment_txn_ref, "status": "failure"}
                )
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(
            resp["Location"], f"https://shop.example.com/payment/failure?txnid={self.order.payment_txn_ref}"
        )


class VerifyViewTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product(stock=5)
        self.order = services.checkout(
            self.user, [CheckoutItem(product_ref=str(self.product.pk))], "ONLINE", ADDRESS, config=CONFIG
        ).order
        self.client.force_login(self.user)

    def _post(self, body):
        return self.client.post("/api/payment/verify", data=json.dumps(body), content_type="application/json")

    def test_verify_updates_order(self):
        gateway = {
            "status": 1,
            "transaction_details": {self.order.payment_txn_ref: {"status": "success", "mihpayid": "55"}},
        }
        with patch("payments.services.payu.verify_payment", return_value=gateway):
            resp = self._post({"txnid": self.order.payment_txn_ref})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["order"]["paymentStatus"], "Success")
        self.assertEqual(data["gatewayResponse"], gateway)

    def test_gateway_unavailable_is_502(self):
        with patch("payments.services.payu.verify_payment", side_effect=GatewayUnavailableError("Gateway request failed")):
            resp = self._post({"txnid": self.order.payment_txn_ref})
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["message"], "Gateway request failed")

    def test_unknown_txnid_is_404(self):
        resp = self._post({"txnid": "TXN_missing"})
        self.assertEqual(resp.status_code, 404)

    def test_missing_txnid_is_400(self):
        resp = self._post({})
        self.assertEqual(resp.status_code, 400)


class OrderViewsTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product(stock=5)
        self.order = services.checkout(
            self.user, [CheckoutItem(product_ref=str(self.product.pk))], "COD", ADDRESS
        ).order

    def test_my_orders_lists_only_own(self):
        other = make_user("ravi")
        services.checkout(other, [CheckoutItem(product_ref=str(self.product.pk))], "COD", ADDRESS)
        self.client.force_login(self.user)
        resp = self.client.get("/api/orders/my")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([o["id"] for o in resp.json()["orders"]], [self.order.pk])

    def test_status_update_requires_staff(self):
        self.client.force_login(self.user)
        resp = self.client.post(
            f"/api/orders/{self.order.pk}/status", data=json.dumps({"status": "Shipped"}), content_type="application/json"
        )
        self.assertEqual(resp.status_code, 403)

    def test_staff_can_ship(self):
        self.client.force_login(make_user("admin", is_staff=True))
        url = f"/api/orders/{self.order.pk}/status"
        resp = self.client.post(url, data=json.dumps({"status": "Shipped"}), content_type="application/json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["order"]["orderStatus"], "Shipped")

        resp = self.client.post(url, data=json.dumps({"status": "Pending"}), content_type="application/json")
        self.assertEqual(resp.status_code, 400)
