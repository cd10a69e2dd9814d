from decimal import Decimal

from django.contrib.auth import get_user_model

from catalog.models import Product
from payments.hashing import response_hash
from payments.integrations.payu import PayUConfig

CONFIG = PayUConfig(
    merchant_key="testkey",
    merchant_salt="testsalt",
    base_url="https://test.payu.in",
    verify_url="https://test.payu.in/merchant/postservice.php?form=2",
    callback_base_url="https://api.example.com",
    frontend_url="https://shop.example.com",
    timeout=5,
)

ADDRESS = {
    "full_name": "Asha Verma",
    "phone": "9876543210",
    "address_line1": "12 MG Road",
    "address_line2": "",
    "city": "Pune",
    "state": "MH",
    "postal_code": "411001",
    "country": "India",
}


def make_user(username="asha", **extra):
    defaults = {"email": f"{username}@example.com", "first_name": "Asha", "last_name": "Verma"}
    defaults.update(extra)
    return get_user_model().objects.create_user(username=username, password="secret123", **defaults)


def make_product(stock=10, price="999.00", name="Smart Band"):
    return Product.objects.create(name=name, price=Decimal(price), stock=stock)


def callback_payload(order, status="success", amount=None, mihpayid="403993715531", **overrides):
    """A PayU callback body for ``order`` signed with the test credentials."""
    data = {
        "mihpayid": mihpayid,
        "status": status,
        "txnid": order.payment_txn_ref,
        "amount": amount or f"{order.advance_amount:.2f}",
        "productinfo": "Smart Band",
        "firstname": "Asha",
        "email": "asha@example.com",
    }
    data["hash"] = response_hash(
        CONFIG.merchant_salt, data["status"], data["email"], data["firstname"],
        data["productinfo"], data["amount"], data["txnid"], CONFIG.merchant_key,
    )
    data.update(overrides)
    return data
