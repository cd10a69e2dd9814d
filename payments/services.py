"""Order reconciliation: checkout, gateway callbacks and verification.

Every transition runs in one transaction with the order row locked, so
concurrent callbacks for the same txnid are applied one after another and
each sees the state the previous one left behind.

Stock for ONLINE/PARTIAL orders is held at checkout (decremented), committed
when payment is confirmed and released when it fails. ``Order.stock_state``
records which of those happened so no callback can adjust stock twice.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction

from catalog.services import find_product, release_stock, take_stock
from imistore.exceptions import (
    ConfigurationError,
    HashMismatchError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from .amounts import split_amount, to_money
from .hashing import verify_callback
from .integrations import payu
from .models import Order, OrderLineItem, OrderStatus, PaymentMethod, PaymentStatus, StockState
from .utils import gen_txn_id

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("full_name", "phone", "address_line1", "city", "state", "postal_code", "country")
SUCCESS_STATUSES = {"success"}
FAILURE_STATUSES = {"failure", "failed"}

# Fulfilment transitions an admin may make; gateway reconciliation is handled separately.
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


@dataclass(frozen=True)
class CheckoutItem:
    quantity: int = 1
    product_ref: Optional[str] = None
    product_name: Optional[str] = None
    unit_price: Optional[Decimal] = None


@dataclass
class CheckoutResult:
    order: Order
    payment_data: Optional[dict] = None


def _clean_address(address) -> dict:
    address = address or {}
    missing = [f for f in ADDRESS_FIELDS if not str(address.get(f) or "").strip()]
    if missing:
        raise ValidationError(
            "Shipping address is incomplete", errors={"shippingAddress": [f"{f} is required" for f in missing]}
        )
    return {f: str(address.get(f) or "").strip() for f in ADDRESS_FIELDS + ("address_line2",)}


def _resolve_method(payment_method) -> PaymentMethod:
    try:
        return PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError(f"Invalid payment method: {payment_method!r}")


def _buyer_name(buyer) -> str:
    return (buyer.get_full_name() or "").strip().split(" ")[0] or buyer.get_username()


@transaction.atomic
def checkout(buyer, items, payment_method, shipping_address, config=None) -> CheckoutResult:
    method = _resolve_method(payment_method)
    if not items:
        raise ValidationError("No products in order")
    address = _clean_address(shipping_address)
    if method != PaymentMethod.COD:
        config = config or payu.get_payu_config()

    lines = []
    total = Decimal("0")
    for item in items:
        if item.quantity is None or item.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if item.product_ref is not None:
            product = find_product(item.product_ref, for_update=True)
            if product.stock < item.quantity:
                raise InsufficientStockError(
                    f'Insufficient stock for "{product.name}". Available: {product.stock}'
                )
            lines.append((product, None, None, item.quantity))
            total += product.price * item.quantity
        else:
            if not item.product_name or item.unit_price is None:
                raise ValidationError("Each item needs a productRef or a productName and price")
            unit_price = to_money(item.unit_price)
            if unit_price < 0:
                raise ValidationError("Price cannot be negative")
            lines.append((None, item.product_name, unit_price, item.quantity))
            total += unit_price * item.quantity

    split = split_amount(total, method)
    if method != PaymentMethod.COD and split.charge_amount <= 0:
        raise ValidationError("Amount to pay online must be greater than zero")
    txnid = None if method == PaymentMethod.COD else gen_txn_id()

    order = Order(
        buyer=buyer,
        total_amount=to_money(total),
        advance_amount=split.advance_amount,
        remaining_amount=split.remaining_amount,
        payment_method=method,
        payment_txn_ref=txnid,
        payment_status=PaymentStatus.PENDING,
        order_status=OrderStatus.PROCESSING if method == PaymentMethod.COD else OrderStatus.PENDING,
        delivery_payment_pending=split.delivery_payment_pending,
        stock_state=StockState.COMMITTED if method == PaymentMethod.COD else StockState.HELD,
        shipping_full_name=address["full_name"],
        shipping_phone=address["phone"],
        shipping_address_line1=address["address_line1"],
        shipping_address_line2=address["address_line2"],
        shipping_city=address["city"],
        shipping_state=address["state"],
        shipping_postal_code=address["postal_code"],
        shipping_country=address["country"],
    )
    try:
        with transaction.atomic():
            order.save()
    except IntegrityError:
        logger.critical("Transaction reference collision for txnid=%s; refusing to reuse it", txnid)
        raise ConfigurationError("Could not allocate a unique transaction reference")

    for product, name, unit_price, quantity in lines:
        OrderLineItem.objects.create(
            order=order, product=product, product_name=name, unit_price=unit_price, quantity=quantity
        )
        if product is not None:
            take_stock(product.pk, quantity)

    payment_data = None
    if method != PaymentMethod.COD:
        productinfo = ", ".join(p.name if p is not None else n for p, n, _, _ in lines)[:100]
        payment_data = payu.build_payment_payload(
            config,
            txnid=txnid,
            amount=split.charge_amount,
            productinfo=productinfo,
            firstname=_buyer_name(buyer),
            email=buyer.email or "",
            phone=address["phone"],
        )
        payment_data["orderId"] = order.pk

    logger.info(
        "Created %s order %s txnid=%s total=%s charge=%s",
        method, order.pk, txnid, order.total_amount, split.charge_amount,
    )
    return CheckoutResult(order=order, payment_data=payment_data)


def _commit_stock(order: Order) -> None:
    if order.stock_state == StockState.HELD:
        order.stock_state = StockState.COMMITTED
        return
    if order.stock_state == StockState.RELEASED:
        # A confirmed payment arrived after the hold was given back.
        for item in order.line_items.filter(product__isnull=False):
            try:
                take_stock(item.product_id, item.quantity)
            except InsufficientStockError:
                logger.error(
                    "Stock shortfall re-taking product %s for paid order %s txnid=%s; needs manual review",
                    item.product_id, order.pk, order.payment_txn_ref,
                )
        order.stock_state = StockState.COMMITTED


def _release_stock(order: Order) -> None:
    if order.stock_state in (StockState.HELD, StockState.COMMITTED):
        for item in order.line_items.filter(product__isnull=False):
            release_stock(item.product_id, item.quantity)
        order.stock_state = StockState.RELEASED


def _apply_success(order: Order, gateway_txn_id: str, payload: dict) -> Order:
    if order.is_paid:
        logger.info("Order %s txnid=%s already paid; ignoring repeat success", order.pk, order.payment_txn_ref)
        return order
    gateway_failed = order.payment_status == PaymentStatus.FAILED
    if gateway_failed:
        logger.warning(
            "Conflicting gateway status for txnid=%s: success after failure, honouring the latest",
            order.payment_txn_ref,
        )
    order.payment_status = (
        PaymentStatus.PARTIAL if order.payment_method == PaymentMethod.PARTIAL else PaymentStatus.SUCCESS
    )
    if order.order_status == OrderStatus.CANCELLED and not gateway_failed:
        # Cancelled by an admin: keep it cancelled, the payment has to be refunded.
        logger.error(
            "Payment received for cancelled order %s txnid=%s; needs refund", order.pk, order.payment_txn_ref
        )
    else:
        if order.order_status in (OrderStatus.PENDING, OrderStatus.CANCELLED):
            order.order_status = OrderStatus.PROCESSING
        _commit_stock(order)
    if gateway_txn_id:
        order.gateway_txn_id = gateway_txn_id
    order.gateway_payload = payload
    order.save()
    logger.info("Order %s txnid=%s marked %s", order.pk, order.payment_txn_ref, order.payment_status)
    return order


def _apply_failure(order: Order, payload: dict, confirmed: bool) -> Order:
    if order.payment_status == PaymentStatus.FAILED:
        return order
    if order.order_status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
        # The goods have left; cancelling would put them back into stock.
        logger.error(
            "Ignoring failure notice for %s order %s txnid=%s; needs manual review",
            order.order_status, order.pk, order.payment_txn_ref,
        )
        return order
    if order.is_paid:
        if not confirmed:
            logger.warning(
                "Ignoring unverified failure notice for paid order %s txnid=%s", order.pk, order.payment_txn_ref
            )
            return order
        logger.warning(
            "Conflicting gateway status for txnid=%s: failure after success, honouring the latest",
            order.payment_txn_ref,
        )
    order.payment_status = PaymentStatus.FAILED
    order.order_status = OrderStatus.CANCELLED
    _release_stock(order)
    order.gateway_payload = payload
    order.save()
    logger.info("Order %s txnid=%s marked Failed", order.pk, order.payment_txn_ref)
    return order


def _locked_order(txnid) -> Optional[Order]:
    return Order.objects.select_for_update().filter(payment_txn_ref=txnid).first()


def _callback_hash_ok(config, payload: dict) -> bool:
    return verify_callback(
        payload.get("hash"),
        salt=config.merchant_salt,
        status=payload.get("status", ""),
        email=payload.get("email", ""),
        firstname=payload.get("firstname", ""),
        productinfo=payload.get("productinfo", ""),
        amount=payload.get("amount", ""),
        txnid=payload.get("txnid", ""),
        key=config.merchant_key,
    )


def confirm_success(payload: dict, config=None) -> Order:
    """Apply PayU's success callback (``surl``)."""
    config = config or payu.get_payu_config()
    txnid = (payload.get("txnid") or "").strip()
    if not txnid:
        raise ValidationError("txnid missing")

    with transaction.atomic():
        order = _locked_order(txnid)
        if order is None:
            logger.error("Order not found for txnid=%s", txnid)
            raise NotFoundError("Order not found")
        if not _callback_hash_ok(config, payload):
            logger.warning("Hash mismatch on success callback for txnid=%s; possible tampering", txnid)
            raise HashMismatchError()

        status = (payload.get("status") or "").strip().lower()
        if status in SUCCESS_STATUSES:
            return _apply_success(order, payload.get("mihpayid", ""), payload)
        logger.warning("Success callback for txnid=%s carried status=%r; treating as failure", txnid, status)
        return _apply_failure(order, payload, confirmed=True)


def record_failure(payload: dict, config=None) -> Optional[Order]:
    """Apply PayU's failure callback (``furl``); unknown txnids are a no-op."""
    txnid = (payload.get("txnid") or "").strip()
    logger.warning("Payment failed for txnid=%s status=%s", txnid, payload.get("status"))
    if not txnid:
        return None

    with transaction.atomic():
        order = _locked_order(txnid)
        if order is None:
            logger.info("Failure notice for unknown txnid=%s ignored", txnid)
            return None
        confirmed = False
        if payload.get("hash"):
            if config is None:
                try:
                    config = payu.get_payu_config()
                except ConfigurationError:
                    logger.error("Cannot check failure hash for txnid=%s; treating notice as unverified", txnid)
                    return _apply_failure(order, payload, confirmed=False)
            if not _callback_hash_ok(config, payload):
                logger.warning("Hash mismatch on failure callback for txnid=%s; possible tampering", txnid)
                return order
            confirmed = True
        return _apply_failure(order, payload, confirmed=confirmed)


def verify_transaction(txnid, buyer=None, config=None):
    """Reconcile ``txnid`` against PayU's verification API.

    Returns ``(order, gateway_response)``. A ``buyer`` who is not staff may
    only verify their own orders.
    """
    config = config or payu.get_payu_config()
    qs = Order.objects.filter(payment_txn_ref=txnid)
    if buyer is not None and not buyer.is_staff:
        qs = qs.filter(buyer=buyer)
    if not txnid or not qs.exists():
        raise NotFoundError("Order not found")

    response = payu.verify_payment(config, txnid)
    status = payu.transaction_status(response, txnid)
    details = payu.transaction_details(response, txnid)

    with transaction.atomic():
        order = _locked_order(txnid)
        if status in SUCCESS_STATUSES:
            order = _apply_success(order, str(details.get("mihpayid") or ""), response)
        elif status in FAILURE_STATUSES:
            order = _apply_failure(order, response, confirmed=True)
        else:
            logger.info("Verification for txnid=%s returned status=%r; no change", txnid, status or None)
    return order, response


@transaction.atomic
def update_order_status(order_id, new_status) -> Order:
    """Move an order along the fulfilment path (admin action)."""
    try:
        new_status = OrderStatus(new_status)
    except ValueError:
        raise ValidationError(f"Invalid order status: {new_status!r}")
    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    current = OrderStatus(order.order_status)
    if new_status == current:
        return order
    if new_status not in ORDER_TRANSITIONS[current]:
        raise ValidationError(f"Cannot move order from {current.value} to {new_status.value}")
    if new_status == OrderStatus.CANCELLED:
        _release_stock(order)
    order.order_status = new_status
    order.save()
    logger.info("Order %s moved %s -> %s", order.pk, current.value, new_status.value)
    return order


def orders_for(buyer):
    return Order.objects.filter(buyer=buyer).prefetch_related("line_items")
