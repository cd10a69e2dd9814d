from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class PaymentMethod(models.TextChoices):
    ONLINE = "ONLINE", "Online"
    COD = "COD", "Cash on delivery"
    PARTIAL = "PARTIAL", "Partial advance"


class PaymentStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    SUCCESS = "Success", "Success"
    PARTIAL = "Partial", "Partial"
    FAILED = "Failed", "Failed"


class OrderStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    PROCESSING = "Processing", "Processing"
    SHIPPED = "Shipped", "Shipped"
    DELIVERED = "Delivered", "Delivered"
    CANCELLED = "Cancelled", "Cancelled"


class StockState(models.TextChoices):
    HELD = "held", "Held"
    COMMITTED = "committed", "Committed"
    RELEASED = "released", "Released"


class Order(models.Model):
    buyer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")

    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    advance_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    remaining_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    payment_method = models.CharField(max_length=8, choices=PaymentMethod.choices)
    payment_txn_ref = models.CharField(max_length=64, unique=True, null=True, blank=True)
    gateway_txn_id = models.CharField(max_length=64, blank=True, default="")
    payment_status = models.CharField(
        max_length=12, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True
    )
    order_status = models.CharField(
        max_length=12, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True
    )
    delivery_payment_pending = models.BooleanField(default=False)
    stock_state = models.CharField(max_length=12, choices=StockState.choices, default=StockState.HELD)

    shipping_full_name = models.CharField(max_length=128)
    shipping_phone = models.CharField(max_length=20)
    shipping_address_line1 = models.CharField(max_length=128)
    shipping_address_line2 = models.CharField(max_length=128, blank=True, default="")
    shipping_city = models.CharField(max_length=64)
    shipping_state = models.CharField(max_length=64)
    shipping_postal_code = models.CharField(max_length=16)
    shipping_country = models.CharField(max_length=64)

    gateway_payload = models.JSONField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    @property
    def is_paid(self) -> bool:
        return self.payment_status in (PaymentStatus.SUCCESS, PaymentStatus.PARTIAL)

    def shipping_address(self) -> dict:
        return {
            "fullName": self.shipping_full_name,
            "phone": self.shipping_phone,
            "addressLine1": self.shipping_address_line1,
            "addressLine2": self.shipping_address_line2,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "postalCode": self.shipping_postal_code,
            "country": self.shipping_country,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "buyer": self.buyer_id,
            "lineItems": [item.to_dict() for item in self.line_items.all()],
            "totalAmount": str(self.total_amount),
            "advanceAmount": str(self.advance_amount),
            "remainingAmount": str(self.remaining_amount),
            "paymentMethod": self.payment_method,
            "paymentTxnRef": self.payment_txn_ref,
            "gatewayTxnId": self.gateway_txn_id,
            "paymentStatus": self.payment_status,
            "orderStatus": self.order_status,
            "deliveryPaymentPending": self.delivery_payment_pending,
            "shippingAddress": self.shipping_address(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __str__(self):
        return f"Order#{self.pk} {self.payment_method} ({self.payment_status}/{self.order_status})"


class OrderLineItem(models.Model):
    """Either a catalogue product, or an inline name + unit price."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="line_items")
    product = models.ForeignKey(
        "catalog.Product", on_delete=models.PROTECT, null=True, blank=True, related_name="order_lines"
    )
    product_name = models.CharField(max_length=200, null=True, blank=True)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        ordering = ("id",)

    def clean(self):
        has_inline = self.product_name is not None or self.unit_price is not None
        if self.product_id is not None and has_inline:
            raise ValidationError("A line item cannot have both a product and an inline name or price.")
        if self.product_id is None and (self.product_name is None or self.unit_price is None):
            raise ValidationError("A line item needs either a product or a product name and unit price.")

    def to_dict(self) -> dict:
        return {
            "productRef": self.product_id,
            "productName": self.product_name,
            "unitPrice": None if self.unit_price is None else str(self.unit_price),
            "quantity": self.quantity,
        }

    def __str__(self):
        label = self.product_name if self.product_id is None else f"product {self.product_id}"
        return f"{self.quantity} x {label}"
