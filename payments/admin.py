from django.contrib import admin
from .models import Order, OrderLineItem


class OrderLineItemInline(admin.TabularInline):
    model = OrderLineItem
    extra = 0
    raw_id_fields = ("product",)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "buyer", "payment_method", "payment_status", "order_status", "total_amount", "created_at")
    search_fields = ("payment_txn_ref", "gateway_txn_id", "buyer__email", "shipping_full_name")
    list_filter = ("payment_method", "payment_status", "order_status", "created_at")
    readonly_fields = (
        "total_amount", "advance_amount", "remaining_amount", "payment_method",
        "payment_txn_ref", "gateway_txn_id", "stock_state", "gateway_payload", "created_at", "updated_at",
    )
    inlines = [OrderLineItemInline]
