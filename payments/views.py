import json
import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from imistore.auth import api_login_required, staff_required
from imistore.exceptions import ConfigurationError, ValidationError
from . import services
from .forms import CheckoutForm, OrderStatusForm, ShippingAddressForm, VerifyPaymentForm
from .integrations.payu import PayUConfig, get_payu_config
from .models import PaymentStatus
from .utils import camel_to_snake

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        return json.loads(request.body.decode("utf-8") or "{}")
    except (ValueError, UnicodeDecodeError):
        return None


def _valid(form):
    if not form.is_valid():
        raise ValidationError("Invalid request", errors=form.errors.get_json_data())
    return form.cleaned_data


@csrf_exempt
@require_POST
@api_login_required
def checkout_view(request):
    body = _json_body(request)
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    body = camel_to_snake(body)

    address = body.get("shipping_address")
    if not isinstance(address, dict):
        raise ValidationError("shippingAddress is required")
    data = _valid(CheckoutForm(body))
    address = _valid(ShippingAddressForm(camel_to_snake(address)))

    item = services.CheckoutItem(
        quantity=data["quantity"],
        product_ref=data["product_ref"] or None,
        product_name=None if data["product_ref"] else data["product_name"],
        unit_price=None if data["product_ref"] else data["price"],
    )
    result = services.checkout(request.user, [item], data["payment_method"], address)
    return JsonResponse(
        {
            "success": True,
            "message": "Order placed" if result.payment_data is None else "Payment initiated",
            "order": result.order.to_dict(),
            "paymentData": result.payment_data,
        },
        status=201,
    )


@csrf_exempt
@require_POST
def payu_success(request):
    """PayU posts here (``surl``) after a successful payment."""
    data = request.POST.dict()
    logger.debug("PayU success POST data: %s", data)
    config = get_payu_config()
    order = services.confirm_success(data, config=config)
    if order.payment_status == PaymentStatus.FAILED:
        query = urlencode({"txnid": order.payment_txn_ref})
        return redirect(f"{config.frontend_url}/payment/failure?{query}")
    query = urlencode({"txnid": order.payment_txn_ref, "mihpayid": data.get("mihpayid", "")})
    return redirect(f"{config.frontend_url}/payment/success?{query}")


@csrf_exempt
@require_POST
def payu_failure(request):
    """PayU posts here (``furl``); the browser always lands on the failure page."""
    data = request.POST.dict()
    logger.debug("PayU failure POST data: %s", data)
    try:
        config = get_payu_config()
        frontend_url = config.frontend_url
    except ConfigurationError:
        config = None
        payu = getattr(settings, "PAYU", None) or {}
        frontend_url = (payu.get("FRONTEND_URL") or PayUConfig.frontend_url).rstrip("/")
    services.record_failure(data, config=config)
    query = urlencode({"txnid": data.get("txnid", "")})
    return redirect(f"{frontend_url}/payment/failure?{query}")


@csrf_exempt
@require_POST
@api_login_required
def verify_payment_view(request):
    body = _json_body(request)
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    data = _valid(VerifyPaymentForm(body))
    order, gateway_response = services.verify_transaction(data["txnid"].strip(), buyer=request.user)
    return JsonResponse({"order": order.to_dict(), "gatewayResponse": gateway_response})


@require_GET
@api_login_required
def my_orders_view(request):
    orders = services.orders_for(request.user)
    return JsonResponse({"orders": [o.to_dict() for o in orders]})


@csrf_exempt
@require_POST
@staff_required
def order_status_view(request, order_id: int):
    body = _json_body(request)
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    data = _valid(OrderStatusForm(body))
    order = services.update_order_status(order_id, data["status"])
    return JsonResponse({"order": order.to_dict()})
