from django.urls import path
from . import views
app_name = "payments"
urlpatterns = [
    path("checkout", views.checkout_view, name="checkout"),
    # PayU callbacks (surl / furl)
    path("payment/success", views.payu_success, name="payu_success"),
    path("payment/failure", views.payu_failure, name="payu_failure"),
    path("payment/verify", views.verify_payment_view, name="payu_verify"),
    path("orders/my", views.my_orders_view, name="my_orders"),
    path("orders/<int:order_id>/status", views.order_status_view, name="order_status"),
]
