from django import forms

from .models import OrderStatus, PaymentMethod


class ShippingAddressForm(forms.Form):
    full_name = forms.CharField(max_length=128)
    phone = forms.CharField(max_length=20)
    address_line1 = forms.CharField(max_length=128)
    address_line2 = forms.CharField(max_length=128, required=False)
    city = forms.CharField(max_length=64)
    state = forms.CharField(max_length=64)
    postal_code = forms.CharField(max_length=16)
    country = forms.CharField(max_length=64)


class CheckoutForm(forms.Form):
    """One checkout line: a catalogue product, or an inline name and price."""

    product_ref = forms.CharField(max_length=64, required=False)
    product_name = forms.CharField(max_length=200, required=False)
    price = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    quantity = forms.IntegerField(min_value=1, required=False)
    payment_method = forms.ChoiceField(choices=PaymentMethod.choices)

    def clean_quantity(self):
        return self.cleaned_data.get("quantity") or 1

    def clean(self):
        cleaned_data = super().clean()
        has_ref = bool(cleaned_data.get("product_ref"))
        has_inline = bool(cleaned_data.get("product_name")) or cleaned_data.get("price") is not None
        if has_ref and has_inline:
            raise forms.ValidationError("Send either productRef or productName and price, not both")
        if not has_ref and not (cleaned_data.get("product_name") and cleaned_data.get("price") is not None):
            raise forms.ValidationError("productRef or productName and price is required")
        return cleaned_data


class VerifyPaymentForm(forms.Form):
    txnid = forms.CharField(max_length=64)


class OrderStatusForm(forms.Form):
    status = forms.ChoiceField(choices=OrderStatus.choices)
