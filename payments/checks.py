from django.conf import settings
from django.core.checks import Warning, register


@register("payments")
def check_payu_credentials(app_configs, **kwargs):
    payu = getattr(settings, "PAYU", None) or {}
    missing = [k for k in ("MERCHANT_KEY", "MERCHANT_SALT") if not (payu.get(k) or "").strip()]
    if not missing:
        return []
    return [
        Warning(
            f"PAYU[{', '.join(missing)}] not set; online and partial checkouts will fail.",
            hint="Set PAYU_MERCHANT_KEY and PAYU_MERCHANT_SALT in the environment or .env.",
            id="payments.W001",
        )
    ]
