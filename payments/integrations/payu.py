import logging
from dataclasses import dataclass
from functools import lru_cache

import requests
from requests import RequestException
from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.urls import reverse

from imistore.exceptions import ConfigurationError, GatewayUnavailableError
from ..hashing import command_hash, format_amount, request_hash

logger = logging.getLogger(__name__)

VERIFY_COMMAND = "verify_payment"


@dataclass(frozen=True)
class PayUConfig:
    merchant_key: str
    merchant_salt: str
    base_url: str = "https://test.payu.in"
    verify_url: str = ""
    callback_base_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:5173"
    timeout: float = 20.0

    @classmethod
    def from_settings(cls, payu=None) -> "PayUConfig":
        payu = getattr(settings, "PAYU", None) if payu is None else payu
        payu = payu or {}
        key = (payu.get("MERCHANT_KEY") or "").strip()
        salt = (payu.get("MERCHANT_SALT") or "").strip()
        if not key or not salt:
            logger.error("PayU MERCHANT_KEY/MERCHANT_SALT missing in settings")
            raise ConfigurationError("PayU credentials not configured")
        base_url = (payu.get("BASE_URL") or cls.base_url).rstrip("/")
        return cls(
            merchant_key=key,
            merchant_salt=salt,
            base_url=base_url,
            verify_url=payu.get("VERIFY_URL") or f"{base_url}/merchant/postservice.php?form=2",
            callback_base_url=(payu.get("CALLBACK_BASE_URL") or cls.callback_base_url).rstrip("/"),
            frontend_url=(payu.get("FRONTEND_URL") or cls.frontend_url).rstrip("/"),
            timeout=float(payu.get("TIMEOUT") or cls.timeout),
        )

    @property
    def checkout_url(self) -> str:
        return f"{self.base_url}/_payment"

    @property
    def success_url(self) -> str:
        return self.callback_base_url + reverse("payments:payu_success")

    @property
    def failure_url(self) -> str:
        return self.callback_base_url + reverse("payments:payu_failure")


@lru_cache(maxsize=1)
def get_payu_config() -> PayUConfig:
    """The process-wide gateway configuration, built on first use."""
    return PayUConfig.from_settings()


@receiver(setting_changed)
def _reset_payu_config(sender, setting, **kwargs):
    if setting == "PAYU":
        get_payu_config.cache_clear()


def build_payment_payload(config: PayUConfig, *, txnid, amount, productinfo, firstname, email, phone="") -> dict:
    """Form fields the client POSTs to PayU's hosted checkout (``action``)."""
    amount = format_amount(amount)
    return {
        "key": config.merchant_key,
        "txnid": txnid,
        "amount": amount,
        "productinfo": productinfo,
        "firstname": firstname,
        "email": email,
        "phone": phone or "",
        "surl": config.success_url,
        "furl": config.failure_url,
        "hash": request_hash(
            config.merchant_key, txnid, amount, productinfo, firstname, email, config.merchant_salt
        ),
        "action": config.checkout_url,
    }


def verify_payment(config: PayUConfig, txnid: str) -> dict:
    """Ask PayU for the authoritative status of ``txnid`` (server to server)."""
    form = {
        "key": config.merchant_key,
        "command": VERIFY_COMMAND,
        "var1": txnid,
        "hash": command_hash(config.merchant_key, VERIFY_COMMAND, txnid, config.merchant_salt),
    }
    try:
        resp = requests.post(
            config.verify_url,
            data=form,
            headers={"Accept": "application/json"},
            timeout=config.timeout,
        )
    except RequestException as e:
        logger.error("PayU verify request failed for txnid=%s: %s", txnid, e)
        raise GatewayUnavailableError(f"Gateway request failed: {e}")

    try:
        data = resp.json()
    except ValueError:
        data = {"raw": resp.text}

    if resp.status_code >= 500:
        logger.error("PayU verify returned HTTP %s for txnid=%s: %s", resp.status_code, txnid, resp.text[:500])
        raise GatewayUnavailableError(f"Gateway error {resp.status_code}")
    if resp.status_code != 200:
        logger.warning("PayU verify returned HTTP %s for txnid=%s", resp.status_code, txnid)
    return data


def transaction_details(response: dict, txnid: str) -> dict:
    details = (response or {}).get("transaction_details")
    if not isinstance(details, dict):
        return {}
    entry = details.get(txnid)
    return entry if isinstance(entry, dict) else {}


def transaction_status(response: dict, txnid: str) -> str:
    return str(transaction_details(response, txnid).get("status") or "").strip().lower()
