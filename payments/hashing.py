"""PayU integrity hashes.

PayU signs both directions of the hosted-checkout handshake with SHA-512
over a pipe-delimited string. Field order and the run of empty fields
(``udf1``..``udf5`` plus five reserved slots) are fixed by the gateway; a
single missing ``|`` makes every hash disagree with PayU's.
"""

import hashlib
import hmac
from decimal import ROUND_HALF_UP, Decimal

_EMPTY_FIELDS = [""] * 10


def _sha512(fields) -> str:
    return hashlib.sha512("|".join(fields).encode("utf-8")).hexdigest()


def format_amount(amount) -> str:
    """Two-decimal string, the only amount format PayU accepts in a request hash."""
    return str(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def request_hash(key, txnid, amount, productinfo, firstname, email, salt) -> str:
    """``sha512(key|txnid|amount|productinfo|firstname|email|||||||||||salt)``"""
    return _sha512(
        [key, txnid, format_amount(amount), productinfo, firstname, email, *_EMPTY_FIELDS, salt]
    )


def response_hash(salt, status, email, firstname, productinfo, amount, txnid, key) -> str:
    """``sha512(salt|status|||||||||||email|firstname|productinfo|amount|txnid|key)``

    ``amount`` is hashed exactly as PayU posted it.
    """
    return _sha512(
        [salt, status, *_EMPTY_FIELDS, email, firstname, productinfo, str(amount), txnid, key]
    )


def verify_callback(received_hash, *, salt, status, email, firstname, productinfo, amount, txnid, key) -> bool:
    expected = response_hash(salt, status, email, firstname, productinfo, amount, txnid, key)
    return hmac.compare_digest(expected, (received_hash or "").strip())


def command_hash(key, command, var1, salt) -> str:
    """Hash for PayU's merchant web-service API, e.g. ``verify_payment``."""
    return _sha512([key, command, var1, salt])
