import secrets
import time


def gen_txn_id() -> str:
    # e.g. TXN_1718000000000_9f2c4a1b
    return f"TXN_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def camel_to_snake(data: dict) -> dict:
    """``{"productRef": 1}`` -> ``{"product_ref": 1}`` (one level deep)."""
    out = {}
    for key, value in (data or {}).items():
        snake = "".join("_" + c.lower() if c.isupper() else c for c in str(key)).lstrip("_")
        out[snake] = value
    return out
