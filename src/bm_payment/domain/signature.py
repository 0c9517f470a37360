"""Checkout signature check: HMAC-SHA256 over ``"{order_id}|{payment_id}"``."""
import hashlib
import hmac


def compute_checkout_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_checkout_signature(
    order_id: str, payment_id: str, signature: str, secret: str
) -> bool:
    if not secret or not signature:
        return False
    expected = compute_checkout_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature)
