# app/utils/identifiers.py
import secrets
import time


def _millis() -> int:
    return int(time.time() * 1000)


def generate_order_number() -> str:
    # ORD + znacznik czasu w ms + 4 losowe cyfry
    return f"ORD{_millis()}{secrets.randbelow(10000):04d}"


def generate_transaction_number() -> str:
    return f"TXN{_millis()}{secrets.randbelow(1000):03d}"
