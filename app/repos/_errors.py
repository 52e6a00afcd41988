# app/repos/_errors.py
from sqlalchemy.exc import IntegrityError


def is_unique_violation(exc: IntegrityError, column: str) -> bool:
    """
    Rozpoznaje naruszenie unikalnosci na danej kolumnie.
    sqlite: "UNIQUE constraint failed: orders.order_number"
    postgres: 'duplicate key value violates unique constraint "orders_order_number_key"'
    """
    text = str(getattr(exc, "orig", exc)).lower()
    if "unique" not in text and "duplicate" not in text:
        return False
    return column.lower() in text
