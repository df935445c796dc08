"""
Precios de los servicios de la academia.
Precio fijo por servicio, la duración no cambia el costo.
"""

from decimal import Decimal
from typing import Iterable, Optional

SERVICE_PRICES = {
    "Stroke Clinic": Decimal("99.99"),
    "Boot Camp": Decimal("149.99"),
    "Private Lessons": Decimal("149.99"),
    "Private Lesson": Decimal("149.99"),
    "UTR Points": Decimal("149.99"),
    "UTR Points Play": Decimal("149.99"),
}

# Servicio desconocido: precio de Private Lesson
DEFAULT_PRICE = SERVICE_PRICES["Private Lesson"]


def calculate_booking_cost(
    service_name: Optional[str], duration_hours: float
) -> Decimal:
    return SERVICE_PRICES.get(service_name or "", DEFAULT_PRICE)


def calculate_total_cost(intents: Iterable) -> Decimal:
    return sum((intent.cost for intent in intents), Decimal("0.00"))


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))
