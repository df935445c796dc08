"""
Operaciones sobre el saldo del wallet.

Ninguna hace commit: el llamador decide la transacción, así el descuento
y las reservas se confirman (o se revierten) juntos.
"""

from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Optional

from app.models.user import User


def get_wallet_balance(db: Session, user_id: int) -> Decimal:
    balance = db.query(User.wallet_balance).filter(User.id == user_id).scalar()
    return Decimal(balance or 0).quantize(Decimal("0.01"))


def deduct_from_wallet(db: Session, user_id: int, amount: Decimal) -> bool:
    """
    Descuenta el monto solo si el saldo alcanza (UPDATE condicional atómico).

    Returns:
        True si se descontó, False si el saldo no alcanza o el usuario no existe
    """
    updated = (
        db.query(User)
        .filter(User.id == user_id, User.wallet_balance >= amount)
        .update(
            {User.wallet_balance: User.wallet_balance - amount},
            synchronize_session=False,
        )
    )
    return updated == 1


def add_to_wallet(db: Session, user_id: int, amount: Decimal) -> Optional[Decimal]:
    updated = (
        db.query(User)
        .filter(User.id == user_id)
        .update(
            {User.wallet_balance: User.wallet_balance + amount},
            synchronize_session=False,
        )
    )
    if updated != 1:
        return None
    return get_wallet_balance(db, user_id)
