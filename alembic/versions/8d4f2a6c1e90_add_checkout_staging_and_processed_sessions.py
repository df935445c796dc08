"""add_checkout_staging_and_processed_sessions

Revision ID: 8d4f2a6c1e90
Revises: 3b7e91c0d2a4
Create Date: 2026-02-17 18:44:02.530771

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d4f2a6c1e90'
down_revision: Union[str, None] = '3b7e91c0d2a4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


payment_session_outcome = sa.Enum(
    'BOOKING', 'TOPUP', 'FAILED', name='paymentsessionoutcome'
)


def upgrade() -> None:
    """
    Upgrade schema.

    Las reservas pendientes de pago y las sesiones ya procesadas pasan del
    sessionStorage del navegador a la base de datos:
    - checkout_stagings: intents guardados antes de redirigir a Stripe
    - processed_payment_sessions: evita procesar dos veces el mismo session_id
    """
    op.create_table(
        'checkout_stagings',
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('intents', sa.JSON(), nullable=False),
        sa.Column('total_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('session_id'),
    )
    op.create_index(
        op.f('ix_checkout_stagings_user_id'), 'checkout_stagings', ['user_id'], unique=False
    )

    op.create_table(
        'processed_payment_sessions',
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('outcome', payment_session_outcome, nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('session_id'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('processed_payment_sessions')
    op.drop_index(op.f('ix_checkout_stagings_user_id'), table_name='checkout_stagings')
    op.drop_table('checkout_stagings')
    payment_session_outcome.drop(op.get_bind(), checkfirst=True)
