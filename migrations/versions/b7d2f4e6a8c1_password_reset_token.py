"""users: token de recupero de contraseña

Revision ID: b7d2f4e6a8c1
Revises: a3e1c0d2b4f5
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


revision = "b7d2f4e6a8c1"
down_revision = "a3e1c0d2b4f5"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("password_reset_token", sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column("password_reset_expires", sa.DateTime(), nullable=True))
        batch_op.create_unique_constraint("uq_users_password_reset_token", ["password_reset_token"])


def downgrade():
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_constraint("uq_users_password_reset_token", type_="unique")
        batch_op.drop_column("password_reset_expires")
        batch_op.drop_column("password_reset_token")
