"""create audit_logs table with partitioning

Revision ID: 7a4d2f0c8e61
Revises: 3c1e5a7b9d20
Create Date: 2026-10-12 11:02:40.091877
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa  # noqa


# revision identifiers, used by Alembic.
revision: str = "7a4d2f0c8e61"
down_revision: Union[str, Sequence[str], None] = "3c1e5a7b9d20"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _month_partition(year: int, month: int) -> str:
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return f"""
        CREATE TABLE IF NOT EXISTS audit.audit_logs_{year}_{month:02d}
          PARTITION OF audit.audit_logs
          FOR VALUES FROM (TIMESTAMPTZ '{year}-{month:02d}-01 00:00:00+00')
                     TO (TIMESTAMPTZ '{next_year}-{next_month:02d}-01 00:00:00+00')
    """


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS audit")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS audit.audit_logs(
            id BIGINT GENERATED ALWAYS AS IDENTITY,
            ts_utc timestamptz NOT NULL DEFAULT now(),
            request_id text,
            scope text NOT NULL,
            action text NOT NULL,
            actor_user_id bigint,
            actor_role text,
            actor_ip inet,
            route text,
            object_type text,
            object_id bigint,
            event_id bigint,
            order_id bigint,
            ticket_id bigint,
            status text NOT NULL,
            reason text,
            meta jsonb NOT NULL DEFAULT '{}'::jsonb,
            CONSTRAINT chk_audit_status CHECK (status IN ('SUCCESS','FAIL')),
            PRIMARY KEY (ts_utc, id)
        ) PARTITION BY RANGE (ts_utc)
        """
    )

    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_ts ON audit.audit_logs (ts_utc DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_actor_ts ON audit.audit_logs (actor_user_id, ts_utc DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_action_ts ON audit.audit_logs (action, ts_utc DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_obj ON audit.audit_logs (object_type, object_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_event ON audit.audit_logs (event_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_order ON audit.audit_logs (order_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_ticket ON audit.audit_logs (ticket_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_meta_gin ON audit.audit_logs USING gin (meta jsonb_path_ops)")

    for month in (10, 11, 12):
        op.execute(_month_partition(2026, month))
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS audit.audit_logs_default
          PARTITION OF audit.audit_logs DEFAULT
        """
    )


def downgrade() -> None:
    op.execute("DROP SCHEMA IF EXISTS audit CASCADE")
