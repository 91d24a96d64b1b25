"""Initial schema — entries, rated summaries, per-user streak stats.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    op.execute("""
        CREATE TABLE entries (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id UUID NOT NULL,
            content TEXT NOT NULL CHECK (length(btrim(content)) > 0),
            source VARCHAR(10) NOT NULL DEFAULT 'text' CHECK (source IN ('text', 'voice')),
            metadata JSONB DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE summaries (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id UUID NOT NULL,
            summary_text TEXT NOT NULL,
            rating SMALLINT NOT NULL CHECK (rating BETWEEN 1 AND 5),
            for_date DATE NOT NULL,
            range_start TIMESTAMPTZ NOT NULL,
            range_end TIMESTAMPTZ NOT NULL CHECK (range_end >= range_start),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE user_stats (
            user_id UUID PRIMARY KEY,
            streak_count INTEGER NOT NULL DEFAULT 0,
            last_summary_date DATE,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("CREATE INDEX idx_entries_user_created ON entries(user_id, created_at)")
    op.execute("CREATE INDEX idx_summaries_user_created ON summaries(user_id, created_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_stats CASCADE")
    op.execute("DROP TABLE IF EXISTS summaries CASCADE")
    op.execute("DROP TABLE IF EXISTS entries CASCADE")
