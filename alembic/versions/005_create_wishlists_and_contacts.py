"""005: create wishlists and contacts

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wishlists (
            id          UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id     UUID        NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            product_id  UUID        NOT NULL REFERENCES products (id) ON DELETE CASCADE,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wishlists_user_product UNIQUE (user_id, product_id)
        );
    """)

    op.execute("""
        CREATE TABLE contacts (
            id          UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            first_name  VARCHAR(50)     NOT NULL,
            last_name   VARCHAR(50)     NOT NULL,
            email       VARCHAR(255)    NOT NULL,
            subject     VARCHAR(200)    NOT NULL,
            message     VARCHAR(2000)   NOT NULL,
            status      VARCHAR(16)     NOT NULL DEFAULT 'new',
            user_id     UUID            REFERENCES users (id) ON DELETE SET NULL,
            replied_at  TIMESTAMPTZ,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_contacts_status CHECK (status IN ('new', 'read', 'replied', 'archived'))
        );
    """)
    op.execute("CREATE INDEX idx_contacts_email_created_at ON contacts (email, created_at DESC);")
    op.execute("CREATE INDEX idx_contacts_status_created_at ON contacts (status, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_contacts_updated_at
            BEFORE UPDATE ON contacts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS contacts CASCADE;")
    op.execute("DROP TABLE IF EXISTS wishlists CASCADE;")
