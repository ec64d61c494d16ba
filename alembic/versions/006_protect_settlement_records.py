"""006: protect settlement records

Winners and the products they settle are never removed by deleting a user or
product, and a product carries a winner exactly when it is closed.

Revision ID: 006
Revises: 005
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _replace_fk(table: str, column: str, ref: str, on_delete: str) -> None:
    name = f"{table}_{column}_fkey"
    op.execute(f"ALTER TABLE {table} DROP CONSTRAINT IF EXISTS {name};")
    op.execute(f"""
        ALTER TABLE {table}
            ADD CONSTRAINT {name} FOREIGN KEY ({column})
            REFERENCES {ref} (id) ON DELETE {on_delete};
    """)


def upgrade() -> None:
    _replace_fk("winners", "product_id", "products", "RESTRICT")
    _replace_fk("winners", "user_id", "users", "RESTRICT")
    _replace_fk("products", "winner_id", "users", "RESTRICT")

    # close_bidding and set_winner are separate statements in one transaction,
    # so the two-way rule is checked at commit against the row as it stands then.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_check_product_winner()
        RETURNS TRIGGER AS $$
        DECLARE
            closed BOOLEAN;
            winner UUID;
        BEGIN
            SELECT is_closed, winner_id INTO closed, winner
            FROM products WHERE id = NEW.id;
            IF FOUND AND closed <> (winner IS NOT NULL) THEN
                RAISE EXCEPTION 'product % must have a winner iff it is closed', NEW.id
                    USING ERRCODE = 'check_violation',
                          CONSTRAINT = 'ck_products_winner_iff_closed';
            END IF;
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE CONSTRAINT TRIGGER ck_products_winner_iff_closed
            AFTER INSERT OR UPDATE OF is_closed, winner_id ON products
            DEFERRABLE INITIALLY DEFERRED
            FOR EACH ROW EXECUTE FUNCTION fn_check_product_winner();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS ck_products_winner_iff_closed ON products;")
    op.execute("DROP FUNCTION IF EXISTS fn_check_product_winner();")
    _replace_fk("products", "winner_id", "users", "SET NULL")
    _replace_fk("winners", "user_id", "users", "CASCADE")
    _replace_fk("winners", "product_id", "products", "CASCADE")
