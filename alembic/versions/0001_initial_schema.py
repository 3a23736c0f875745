"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
# prizesave.models.types.Uint256 stores integers as decimal text.
UINT = sa.String(80)


def _id() -> sa.Column:
    return sa.Column("id", ID, primary_key=True, autoincrement=True)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "tokens",
        _id(),
        sa.Column("address", sa.String(100), nullable=False),
        sa.Column("symbol", sa.String(20), nullable=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("controller", sa.String(100), nullable=True),
        sa.Column("total_supply", UINT, nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "kind IN ('controlled','erc20','erc721')",
            name="ck_tokens_token_kind_enum",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tokens"),
        sa.UniqueConstraint("address", name="uq_tokens_address"),
    )

    op.create_table(
        "token_balances",
        _id(),
        sa.Column("token_id", ID, nullable=False),
        sa.Column("holder", sa.String(100), nullable=False),
        sa.Column("balance", UINT, nullable=False),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
            name="fk_token_balances_token_id_tokens",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_token_balances"),
        sa.UniqueConstraint("token_id", "holder", name="uq_token_balance_holder"),
    )
    op.create_index("ix_token_balances_token_id", "token_balances", ["token_id"])

    op.create_table(
        "nonfungible_holdings",
        _id(),
        sa.Column("token_id", ID, nullable=False),
        sa.Column("token_number", UINT, nullable=False),
        sa.Column("owner", sa.String(100), nullable=False),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
            name="fk_nonfungible_holdings_token_id_tokens",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_nonfungible_holdings"),
        sa.UniqueConstraint(
            "token_id", "token_number", name="uq_nonfungible_token_number"
        ),
    )
    op.create_index(
        "ix_nonfungible_holdings_token_id", "nonfungible_holdings", ["token_id"]
    )

    op.create_table(
        "prize_pools",
        _id(),
        sa.Column("address", sa.String(100), nullable=False),
        sa.Column("admin", sa.String(100), nullable=False),
        sa.Column("underlying_token_id", ID, nullable=False),
        sa.Column("prize_strategy_address", sa.String(100), nullable=True),
        sa.Column("accounted_balance", UINT, nullable=False),
        sa.Column("reserve_rate_mantissa", UINT, nullable=False),
        sa.Column("reserve_total", UINT, nullable=False),
        sa.Column("captured_award_balance", UINT, nullable=False),
        sa.Column("max_exit_fee_mantissa", UINT, nullable=False),
        sa.Column("max_timelock_duration", sa.BigInteger(), nullable=False),
        sa.Column("vault_key", sa.String(100), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["underlying_token_id"],
            ["tokens.id"],
            name="fk_prize_pools_underlying_token_id_tokens",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_prize_pools"),
        sa.UniqueConstraint("address", name="uq_prize_pool_address"),
    )

    op.create_table(
        "prize_strategies",
        _id(),
        sa.Column("address", sa.String(100), nullable=False),
        sa.Column("admin", sa.String(100), nullable=False),
        sa.Column("prize_pool_id", ID, nullable=False),
        sa.Column("ticket_token_id", ID, nullable=False),
        sa.Column("sponsorship_token_id", ID, nullable=True),
        sa.Column("prize_period_seconds", sa.BigInteger(), nullable=False),
        sa.Column("prize_period_started_at", sa.BigInteger(), nullable=False),
        sa.Column("rng_service_key", sa.String(100), nullable=False),
        sa.Column("rng_request_id", sa.String(100), nullable=True),
        sa.Column("rng_requested_at", sa.BigInteger(), nullable=True),
        sa.Column("award_snapshot", UINT, nullable=True),
        sa.Column("total_weight_snapshot", UINT, nullable=True),
        sa.Column("credit_rate_mantissa", UINT, nullable=False),
        sa.Column("exit_fee_mantissa", UINT, nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(
            ["prize_pool_id"],
            ["prize_pools.id"],
            name="fk_prize_strategies_prize_pool_id_prize_pools",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["ticket_token_id"],
            ["tokens.id"],
            name="fk_prize_strategies_ticket_token_id_tokens",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["sponsorship_token_id"],
            ["tokens.id"],
            name="fk_prize_strategies_sponsorship_token_id_tokens",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_prize_strategies"),
        sa.UniqueConstraint("address", name="uq_prize_strategy_address"),
    )
    op.create_index(
        "ix_prize_strategies_prize_pool_id", "prize_strategies", ["prize_pool_id"]
    )

    op.create_table(
        "credit_accounts",
        _id(),
        sa.Column("strategy_id", ID, nullable=False),
        sa.Column("token_id", ID, nullable=False),
        sa.Column("holder", sa.String(100), nullable=False),
        sa.Column("balance", UINT, nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_credit_accounts_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
            name="fk_credit_accounts_token_id_tokens",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_credit_accounts"),
        sa.UniqueConstraint(
            "strategy_id", "token_id", "holder", name="uq_credit_account_holder"
        ),
    )
    op.create_index(
        "ix_credit_accounts_strategy_id", "credit_accounts", ["strategy_id"]
    )

    op.create_table(
        "timelock_entries",
        _id(),
        sa.Column("strategy_id", ID, nullable=False),
        sa.Column("holder", sa.String(100), nullable=False),
        sa.Column("amount", UINT, nullable=False),
        sa.Column("unlock_timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_timelock_entries_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_timelock_entries"),
        sa.UniqueConstraint("strategy_id", "holder", name="uq_timelock_entry_holder"),
    )
    op.create_index(
        "ix_timelock_entries_strategy_id", "timelock_entries", ["strategy_id"]
    )

    op.create_table(
        "sortition_nodes",
        _id(),
        sa.Column("strategy_id", ID, nullable=False),
        sa.Column("position", sa.BigInteger(), nullable=False),
        sa.Column("value", UINT, nullable=False),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_sortition_nodes_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sortition_nodes"),
        sa.UniqueConstraint(
            "strategy_id", "position", name="uq_sortition_node_position"
        ),
    )

    op.create_table(
        "sortition_leaves",
        _id(),
        sa.Column("strategy_id", ID, nullable=False),
        sa.Column("position", sa.BigInteger(), nullable=False),
        sa.Column("holder", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_sortition_leaves_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sortition_leaves"),
        sa.UniqueConstraint(
            "strategy_id", "position", name="uq_sortition_leaf_position"
        ),
    )
    op.create_index(
        "ix_sortition_leaves_strategy_id", "sortition_leaves", ["strategy_id"]
    )
    op.create_index("ix_sortition_leaves_holder", "sortition_leaves", ["holder"])

    op.create_table(
        "external_erc20_awards",
        _id(),
        sa.Column("strategy_id", ID, nullable=False),
        sa.Column("token_id", ID, nullable=False),
        _timestamp("added_at"),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_external_erc20_awards_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
            name="fk_external_erc20_awards_token_id_tokens",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_external_erc20_awards"),
        sa.UniqueConstraint("strategy_id", "token_id", name="uq_external_erc20_award"),
    )
    op.create_index(
        "ix_external_erc20_awards_strategy_id",
        "external_erc20_awards",
        ["strategy_id"],
    )

    op.create_table(
        "external_erc721_awards",
        _id(),
        sa.Column("strategy_id", ID, nullable=False),
        sa.Column("token_id", ID, nullable=False),
        sa.Column("token_number", UINT, nullable=False),
        _timestamp("added_at"),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_external_erc721_awards_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
            name="fk_external_erc721_awards_token_id_tokens",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_external_erc721_awards"),
        sa.UniqueConstraint(
            "strategy_id",
            "token_id",
            "token_number",
            name="uq_external_erc721_award",
        ),
    )
    op.create_index(
        "ix_external_erc721_awards_strategy_id",
        "external_erc721_awards",
        ["strategy_id"],
    )

    op.create_table(
        "pool_events",
        _id(),
        sa.Column("pool_id", ID, nullable=True),
        sa.Column("strategy_id", ID, nullable=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=True),
        _timestamp("occurred_at"),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["prize_pools.id"],
            name="fk_pool_events_pool_id_prize_pools",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["strategy_id"],
            ["prize_strategies.id"],
            name="fk_pool_events_strategy_id_prize_strategies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_pool_events"),
    )
    op.create_index("ix_pool_events_pool_id", "pool_events", ["pool_id"])
    op.create_index("ix_pool_events_strategy_id", "pool_events", ["strategy_id"])
    op.create_index("ix_pool_events_name", "pool_events", ["name"])


def downgrade() -> None:
    op.drop_table("pool_events")
    op.drop_table("external_erc721_awards")
    op.drop_table("external_erc20_awards")
    op.drop_table("sortition_leaves")
    op.drop_table("sortition_nodes")
    op.drop_table("timelock_entries")
    op.drop_table("credit_accounts")
    op.drop_table("prize_strategies")
    op.drop_table("prize_pools")
    op.drop_table("nonfungible_holdings")
    op.drop_table("token_balances")
    op.drop_table("tokens")
