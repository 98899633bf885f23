"""Initial schema for billing ledger."""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    account_type_enum = sa.Enum(
        "asset",
        "liability",
        "equity",
        "income",
        "expense",
        name="account_type_enum",
    )
    journal_status_enum = sa.Enum("draft", "posted", "void", name="journal_status_enum")
    journal_source_enum = sa.Enum("manual", "bank_statement", name="journal_source_type_enum")
    approval_status_enum = sa.Enum(
        "pending",
        "approved",
        "rejected",
        name="journal_approval_status_enum",
    )
    bank_statement_status_enum = sa.Enum(
        "unmatched",
        "partially_matched",
        "matched",
        name="bank_statement_status_enum",
    )
    match_type_enum = sa.Enum("manual", "auto", name="reconciliation_match_type_enum")

    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", account_type_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "code", name="uq_accounts_user_code"),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "journals",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("journal_number", sa.String(length=32), nullable=False),
        sa.Column("journal_date", sa.Date(), nullable=False),
        sa.Column("narration", sa.String(length=500), nullable=False),
        sa.Column("total_debit", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_credit", sa.Numeric(18, 2), nullable=False),
        sa.Column("status", journal_status_enum, nullable=False),
        sa.Column("source_type", journal_source_enum, nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=True),
        sa.Column("void_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "journal_number", name="uq_journals_user_number"),
        sa.CheckConstraint("total_debit = total_credit", name="ck_journals_balanced"),
    )
    op.create_index("ix_journals_user_id", "journals", ["user_id"])
    op.create_index("ix_journals_journal_date", "journals", ["journal_date"])
    op.create_index("ix_journals_status", "journals", ["status"])

    op.create_table(
        "journal_lines",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("journal_id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("debit", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("credit", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("line_narration", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["journal_id"], ["journals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.CheckConstraint("debit >= 0 AND credit >= 0", name="ck_journal_lines_non_negative"),
        sa.CheckConstraint(
            "(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)",
            name="ck_journal_lines_one_side",
        ),
    )
    op.create_index("ix_journal_lines_journal_id", "journal_lines", ["journal_id"])
    op.create_index("ix_journal_lines_account_id", "journal_lines", ["account_id"])

    op.create_table(
        "journal_approval_workflow",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("journal_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("status", approval_status_enum, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["journal_id"], ["journals.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_journal_approval_workflow_journal_id", "journal_approval_workflow", ["journal_id"]
    )
    op.create_index(
        "ix_journal_approval_workflow_user_id", "journal_approval_workflow", ["user_id"]
    )

    op.create_table(
        "bank_statement_lines",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("debit", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("credit", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("balance", sa.Numeric(18, 2), nullable=True),
        sa.Column("status", bank_statement_status_enum, nullable=False),
        sa.Column("source_file", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "transaction_id", name="uq_bank_statement_lines_user_txn"),
        sa.CheckConstraint(
            "debit >= 0 AND credit >= 0", name="ck_bank_statement_lines_non_negative"
        ),
        sa.CheckConstraint("debit = 0 OR credit = 0", name="ck_bank_statement_lines_one_side"),
    )
    op.create_index("ix_bank_statement_lines_user_id", "bank_statement_lines", ["user_id"])
    op.create_index(
        "ix_bank_statement_lines_transaction_date", "bank_statement_lines", ["transaction_date"]
    )
    op.create_index("ix_bank_statement_lines_status", "bank_statement_lines", ["status"])

    op.create_table(
        "bank_statement_reconciliation",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("bank_statement_id", sa.Uuid(), nullable=False, unique=True),
        sa.Column("journal_id", sa.Uuid(), nullable=False),
        sa.Column("match_type", match_type_enum, nullable=False),
        sa.Column("matched_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["bank_statement_id"], ["bank_statement_lines.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["journal_id"], ["journals.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_bank_statement_reconciliation_user_id", "bank_statement_reconciliation", ["user_id"]
    )
    op.create_index(
        "ix_bank_statement_reconciliation_journal_id",
        "bank_statement_reconciliation",
        ["journal_id"],
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("bank_statement_reconciliation")
    op.drop_table("bank_statement_lines")
    op.drop_table("journal_approval_workflow")
    op.drop_table("journal_lines")
    op.drop_table("journals")
    op.drop_table("accounts")

    op.execute("DROP TYPE IF EXISTS reconciliation_match_type_enum")
    op.execute("DROP TYPE IF EXISTS bank_statement_status_enum")
    op.execute("DROP TYPE IF EXISTS journal_approval_status_enum")
    op.execute("DROP TYPE IF EXISTS journal_source_type_enum")
    op.execute("DROP TYPE IF EXISTS journal_status_enum")
    op.execute("DROP TYPE IF EXISTS account_type_enum")
