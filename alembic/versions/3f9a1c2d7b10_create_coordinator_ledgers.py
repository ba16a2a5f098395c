"""create_coordinator_ledgers

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-17 09:12:41.318205

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLAlchemy persists enum member names
backup_status = sa.Enum("PENDING", "IN_PROGRESS", "COMPLETED", "FAILED", name="backupstatus")
restore_status = sa.Enum("PENDING", "IN_PROGRESS", "COMPLETED", "FAILED", name="restorestatus")
assignment_status = sa.Enum(
    "ASSIGNED", "BACKING_UP", "COMPLETED", "FAILED", name="assignmentstatus"
)


def upgrade() -> None:
    """Create the five ledgers plus the coordinator state table, seed counters."""
    op.create_table(
        "storage_nodes",
        sa.Column("node_id", sa.String(length=128), primary_key=True),
        sa.Column("reputation_score", sa.Integer(), nullable=False),
        sa.Column("total_backups", sa.Integer(), nullable=False),
        sa.Column("successful_backups", sa.Integer(), nullable=False),
        sa.Column("failed_backups", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("storage_capacity", sa.BigInteger(), nullable=False),
        sa.Column("used_capacity", sa.BigInteger(), nullable=False),
        sa.Column("registered_at_block", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "backup_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("file_hash", sa.String(length=64), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("requester", sa.String(length=128), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("created_at_block", sa.BigInteger(), nullable=False),
        sa.Column("status", backup_status, nullable=False),
        sa.Column("required_replicas", sa.Integer(), nullable=False),
        sa.Column("reward_amount", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_backup_requests_file_hash", "backup_requests", ["file_hash"])
    op.create_index("ix_backup_requests_requester", "backup_requests", ["requester"])
    op.create_index("ix_backup_requests_status", "backup_requests", ["status"])

    op.create_table(
        "backup_assignments",
        sa.Column(
            "backup_id",
            sa.Integer(),
            sa.ForeignKey("backup_requests.id"),
            primary_key=True,
        ),
        sa.Column(
            "node_id",
            sa.String(length=128),
            sa.ForeignKey("storage_nodes.node_id"),
            primary_key=True,
        ),
        sa.Column("assigned_at_block", sa.BigInteger(), nullable=False),
        sa.Column("status", assignment_status, nullable=False),
        sa.Column("backup_hash", sa.String(length=64), nullable=True),
        sa.Column("completed_at_block", sa.BigInteger(), nullable=True),
    )
    op.create_index("ix_backup_assignments_status", "backup_assignments", ["status"])

    op.create_table(
        "file_backup_locations",
        sa.Column("file_hash", sa.String(length=64), primary_key=True),
        sa.Column(
            "node_id",
            sa.String(length=128),
            sa.ForeignKey("storage_nodes.node_id"),
            primary_key=True,
        ),
        sa.Column("backup_id", sa.Integer(), sa.ForeignKey("backup_requests.id"), nullable=False),
        sa.Column("backup_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at_block", sa.BigInteger(), nullable=False),
        sa.Column("last_verified_block", sa.BigInteger(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_file_backup_locations_backup_id", "file_backup_locations", ["backup_id"])

    op.create_table(
        "restore_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("file_hash", sa.String(length=64), nullable=False),
        sa.Column("requester", sa.String(length=128), nullable=False),
        sa.Column("selected_node", sa.String(length=128), nullable=False),
        sa.Column("created_at_block", sa.BigInteger(), nullable=False),
        sa.Column("status", restore_status, nullable=False),
        sa.Column("reward_amount", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_restore_requests_file_hash", "restore_requests", ["file_hash"])
    op.create_index("ix_restore_requests_requester", "restore_requests", ["requester"])
    op.create_index("ix_restore_requests_selected_node", "restore_requests", ["selected_node"])
    op.create_index("ix_restore_requests_status", "restore_requests", ["status"])

    state = op.create_table(
        "coordinator_state",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.BigInteger(), nullable=False),
    )

    # Seed counters so concurrent first allocations lock an existing row.
    # min_backup_replicas stays unset and reads as the configured default.
    op.bulk_insert(
        state,
        [
            {"key": "next_backup_id", "value": 1},
            {"key": "next_restore_id", "value": 1},
        ],
    )


def downgrade() -> None:
    """Drop all coordinator tables and enum types."""
    op.drop_table("coordinator_state")
    op.drop_table("restore_requests")
    op.drop_table("file_backup_locations")
    op.drop_table("backup_assignments")
    op.drop_table("backup_requests")
    op.drop_table("storage_nodes")

    bind = op.get_bind()
    restore_status.drop(bind, checkfirst=True)
    assignment_status.drop(bind, checkfirst=True)
    backup_status.drop(bind, checkfirst=True)
