"""CoordinatorState entity - scalar counters and policy values."""

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

NEXT_BACKUP_ID = "next_backup_id"
NEXT_RESTORE_ID = "next_restore_id"
MIN_BACKUP_REPLICAS = "min_backup_replicas"


class CoordinatorState(SQLModel, table=True):
    """CoordinatorState is a key-value store for process-wide scalars."""

    __tablename__ = "coordinator_state"  # type: ignore[assignment]

    key: str = Field(primary_key=True, max_length=64)
    value: int = Field(sa_column=Column(BigInteger, nullable=False))
