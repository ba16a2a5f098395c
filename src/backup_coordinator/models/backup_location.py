"""FileBackupLocation entity - where a verified copy of a file lives."""

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel


class FileBackupLocation(SQLModel, table=True):
    """FileBackupLocation indexes copies by (file hash, node) for restore lookups."""

    __tablename__ = "file_backup_locations"  # type: ignore[assignment]

    file_hash: str = Field(primary_key=True, max_length=64)
    node_id: str = Field(primary_key=True, max_length=128, foreign_key="storage_nodes.node_id")
    backup_id: int = Field(foreign_key="backup_requests.id", index=True)
    backup_hash: str = Field(max_length=64)
    created_at_block: int = Field(sa_column=Column(BigInteger, nullable=False))
    last_verified_block: int = Field(sa_column=Column(BigInteger, nullable=False))
    verified: bool = Field(default=True)

    def record_verification(self, verified: bool, block_height: int) -> None:
        """Store the outcome of an integrity re-check made by the holding node."""
        self.verified = verified
        self.last_verified_block = block_height
