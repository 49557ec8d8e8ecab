from sqlalchemy import Column, BigInteger, String, DateTime, Float, Integer, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
import uuid
from models.base import Base, RunStatus


class HarvestRun(Base):
    """
    Audit trail of harvest executions.

    Purpose:
    - Know when the last complete run happened
    - Keep the per-pair and per-locale failures of each run
    """
    __tablename__ = "harvest_runs"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    run_id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    status = Column(String(16), default=RunStatus.RUNNING.value, nullable=False, index=True)
    failure_policy = Column(String(16), nullable=False)

    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Availability phase
    pairs_total = Column(Integer, default=0)
    pairs_failed = Column(Integer, default=0)
    availability_rows = Column(Integer, default=0)
    unique_items = Column(Integer, default=0)

    # Detail phase
    locales_total = Column(Integer, default=0)
    locales_failed = Column(Integer, default=0)
    descriptions_written = Column(Integer, default=0)
    images_written = Column(Integer, default=0)

    error_message = Column(Text, nullable=True)
    failures = Column(JSONB, nullable=True)

    __table_args__ = (
        Index("idx_harvest_run_status_started", "status", "started_at"),
    )
