from sqlalchemy import Column, Integer, BigInteger, String, Text, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from timetrack.database import Base
from timetrack.models.task import status_type
from timetrack.utils.dates import utcnow

class DailySummary(Base):
    __tablename__ = "daily_summaries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)

    total_time_spent = Column(BigInteger, default=0, nullable=False)  # milliseconds
    completed_tasks = Column(Integer, default=0, nullable=False)
    in_progress_tasks = Column(Integer, default=0, nullable=False)
    pending_tasks = Column(Integer, default=0, nullable=False)

    summary = Column(Text, default="", nullable=False)
    daily_score = Column(Integer, default=0, nullable=False)  # reserved

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    tasks = relationship(
        "DailySummaryTask",
        order_by="DailySummaryTask.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_summaries_user_date"),
    )


class DailySummaryTask(Base):
    """Per-task snapshot; not a live reference to the task."""

    __tablename__ = "daily_summary_tasks"

    id = Column(Integer, primary_key=True, index=True)
    summary_id = Column(Integer, ForeignKey("daily_summaries.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    task_title = Column(String, nullable=True)
    time_spent = Column(BigInteger, default=0, nullable=False)  # milliseconds
    status = Column(status_type, nullable=True)
