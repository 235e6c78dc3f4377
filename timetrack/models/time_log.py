from sqlalchemy import Column, Integer, BigInteger, Boolean, Date, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from timetrack.database import Base
from timetrack.utils.dates import utcnow

class TimeLog(Base):
    __tablename__ = "time_logs"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    duration = Column(BigInteger, nullable=True)  # milliseconds
    date = Column(Date, nullable=False, index=True)  # UTC day of start_time
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    task = relationship("Task", lazy="selectin")

    __table_args__ = (
        # At most one open log per (task, owner).
        Index(
            "uq_time_logs_active_task_user",
            "task_id",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )
