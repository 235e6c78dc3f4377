import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from timetrack.database import Base
from timetrack.utils.dates import utcnow


class TaskStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


# Statuses that no longer accept tracking.
CLOSED_STATUSES = {TaskStatus.COMPLETED, TaskStatus.CANCELLED}

PRIORITY_RANK = {
    TaskPriority.URGENT: 4,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}


def _values(enum_cls):
    return [member.value for member in enum_cls]


status_type = Enum(TaskStatus, name="task_status", values_callable=_values)
priority_type = Enum(TaskPriority, name="task_priority", values_callable=_values)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        status_type,
        default=TaskStatus.PENDING,
        nullable=False,
    )
    priority = Column(
        priority_type,
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    deadline = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Append-only histories, always read in insertion order.
    status_history = relationship(
        "TaskStatusHistory",
        order_by="TaskStatusHistory.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    priority_history = relationship(
        "TaskPriorityHistory",
        order_by="TaskPriorityHistory.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    remarks = relationship(
        "TaskRemark",
        order_by="TaskRemark.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class TaskStatusHistory(Base):
    __tablename__ = "task_status_history"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(status_type, nullable=False)
    changed_at = Column(DateTime, default=utcnow, nullable=False)


class TaskPriorityHistory(Base):
    __tablename__ = "task_priority_history"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    priority = Column(priority_type, nullable=False)
    changed_at = Column(DateTime, default=utcnow, nullable=False)


class TaskRemark(Base):
    __tablename__ = "task_remarks"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
