from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from . import Base

shift_status_enum = Enum("scheduled", "in_progress", "completed", name="shift_status")
assignment_status_enum = Enum("assigned", "checked_in", "checked_out", "no_show", name="assignment_status")


class Shift(Base):
    __tablename__ = "shifts"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_shift_time_order"),
        CheckConstraint("required_workers >= 1", name="ck_shift_required_workers"),
    )

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    required_workers = Column(Integer, nullable=False, default=1, server_default="1")
    requires_weapon = Column(Boolean, nullable=False, default=False, server_default="false")
    requires_vehicle = Column(Boolean, nullable=False, default=False, server_default="false")
    notes = Column(Text, nullable=True)
    status = Column(shift_status_enum, nullable=False, default="scheduled", server_default="scheduled")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    customer = relationship("Customer")
    site = relationship("Site")
    assignments = relationship(
        "ShiftAssignment",
        back_populates="shift",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ShiftAssignment(Base):
    __tablename__ = "shift_assignments"
    __table_args__ = (
        UniqueConstraint("shift_id", "worker_id", name="uq_shift_assignment_worker"),
    )

    id = Column(Integer, primary_key=True)
    shift_id = Column(Integer, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id"), nullable=False, index=True)
    role = Column(String(50), nullable=False, default="guard", server_default="guard")
    status = Column(assignment_status_enum, nullable=False, default="assigned", server_default="assigned")
    check_in_time = Column(DateTime, nullable=True)
    check_out_time = Column(DateTime, nullable=True)
    check_in_latitude = Column(Float, nullable=True)
    check_in_longitude = Column(Float, nullable=True)
    check_out_latitude = Column(Float, nullable=True)
    check_out_longitude = Column(Float, nullable=True)
    actual_hours = Column(Numeric(5, 2), nullable=True)
    notes = Column(Text, nullable=True)
    reminder_sent_at = Column(DateTime, nullable=True)
    overdue_alerted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    shift = relationship("Shift", back_populates="assignments")
    worker = relationship("Worker")
