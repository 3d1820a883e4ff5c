from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Integer, String, func

from . import Base

worker_status_enum = Enum("active", "inactive", name="worker_status")


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(40), nullable=True)
    status = Column(worker_status_enum, nullable=False, default="active", server_default="active")
    has_weapon_license = Column(Boolean, nullable=False, default=False, server_default="false")
    weapon_license_expiry = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
