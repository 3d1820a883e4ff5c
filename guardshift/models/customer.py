from sqlalchemy import Column, DateTime, Integer, String, func

from . import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    company_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
