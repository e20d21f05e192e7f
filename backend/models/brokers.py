from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin


class Broker(Base, AuditMixin):
    __tablename__ = "brokers"

    id = Column(Integer, primary_key=True, index=True)
    broker_name = Column(String(150), nullable=False)
    phone = Column(String(30), nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    sales = relationship("Sale", back_populates="broker")
