from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Date, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin


class PaymentStatus(enum.Enum):
    PAID = "Paid"
    NOT_PAID = "NotPaid"


class Sale(Base, AuditMixin):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    sale_date = Column(Date, nullable=False, index=True)
    vehicle_registration = Column(String(30), nullable=False, index=True)
    client_name = Column(String(150), nullable=True)
    client_phone = Column(String(30), nullable=True)
    product_name = Column(String(100), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    price_per_unit = Column(Numeric(12, 2), nullable=False)
    broker_id = Column(Integer, ForeignKey("brokers.id"), nullable=True)
    commission_per_unit = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PAID)
    payment_mode = Column(String(30), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    payment_received_date = Column(Date, nullable=True)
    include_land_rate = Column(Boolean, nullable=False, default=True)
    clerk_name = Column(String(150), nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    broker = relationship("Broker", back_populates="sales")

    @property
    def gross_sale_amount(self) -> Decimal:
        return Decimal(self.quantity or 0) * Decimal(self.price_per_unit or 0)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def collected_later(self) -> bool:
        """Paid, but the money came in on a later day than the sale."""
        return (
            self.is_paid
            and self.payment_received_date is not None
            and self.payment_received_date != self.sale_date
        )
