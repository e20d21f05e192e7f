from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Date
from database import Base
from models.audit_mixin import AuditMixin


class FuelUsage(Base, AuditMixin):
    __tablename__ = "fuel_usage"

    id = Column(Integer, primary_key=True, index=True)
    usage_date = Column(Date, nullable=False, index=True)
    old_stock = Column(Numeric(12, 2), nullable=False, default=0)
    new_stock = Column(Numeric(12, 2), nullable=False, default=0)
    machines_loaded = Column(Numeric(12, 2), nullable=False, default=0)
    wheel_loaders_loaded = Column(Numeric(12, 2), nullable=False, default=0)
    # Optional; when set the litres used are expensed to Fuel
    cost_per_litre = Column(Numeric(12, 2), nullable=True)
    tenant_id = Column(String, index=True, nullable=False)

    @property
    def total_stock(self) -> Decimal:
        return Decimal(self.old_stock or 0) + Decimal(self.new_stock or 0)

    @property
    def used(self) -> Decimal:
        return Decimal(self.machines_loaded or 0) + Decimal(self.wheel_loaders_loaded or 0)

    @property
    def balance(self) -> Decimal:
        return self.total_stock - self.used

    @property
    def cost(self) -> Decimal:
        if not self.cost_per_litre:
            return Decimal("0")
        return self.used * Decimal(self.cost_per_litre)
