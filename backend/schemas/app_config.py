from pydantic import BaseModel
from typing import Optional
from decimal import Decimal


class AppConfigBase(BaseModel):
    name: str
    value: str
    tenant_id: Optional[str] = None


class AppConfigCreate(AppConfigBase):
    pass


class AppConfigUpdate(BaseModel):
    value: Optional[str] = None


class AppConfigOut(AppConfigBase):
    id: int

    class Config:
        from_attributes = True


class FeeConfig(BaseModel):
    """Quarry per-unit fee rates."""
    loaders_fee: Decimal = Decimal("0")
    land_rate_fee: Decimal = Decimal("0")
    rejects_fee: Decimal = Decimal("0")
