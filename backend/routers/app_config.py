from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.app_config import AppConfigCreate, AppConfigUpdate, AppConfigOut, FeeConfig
from crud import app_config as crud_app_config
from crud import ledger_accounts as crud_ledger_accounts
from utils.auth_utils import get_current_user, get_user_identifier, require_group
from utils.tenancy import get_tenant_id

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/configurations/", response_model=AppConfigOut)
def create_config(config: AppConfigCreate, db: Session = Depends(get_db), user: dict = Depends(require_group(["admin"])), tenant_id: str = Depends(get_tenant_id)):
    if crud_app_config.get_config(db, tenant_id, name=config.name):
        raise HTTPException(status_code=400, detail=f"Configuration '{config.name}' already exists")
    return crud_app_config.create_config(db, config, tenant_id, user_id=get_user_identifier(user))


@router.get("/configurations/", response_model=List[AppConfigOut])
def get_configs(name: Optional[str] = None, db: Session = Depends(get_db), user: dict = Depends(get_current_user), tenant_id: str = Depends(get_tenant_id)):
    configs = crud_app_config.get_config(db, tenant_id, name=name)
    # Always return a list, even if empty
    return [configs] if name and configs else configs or []


@router.patch("/configurations/{name}/", response_model=AppConfigOut)
def update_config(name: str, config: AppConfigUpdate, db: Session = Depends(get_db), user: dict = Depends(require_group(["admin"])), tenant_id: str = Depends(get_tenant_id)):
    updated = crud_app_config.update_config_by_name(db, name, config, tenant_id, user_id=get_user_identifier(user))
    if not updated:
        raise HTTPException(status_code=404, detail="Configuration not found")
    return updated


@router.get("/configurations/fees", response_model=FeeConfig)
def get_fee_config(db: Session = Depends(get_db), user: dict = Depends(get_current_user), tenant_id: str = Depends(get_tenant_id)):
    return crud_app_config.get_fee_config(db, tenant_id)


@router.put("/configurations/fees", response_model=FeeConfig)
def update_fee_config(fees: FeeConfig, db: Session = Depends(get_db), user: dict = Depends(require_group(["admin"])), tenant_id: str = Depends(get_tenant_id)):
    return crud_app_config.update_fee_config(db, fees, tenant_id, user_id=get_user_identifier(user))


@router.get("/tenants/configs-initialized", tags=["Tenants"])
def are_tenant_configurations_initialized(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Checks if the default configurations and chart of accounts exist for a tenant.
    """
    existing = {c.name for c in crud_app_config.get_config(db, tenant_id)}
    default_names = {c["name"] for c in crud_app_config.DEFAULT_CONFIGS}
    return {
        "configs_initialized": default_names.issubset(existing),
        "accounts_initialized": bool(crud_ledger_accounts.get_accounts(db, tenant_id, include_inactive=True, limit=1)),
    }


@router.post("/tenants/initialize-configs", status_code=status.HTTP_201_CREATED, tags=["Tenants"])
def initialize_tenant_configurations(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Initializes a new quarry with the default configurations and chart of accounts.
    This is idempotent; it will not overwrite existing configurations for the tenant.
    """
    user_id = get_user_identifier(user)
    new_configs = crud_app_config.initialize_default_configs(db, tenant_id, user_id)
    new_accounts = crud_ledger_accounts.initialize_default_accounts(db, tenant_id, user_id=user_id)

    if not new_configs and not new_accounts:
        return {"message": f"All default configurations already exist for tenant '{tenant_id}'."}

    logger.info(f"Initialized defaults for tenant '{tenant_id}' by user {user_id}. New configs: {new_configs}")
    return {
        "message": f"Successfully initialized default configurations for tenant '{tenant_id}'.",
        "new_configs": new_configs,
        "new_accounts": len(new_accounts),
    }
