from sqlalchemy.orm import Session
from decimal import Decimal, InvalidOperation
from models.app_config import AppConfig
from schemas.app_config import AppConfigCreate, AppConfigUpdate, FeeConfig
from utils.dates import local_now
import logging

logger = logging.getLogger(__name__)

# Quarry fee configuration keys
LOADERS_FEE = "LOADERS_FEE"
LAND_RATE_FEE = "LAND_RATE_FEE"
REJECTS_FEE = "REJECTS_FEE"

# Accounting policy keys
PERIOD_CLOSE_POLICY = "PERIOD_CLOSE_POLICY"
AUTO_POST_GENERATED = "AUTO_POST_GENERATED"
CASCADE_MAX_DAYS = "CASCADE_MAX_DAYS"

# Row used as the per-tenant serialisation point for the closing-balance cascade
CASCADE_LOCK = "CLOSING_BALANCE_LOCK"

DEFAULT_CONFIGS = [
    {"name": LOADERS_FEE, "value": "50"},
    {"name": LAND_RATE_FEE, "value": "10"},
    {"name": REJECTS_FEE, "value": "5"},
    {"name": PERIOD_CLOSE_POLICY, "value": "strict"},
    {"name": AUTO_POST_GENERATED, "value": "true"},
    {"name": CASCADE_MAX_DAYS, "value": "0"},
]


# Create a new config entry
def create_config(db: Session, config: AppConfigCreate, tenant_id: str, user_id: str):
    db_config = AppConfig(name=config.name, value=config.value, tenant_id=tenant_id, created_by=user_id)
    db.add(db_config)
    db.commit()
    db.refresh(db_config)
    logger.info(f"Config '{config.name}' created for tenant {tenant_id} by {user_id}")
    return db_config


# Get config by name (or all configs)
def get_config(db: Session, tenant_id: str, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name, AppConfig.tenant_id == tenant_id).first()
    return db.query(AppConfig).filter(AppConfig.tenant_id == tenant_id).all()


# Update config by name
def update_config_by_name(db: Session, name: str, config: AppConfigUpdate, tenant_id: str, user_id: str):
    db_config = get_config(db, tenant_id, name=name)
    if not db_config:
        return None

    for field, value in config.model_dump(exclude_unset=True).items():
        setattr(db_config, field, value)
    db_config.updated_at = local_now()
    db_config.updated_by = user_id
    db.commit()
    db.refresh(db_config)
    logger.info(f"Config '{name}' updated for tenant {tenant_id} by {user_id}")
    return db_config


def initialize_default_configs(db: Session, tenant_id: str, user_id: str):
    """Create any missing default configs; existing values are never overwritten."""
    existing_names = {name for (name,) in db.query(AppConfig.name).filter(AppConfig.tenant_id == tenant_id)}
    created = []
    for config_data in DEFAULT_CONFIGS:
        if config_data["name"] not in existing_names:
            create_config(db, AppConfigCreate(**config_data), tenant_id, user_id=user_id)
            created.append(config_data["name"])
    return created


def _config_dict(db: Session, tenant_id: str):
    configs = db.query(AppConfig).filter(AppConfig.tenant_id == tenant_id).all()
    return {c.name: c.value for c in configs}


def _as_decimal(raw, name: str) -> Decimal:
    try:
        return Decimal(str(raw))
    except (InvalidOperation, TypeError):
        logger.warning(f"Config '{name}' has non-numeric value {raw!r}; using 0")
        return Decimal("0")


def get_fee_config(db: Session, tenant_id: str) -> FeeConfig:
    config_dict = _config_dict(db, tenant_id)
    return FeeConfig(
        loaders_fee=_as_decimal(config_dict.get(LOADERS_FEE, "0"), LOADERS_FEE),
        land_rate_fee=_as_decimal(config_dict.get(LAND_RATE_FEE, "0"), LAND_RATE_FEE),
        rejects_fee=_as_decimal(config_dict.get(REJECTS_FEE, "0"), REJECTS_FEE),
    )


def get_accounting_config(db: Session, tenant_id: str):
    config_dict = _config_dict(db, tenant_id)
    policy = config_dict.get(PERIOD_CLOSE_POLICY, "strict").strip().lower()
    if policy not in ("strict", "flag"):
        logger.warning(f"Unknown {PERIOD_CLOSE_POLICY} '{policy}' for tenant {tenant_id}; using strict")
        policy = "strict"
    try:
        max_days = int(config_dict.get(CASCADE_MAX_DAYS, "0"))
    except ValueError:
        max_days = 0
    return {
        "period_close_policy": policy,
        "auto_post_generated": config_dict.get(AUTO_POST_GENERATED, "true").strip().lower() in ("1", "true", "yes"),
        "cascade_max_days": max(max_days, 0),
    }


def update_fee_config(db: Session, fees: FeeConfig, tenant_id: str, user_id: str):
    updates = {LOADERS_FEE: fees.loaders_fee, LAND_RATE_FEE: fees.land_rate_fee, REJECTS_FEE: fees.rejects_fee}
    for name, value in updates.items():
        db_config = get_config(db, tenant_id, name=name)
        if db_config:
            db_config.value = str(value)
            db_config.updated_at = local_now()
            db_config.updated_by = user_id
        else:
            db.add(AppConfig(name=name, value=str(value), tenant_id=tenant_id, created_by=user_id))
    db.commit()
    return get_fee_config(db, tenant_id)


def lock_tenant_row(db: Session, tenant_id: str):
    """Take a row lock that serialises cascade runs for one tenant.

    Held until the caller's transaction ends. SQLite ignores FOR UPDATE and
    serialises writers at the database level instead.
    """
    lock_row = db.query(AppConfig).filter(
        AppConfig.name == CASCADE_LOCK, AppConfig.tenant_id == tenant_id
    ).with_for_update().first()
    if lock_row is None:
        db.add(AppConfig(name=CASCADE_LOCK, value="0", tenant_id=tenant_id, created_by="system"))
        db.flush()
        lock_row = db.query(AppConfig).filter(
            AppConfig.name == CASCADE_LOCK, AppConfig.tenant_id == tenant_id
        ).with_for_update().first()
    return lock_row
