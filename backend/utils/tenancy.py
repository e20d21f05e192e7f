from fastapi import Header, HTTPException


def get_tenant_id(x_tenant_id: str = Header(...)) -> str:
    """Quarry the request acts on, from the X-Tenant-ID header."""
    tenant_id = x_tenant_id.strip()
    if not tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is missing")
    return tenant_id
