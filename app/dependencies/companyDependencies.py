from typing import Annotated
from fastapi import Depends, Request, HTTPException, status
from uuid import UUID


def get_tenant_id(request: Request) -> UUID:
    """Extract the company id from request state set by TenantMiddleware"""
    if not hasattr(request.state, 'tenant_id'):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant context not found. Ensure X-Company-ID header is provided."
        )
    return request.state.tenant_id


TenantId = Annotated[UUID, Depends(get_tenant_id)]
