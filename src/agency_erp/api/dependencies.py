"""FastAPI dependencies for dependency injection."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from agency_erp.identity import CallerContext
from agency_erp.services.container import Services


def get_services(request: Request) -> Services:
    """Service graph built at application startup."""
    return request.app.state.services


async def get_caller(
    services: Annotated[Services, Depends(get_services)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> CallerContext:
    """Resolve the caller from the X-User-ID header."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID header is required",
        )
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )
    ctx = await services.identity.resolve(user_id)
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    return ctx


# Type aliases for cleaner dependency injection
ServicesDep = Annotated[Services, Depends(get_services)]
Caller = Annotated[CallerContext, Depends(get_caller)]
