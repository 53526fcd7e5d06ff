import logging
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from leave_lottery.core.database import get_async_session
from leave_lottery.auth.jwt_handler import decode_access_token
from leave_lottery.models.staff.staff import Staff

security = HTTPBearer()
logger = logging.getLogger(__name__)

def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_staff(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> Staff:
    """Resolve the staff member named by the bearer token"""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    result = await session.execute(select(Staff).where(Staff.staff_id == payload["sub"]))
    staff = result.scalar_one_or_none()

    if staff is None or not staff.is_active:
        logger.warning(f"Rejected token for unknown or inactive staff {payload['sub']}")
        raise _unauthorized("Staff member not found or inactive")

    request.state.current_staff = staff
    return staff

async def require_admin(
    current_staff: Staff = Depends(get_current_staff)
) -> Staff:
    """Gate an endpoint to administrators"""
    if not current_staff.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required"
        )
    return current_staff
