from fastapi import Depends, HTTPException, status

from slipboard.auth.dependencies import get_current_user
from slipboard.auth.schemas import CurrentUser
from slipboard.core.enums import UserRole


async def require_teacher(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Teachers (and admins acting as teachers) only. Class ownership is checked by the services."""
    if current_user.role not in (UserRole.TEACHER.value, UserRole.ADMIN.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only teachers can perform this action",
        )
    return current_user


async def require_guardian(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if current_user.role != UserRole.PARENT.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only parents can perform this action",
        )
    return current_user
