"""
User endpoints for API v1.

Login is open; everything else requires a token.  Account management
is restricted to administrators.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status

from equipment_reservation_api.app.core.security import create_access_token, get_current_user, require_roles
from equipment_reservation_api.app.schemas.user import UserCreate, UserLogin, UserRead, UserUpdate
from equipment_reservation_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/login")
async def login_user(credentials: UserLogin) -> Dict[str, str]:
    """Authenticate with email and password and return a bearer token."""
    user = await UserService.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token({"sub": user.email})
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: Dict[str, Any] = Depends(get_current_user)) -> UserRead:
    user = await UserService.get_user(current_user["user_id"])
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/", response_model=List[UserRead])
async def list_users(
    search: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> List[UserRead]:
    """List all users, optionally filtered by a name/email substring."""
    if search:
        return await UserService.search_users(search)
    return await UserService.list_users()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> UserRead:
    """Register a new user.  A duplicate email yields HTTP 409."""
    return await UserService.create_user(user)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: str = Path(..., description="ID of the user"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> UserRead:
    user = await UserService.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    update: UserUpdate,
    user_id: str = Path(..., description="ID of the user"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> UserRead:
    """Replace a user's profile; omit ``password`` to keep the current one."""
    user = await UserService.update_user(user_id, update)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str = Path(..., description="ID of the user"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> None:
    """Delete a user.  Administrators cannot delete their own account."""
    if user_id == current_user.get("user_id"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    await UserService.delete_user(user_id)
