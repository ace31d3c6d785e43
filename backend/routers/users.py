"""Users management router."""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from dependencies import get_actor, get_audit, get_storage
from models import generate_uuid, now_ms
from schemas import Actor, AuditAction, UserCreate, UserResponse
from services.audit_service import AuditService
from services.storage_service import StorageService

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
async def list_users(storage: StorageService = Depends(get_storage)):
    """List all users, newest first."""
    users = await storage.users.get_all()
    return sorted(users, key=lambda u: u.created_at or 0, reverse=True)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    storage: StorageService = Depends(get_storage),
    audit: AuditService = Depends(get_audit),
    actor: Actor = Depends(get_actor)
):
    """Create a user. Emails are unique regardless of case."""
    valid_roles = ["admin", "user"]

    if user_data.role not in valid_roles:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid role. Must be one of: {', '.join(valid_roles)}"
        )

    existing = await storage.users.get_all()
    if any(u.email.lower() == user_data.email.lower() for u in existing):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists"
        )

    new_user = UserResponse(
        id=generate_uuid(),
        email=user_data.email,
        name=user_data.name,
        role=user_data.role,
        created_at=now_ms(),
        is_active=True,
    )
    await storage.users.put(new_user)
    await audit.log_action(actor, AuditAction.CREATE, "Users", f"New user created: {new_user.email}")

    return new_user
