from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.schemas.user import User as UserSchema, AdminUserUpdate
from app.schemas.common import PaginatedResponse

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])

ROLES = ("user", "admin")


@router.get("/", response_model=PaginatedResponse[UserSchema])
def list_users(
    search: Optional[str] = Query(None, description="Matches name or email"),
    role: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        query = query.filter(User.role == role)

    total = query.count()
    users = query.order_by(User.id).offset((page - 1) * limit).limit(limit).all()
    return PaginatedResponse(
        data=users,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{user_id}", response_model=UserSchema)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserSchema)
def update_user(
    user_id: int,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    updates = data.model_dump(exclude_unset=True)
    if "role" in updates and updates["role"] not in ROLES:
        raise HTTPException(status_code=400, detail=f"Role must be one of: {', '.join(ROLES)}")
    if user.id == current_user.id and (
        updates.get("is_active") is False or updates.get("role", "admin") != "admin"
    ):
        raise HTTPException(status_code=400, detail="You cannot demote or deactivate yourself")

    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user
