from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models
from app.auth import create_token, get_current_user
from app.database import get_db
from app.schemas.requests import (
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from app.schemas.responses import AuthResponse, Envelope, UserOut, UserResponse
from app.services import accounts

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    user = accounts.register_user(
        db,
        name=request.name,
        email=request.email,
        password=request.password,
        user_type=request.user_type,
    )
    return AuthResponse(
        message="Registration successful",
        token=create_token(user.id),
        user=UserOut.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = accounts.authenticate(db, request.email, request.password)
    return AuthResponse(
        message="Login successful",
        token=create_token(user.id),
        user=UserOut.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
def me(user: models.User = Depends(get_current_user)):
    return UserResponse(user=UserOut.model_validate(user))


@router.put("/update", response_model=UserResponse)
def update_profile(
    request: ProfileUpdateRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = accounts.update_profile(
        db,
        user,
        name=request.name,
        phone=request.phone,
        address=request.address.model_dump() if request.address else None,
    )
    return UserResponse(message="Profile updated successfully", user=UserOut.model_validate(user))


@router.put("/password", response_model=Envelope)
def change_password(
    request: PasswordChangeRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.change_password(db, user, request.current_password, request.new_password)
    return Envelope(message="Password changed successfully")
