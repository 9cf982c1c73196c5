from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.http_errors import value_error
from app.core.errors import AuthFailure, ValidationError
from app.core.security import create_access_token
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from app.services.users import register, verify_credentials

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=RegisterResponse)
async def register_user(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    try:
        user_id = await register(db, payload.username, payload.name, payload.password)
        await db.commit()
    except ValidationError as e:
        await db.rollback()
        raise value_error(
            e,
            code_statuses={"duplicate_username": 400},
            detail_overrides={"duplicate_username": "Username already exists"},
            default_detail="Failed to register user",
        ) from e

    return RegisterResponse(message="User registered successfully", id=user_id)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    try:
        user = await verify_credentials(db, payload.username, payload.password)
    except AuthFailure as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    token = create_access_token(user.id, user.username)
    return LoginResponse(access_token=token)
