"""
Authentication API endpoints.

Provides register, login, logout and profile endpoints for the web and mobile clients.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from getlife.app.db.session import get_db
from getlife.app.models.user import User
from getlife.app.models.enums import UserRole, ProfileStatus
from getlife.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse, ProfileUpdate
from getlife.app.core.security import get_password_hash, verify_password
from getlife.app.core.jwt import create_access_token
from getlife.app.core.dependencies import get_current_user, security
from getlife.app.core.token_revocation import revoke_token
from getlife.app.services.account_ledger import AccountLedger
from getlife.app.services.audit import log_auth_event, log_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.username, user.role),
        token_type="bearer",
        user_id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new customer.

    Only the USER role can self-register. Admins are seeded and mitras are
    created by approving an application. A zero-balance account is opened
    with the user.
    """
    result = await db.execute(
        select(User).where(
            or_(User.username == user_data.username, User.email == user_data.email)
        )
    )
    existing_user = result.scalar_one_or_none()

    if existing_user:
        if existing_user.username == user_data.username:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already registered"
            )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.USER,
        full_name=user_data.full_name,
        phone=user_data.phone,
        address=user_data.address,
        status=ProfileStatus.ACTIVE,
        is_active=True,
        is_superuser=False
    )

    db.add(new_user)
    await db.flush()
    await AccountLedger.open_account(db, new_user.id)
    await log_event(
        db,
        action=AuditAction.USER_REGISTERED,
        actor_id=new_user.id,
        actor_username=new_user.username,
        target_user_id=new_user.id,
        target_username=new_user.username,
    )
    await db.refresh(new_user)

    return _issue_token(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Accepts username or email for login. Mitras must be verified; a mitra
    whose account is blocked can still log in to top up.
    Logs successful and failed login attempts for security monitoring.
    """
    ip_address = request.client.host if request.client else None

    result = await db.execute(
        select(User).where(
            or_(User.username == credentials.username, User.email == credentials.username)
        )
    )
    user = result.scalar_one_or_none()

    if not user:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=None,
            username=credentials.username,
            ip_address=ip_address,
            metadata={"reason": "User not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.username,
            ip_address=ip_address,
            metadata={"reason": "Invalid password"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.username,
            ip_address=ip_address,
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    if user.role == UserRole.MITRA and user.status != ProfileStatus.VERIFIED:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.username,
            ip_address=ip_address,
            metadata={"reason": "Mitra not verified"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Mitra account is not verified yet"
        )

    token = _issue_token(user)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        username=user.username,
        ip_address=ip_address
    )

    return token


@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Revoke the token used for this request.

    Other sessions of the same user stay valid.
    """
    revoked = await revoke_token(credentials.credentials, current_user["user_id"])
    if not revoked:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not revoke token, please retry"
        )

    await log_event(
        db,
        action=AuditAction.TOKEN_REVOKED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={"reason": "logout"}
    )
    return {"message": "Logged out"}


async def _load_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Args:
        current_user: Decoded JWT payload from auth dependency
        db: Database session

    Returns:
        UserResponse with complete profile information

    Raises:
        404: If user not found in database
    """
    user = await _load_user(db, current_user.get("user_id"))
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    update: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, phone or address of the current user."""
    user = await _load_user(db, current_user.get("user_id"))

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)

    await log_event(
        db,
        action=AuditAction.PROFILE_UPDATED,
        actor_id=user.id,
        actor_username=user.username,
        target_user_id=user.id,
        target_username=user.username,
        metadata={"fields": sorted(changes)}
    )
    await db.refresh(user)

    return UserResponse.model_validate(user)
