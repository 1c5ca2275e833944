import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLES, get_current_session, require_roles
from ..database import CONNECTION_ERRORS, get_db
from ..models import PackageSubscription, User, UserSession
from ..rate_limiter import create_rate_limiter, get_client_ip
from ..schemas import LoginRequest, RegisterRequest, RevokeSessionRequest, model_to_dict
from ..security_utils import (
    generate_session_token,
    hash_password_bcrypt,
    session_expiry,
    verify_password_bcrypt,
)
from ..seed import get_package_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

login_rate_limit = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
register_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")

# Roles a customer may not pick for themselves at registration
STAFF_ROLES = ("admin", "superadmin", "manager", "cashier", "inventory_manager", "dispatcher", "crew")


@router.post("/login")
async def login(
    data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(login_rate_limit),
):
    if not data.email or not data.password:
        logger.warning("🔐 Login failed: missing email or password")
        raise HTTPException(status_code=400, detail="Email and password are required")

    email = data.email.strip().lower()
    try:
        user = db.query(User).filter(func.lower(User.email) == email).first()
    except CONNECTION_ERRORS as e:
        logger.error(f"🔐 Database error fetching user {email}: {e}")
        raise HTTPException(
            status_code=503, detail="Database connection failed. Please try again later."
        ) from e

    if not user or not user.password or not verify_password_bcrypt(data.password, user.password):
        logger.warning(f"🔐 Login failed: invalid credentials for {email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        logger.warning(f"🔐 Login failed: account disabled for {email}")
        raise HTTPException(status_code=403, detail="Account is disabled")

    session = UserSession(
        user_id=user.id,
        session_token=generate_session_token(),
        expires_at=session_expiry(),
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    user.last_login_at = datetime.utcnow()
    db.add(session)
    try:
        db.commit()
    except CONNECTION_ERRORS as e:
        db.rollback()
        logger.error(f"❌ Failed to create session for {email}: {e}")
        raise HTTPException(
            status_code=503, detail="Database connection failed. Please try again later."
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to create session for {email}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create session") from e
    db.refresh(user)

    logger.info(f"✅ Login successful: {email} ({user.role})")
    return {
        "success": True,
        "user": model_to_dict(user),
        "sessionToken": session.session_token,
        "expiresAt": session.expires_at.isoformat() + "Z",
        "message": "Login successful",
    }


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    _: None = Depends(register_rate_limit),
):
    logger.info(f"📝 User registration initiated: {data.email} (package: {data.subscriptionPackage})")

    existing = db.query(User).filter(func.lower(User.email) == data.email).first()
    if existing:
        raise HTTPException(status_code=409, detail="User with this email already exists")

    role = data.role or "user"
    if role in STAFF_ROLES:
        logger.warning(f"⚠️ Ignoring self-assigned role '{role}' for {data.email}")
        role = "user"

    user = User(
        email=data.email,
        full_name=data.fullName,
        password=hash_password_bcrypt(data.password),
        role=role,
        contact_number=data.contactNumber,
        address=data.address,
        default_address=data.defaultAddress,
        branch_location=data.branchLocation,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"✅ User created: {user.id}")

    subscription = None
    if data.subscriptionPackage and data.subscriptionPackage != "regular":
        price = get_package_price(data.subscriptionPackage)
        try:
            subscription = PackageSubscription(
                user_id=user.id,
                package_id=data.subscriptionPackage,
                status="pending",
                original_price=price,
                final_price=price,
                payment_method="registration",
                auto_renew=True,
            )
            db.add(subscription)
            db.commit()
            db.refresh(subscription)
            logger.info(f"📦 Subscription {subscription.id} created for package {data.subscriptionPackage}")
        except SQLAlchemyError as e:
            db.rollback()
            subscription = None
            logger.warning(f"⚠️ Failed to create subscription: {e}")

    return {
        "success": True,
        "user": model_to_dict(user),
        "subscription": model_to_dict(subscription) if subscription else None,
        "message": "User registered successfully",
    }


@router.post("/logout")
async def logout(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    db.query(UserSession).filter(UserSession.id == session.id).update(
        {UserSession.is_active: False}, synchronize_session=False
    )
    db.commit()
    logger.info(f"👋 Session closed for user {session.user_id}")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/sessions")
async def list_sessions(
    userId: Optional[str] = Query(None),
    activeOnly: bool = Query(False),
    _: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    query = db.query(UserSession, User).join(User, User.id == UserSession.user_id)
    if userId:
        query = query.filter(UserSession.user_id == userId)
    if activeOnly:
        query = query.filter(UserSession.is_active.is_(True))

    sessions = []
    for session, user in query.order_by(UserSession.created_at.desc()).all():
        entry = model_to_dict(session, exclude={"session_token"})
        entry.update(
            {"userEmail": user.email, "userFullName": user.full_name, "userRole": user.role}
        )
        sessions.append(entry)
    return {"success": True, "sessions": sessions}


@router.post("/sessions/revoke")
async def revoke_sessions(
    data: RevokeSessionRequest,
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    query = db.query(UserSession)
    if data.sessionToken:
        query, message = query.filter(UserSession.session_token == data.sessionToken), "Session token revoked"
    elif data.sessionId:
        query, message = query.filter(UserSession.id == data.sessionId), "Session id revoked"
    elif data.userId:
        query, message = query.filter(UserSession.user_id == data.userId), "All sessions for user revoked"
    else:
        raise HTTPException(status_code=400, detail="sessionToken or sessionId or userId required")

    revoked = query.update({UserSession.is_active: False}, synchronize_session=False)
    db.commit()
    logger.info(f"🔒 {current_user.email} revoked {revoked} session(s)")
    return {"success": True, "message": message, "revoked": revoked}
