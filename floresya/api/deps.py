"""
API dependencies

Bearer-token authentication and per-request service construction. Services
get the request's session and an event sink that runs notifications as
background tasks once the response has been sent.
"""
from typing import Optional

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from floresya.core.config import settings
from floresya.core.database import get_db
from floresya.core.security import token_user_id
from floresya.models.user import User
from floresya.services.catalog_service import CatalogService
from floresya.services.email_provider import get_email_provider
from floresya.services.notifications import BackgroundTaskSink, EventSink, NotificationDispatcher
from floresya.services.order_emails import OrderEmailService
from floresya.services.order_service import OrderService
from floresya.services.payment_service import PaymentService
from floresya.services.storage import ProofImageStore
from floresya.services.user_service import UserService

# Optional bearer - doesn't fail if no Authorization header
security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    user_id = token_user_id(token)
    if user_id is None:
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = await _user_from_token(credentials.credentials, db)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Require admin user"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise"""
    if not credentials or not credentials.credentials:
        return None

    user = await _user_from_token(credentials.credentials, db)
    if user is None or not user.is_active:
        return None
    return user


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(OrderEmailService(get_email_provider()))


def get_event_sink(
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> EventSink:
    return BackgroundTaskSink(background_tasks, dispatcher)


def get_proof_store() -> ProofImageStore:
    return ProofImageStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)


def get_order_service(
    db: AsyncSession = Depends(get_db),
    events: EventSink = Depends(get_event_sink),
) -> OrderService:
    return OrderService(db, events)


def get_payment_service(
    db: AsyncSession = Depends(get_db),
    events: EventSink = Depends(get_event_sink),
    store: ProofImageStore = Depends(get_proof_store),
) -> PaymentService:
    return PaymentService(db, events, store)


def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)
