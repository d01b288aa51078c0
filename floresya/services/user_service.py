"""
UserService - registration and credential checks
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from floresya.core.exceptions import EmailAlreadyRegistered
from floresya.core.security import hash_password, verify_password
from floresya.models import User, UserRole
from floresya.repositories import UserRepository
from floresya.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession, log: Optional[logging.Logger] = None):
        self.db = db
        self.log = log or logger
        self.users = UserRepository(db)

    async def register(self, data: UserCreate) -> User:
        if await self.users.get_by_email(data.email):
            raise EmailAlreadyRegistered()

        try:
            user = await self.users.add(User(
                email=data.email.lower(),
                hashed_password=hash_password(data.password),
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                phone=data.phone,
                role=UserRole.CUSTOMER.value,
                is_active=True,
            ))
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise EmailAlreadyRegistered()
        except Exception:
            await self.db.rollback()
            raise

        self.log.info(f"Registered user {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None otherwise."""
        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            self.log.info("Failed login attempt")
            return None
        if not user.is_active:
            self.log.info(f"Login attempt on disabled account {user.id}")
            return None
        return user
