# registration and login; identity is trusted by the other services as given
from __future__ import annotations

from db import models
from db.database import Database
from db.users import UserStore
from utils.errors import EmailTaken, InvalidCredentials, UserNotFound, ValidationError
from utils.logger import get_logger
from utils.security import hash_password, verify_password

_logger = get_logger(__name__)

MIN_USERNAME = 3
MIN_PASSWORD = 6


class AccountService:
    def __init__(self, database: Database) -> None:
        self.database = database

    async def register(self, username: str, email: str, password: str) -> models.User:
        """Create a customer account."""
        username = (username or "").strip()
        email = (email or "").strip()
        if len(username) < MIN_USERNAME:
            raise ValidationError(
                f"username must be at least {MIN_USERNAME} characters", field="username"
            )
        if "@" not in email:
            raise ValidationError("email address is not valid", field="email")
        if len(password or "") < MIN_PASSWORD:
            raise ValidationError(
                f"password must be at least {MIN_PASSWORD} characters", field="password"
            )

        digest, salt = hash_password(password)
        async with self.database.transaction() as conn:
            users = UserStore(conn)
            if await users.exists(username, email):
                raise EmailTaken(email)
            user = await users.create(username, email, digest, salt)
        _logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def login(self, email: str, password: str) -> models.User:
        async with self.database.connect() as conn:
            user = await UserStore(conn).find_by_email((email or "").strip())
        if user is None or not verify_password(password or "", user.pwd_hash, user.pwd_salt):
            _logger.warning(f"Failed login for {email!r}")
            raise InvalidCredentials()
        _logger.info(f"User {user.id} logged in as {user.role}")
        return user

    async def get_user(self, user_id: int) -> models.User:
        async with self.database.connect() as conn:
            user = await UserStore(conn).find_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user
