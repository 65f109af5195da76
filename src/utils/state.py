from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from db.models import Role, User


@dataclass
class GlobalState:
    """
    Who is using the app right now, shared by every screen.

    Fields:
      - uid: users.id of the logged-in user, None before login
      - username: display name
      - role: "customer" | "admin" | None if nobody is logged in
    """

    uid: Optional[int] = None
    username: Optional[str] = None
    role: Optional[Role] = None

    @property
    def logged_in(self) -> bool:
        return self.uid is not None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def login(self, user: User) -> None:
        self.uid = user.id
        self.username = user.username
        self.role = user.role

    def logout(self) -> None:
        self.uid = None
        self.username = None
        self.role = None
