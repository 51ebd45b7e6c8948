from pydantic import BaseModel

from app.schemas import UserRole


class Actor(BaseModel):
    """Authenticated caller of a domain operation."""

    user_id: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def has_trainer_role(self) -> bool:
        return self.role in (UserRole.TRAINER, UserRole.ADMIN)

    def can_access_user(self, user_id: str) -> bool:
        """Owner-or-admin check for account resources."""
        return self.is_admin or self.user_id == user_id
