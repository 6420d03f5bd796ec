from pydantic import BaseModel, Field

from enums.session_role import SessionRole


class ProfileDTO(BaseModel):
    address: str | None = None
    phone: str | None = None


class SessionContext(BaseModel):
    """
    The session contract consumed from the authentication collaborator.

    A missing user_id means "not authenticated".
    """
    user_id: str | None = None
    role: SessionRole = SessionRole.CUSTOMER
    profile: ProfileDTO = Field(default_factory=ProfileDTO)
    chat_id: int | None = None  # Telegram chat receiving this session's toasts, if any

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_staff(self) -> bool:
        return self.is_authenticated and self.role == SessionRole.STAFF
