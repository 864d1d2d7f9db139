from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from portal_shared.constants import Role


class CurrentSession(BaseModel):
    """Identity context carried by a session token; used by every surface."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    subject_id: UUID
    role: Role
    issued_at: datetime
    expires_at: datetime

    @property
    def pending_approval(self) -> bool:
        return self.role is Role.PENDING_DOCTOR
