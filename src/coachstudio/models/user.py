from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from coachstudio.database import Base
from coachstudio.models.enums import UserRole
from coachstudio.models.types import UTCDateTime, enum_type, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    role: Mapped[UserRole] = mapped_column(
        enum_type(UserRole), default=UserRole.MEMBER
    )  # member, coach, owner
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    @property
    def can_coach(self) -> bool:
        return self.role in (UserRole.COACH, UserRole.OWNER)
