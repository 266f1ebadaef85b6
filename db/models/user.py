from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from db.base import Base
from datetime import datetime, timezone

# Role constants
ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"
ROLES = (ROLE_ADMIN, ROLE_USER)


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    api_keys = relationship("ApiKey", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
