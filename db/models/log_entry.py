from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from db.base import Base
from db.models.user import utcnow

# Log status constants
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class LogEntry(Base):
    __tablename__ = "logs"
    id = Column(Integer, primary_key=True)
    # Nulled when the key is deleted; user_id and key_prefix keep the entry attributable
    api_key_id = Column(
        Integer, ForeignKey("api_keys.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    key_prefix = Column(String, nullable=False)
    endpoint = Column(String, nullable=False)
    status = Column(String, nullable=False)
    request_data = Column(JSON, nullable=True)
    response_data = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    api_key = relationship("ApiKey")
    user = relationship("User")
