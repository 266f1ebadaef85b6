from .api_key import ApiKey
from .log_entry import LogEntry
from .user import User

__all__ = ["ApiKey", "LogEntry", "User"]
