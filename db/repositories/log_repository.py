from sqlalchemy.orm import Session, joinedload
from db.models.log_entry import LogEntry


class LogRepository:
    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: LogEntry) -> LogEntry:
        self.db.add(entry)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(entry)
        return entry

    def list_recent(self, user_id: int | None = None, limit: int = 100) -> list[LogEntry]:
        """Newest entries first; restricted to one key owner when user_id is given"""
        query = self.db.query(LogEntry).options(joinedload(LogEntry.user))
        if user_id is not None:
            query = query.filter(LogEntry.user_id == user_id)
        return query.order_by(LogEntry.timestamp.desc(), LogEntry.id.desc()).limit(limit).all()

    def count(self) -> int:
        return self.db.query(LogEntry).count()
