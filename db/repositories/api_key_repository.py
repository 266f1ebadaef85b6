from sqlalchemy.orm import Session, joinedload
from db.models.api_key import ApiKey
from db.models.log_entry import LogEntry


class ApiKeyRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, api_key: ApiKey) -> ApiKey:
        """Insert a key; an IntegrityError on the unique key column propagates
        after the session has been rolled back."""
        self.db.add(api_key)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(api_key)
        return api_key

    def get_by_id(self, api_key_id: int) -> ApiKey | None:
        return self.db.query(ApiKey).filter(ApiKey.id == api_key_id).first()

    def get_by_key(self, key: str) -> ApiKey | None:
        return self.db.query(ApiKey).filter(ApiKey.key == key).first()

    def list_by_user(self, user_id: int, active_only: bool = False) -> list[ApiKey]:
        query = self.db.query(ApiKey).filter(ApiKey.user_id == user_id)
        if active_only:
            query = query.filter(ApiKey.is_active.is_(True))
        return query.order_by(ApiKey.created_at.desc(), ApiKey.id.desc()).all()

    def list_all(self) -> list[ApiKey]:
        return (
            self.db.query(ApiKey)
            .options(joinedload(ApiKey.user))
            .order_by(ApiKey.created_at.desc(), ApiKey.id.desc())
            .all()
        )

    def set_active(self, api_key: ApiKey, is_active: bool) -> ApiKey:
        api_key.is_active = is_active
        self.db.commit()
        self.db.refresh(api_key)
        return api_key

    def delete(self, api_key: ApiKey) -> None:
        # Detach log entries first so the delete works without FK enforcement too
        self.db.query(LogEntry).filter(LogEntry.api_key_id == api_key.id).update(
            {LogEntry.api_key_id: None}, synchronize_session=False
        )
        self.db.delete(api_key)
        self.db.commit()
