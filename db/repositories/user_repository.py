from sqlalchemy import func
from sqlalchemy.orm import Session
from db.models.user import User
from db.models.api_key import ApiKey


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_user(self, user: User):
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_user_by_email(self, email: str):
        return self.db.query(User).filter(User.email == email).first()

    def get_user_by_id(self, user_id: int):
        return self.db.query(User).filter(User.id == user_id).first()

    def list_users(self, limit: int = None):
        """Get all users newest first, optionally limited"""
        query = self.db.query(User).order_by(User.created_at.desc(), User.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def count_users(self) -> int:
        return self.db.query(User).count()

    def api_key_counts(self) -> dict[int, int]:
        """Map of user id to number of API keys owned"""
        rows = (
            self.db.query(ApiKey.user_id, func.count(ApiKey.id))
            .group_by(ApiKey.user_id)
            .all()
        )
        return {user_id: count for user_id, count in rows}
