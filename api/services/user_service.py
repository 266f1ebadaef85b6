from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from api.errors import Conflict, InvalidFormat, NotFound, Unauthenticated
from api.services.session_service import SessionIssuer
from db.models.user import User, ROLE_ADMIN, ROLE_USER
from db.repositories.user_repository import UserRepository
import logging

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# Use argon2 instead of bcrypt for better compatibility
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class UserService:
    def __init__(self, user_repo: UserRepository, session_issuer: SessionIssuer):
        self.user_repo = user_repo
        self.session_issuer = session_issuer

    def get_by_id(self, user_id: int) -> User:
        user = self.user_repo.get_user_by_id(user_id)
        if not user:
            logger.error(f"User with ID {user_id} not found")
            raise NotFound("User not found")
        return user

    def create_user(self, email: str, password: str, role: str = ROLE_USER) -> User:
        if not email or "@" not in email:
            logger.error(f"Invalid email address: {email}")
            raise InvalidFormat("Invalid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            logger.error("Password too short")
            raise InvalidFormat(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if self.user_repo.get_user_by_email(email):
            logger.error(f"Email already registered: {email}")
            raise Conflict("User already exists", status_code=400)
        user = User(email=email, hashed_password=pwd_context.hash(password), role=role)
        try:
            self.user_repo.create_user(user)
        except IntegrityError:
            # Lost a race with a concurrent registration
            self.user_repo.db.rollback()
            logger.error(f"Email already registered: {email}")
            raise Conflict("User already exists", status_code=400)
        logger.info(f"Created user with email {email} and role {role}")
        return user

    def register(self, email: str, password: str) -> tuple[User, str]:
        user = self.create_user(email, password)
        return user, self.issue_token(user)

    def login(self, email: str, password: str) -> tuple[User, str]:
        user = self.user_repo.get_user_by_email(email)
        if not user or not pwd_context.verify(password, user.hashed_password):
            logger.error(f"Login failed for email {email}: Invalid credentials")
            raise Unauthenticated("Invalid email or password")
        return user, self.issue_token(user)

    def issue_token(self, user: User) -> str:
        return self.session_issuer.issue(user.id, user.email, user.role)

    def list_users_with_key_counts(self) -> list[tuple[User, int]]:
        counts = self.user_repo.api_key_counts()
        return [(user, counts.get(user.id, 0)) for user in self.user_repo.list_users()]

    def ensure_admin(self, email: str, password: str) -> User | None:
        """Create the bootstrap admin when the store has no users yet"""
        if self.user_repo.count_users():
            logger.info("Users already exist, skipping admin creation")
            return None
        logger.info(f"Creating admin user from environment variables: {email}")
        return self.create_user(email, password, role=ROLE_ADMIN)
