"""API key registry: generation, lookup and lifecycle of long-lived keys."""

import logging
import re
import secrets
import string

from sqlalchemy.exc import IntegrityError

from api.errors import Conflict, Forbidden, InvalidFormat, NotFound
from api.services.identity import Identity, ensure_owner
from db.models.api_key import ApiKey
from db.repositories.api_key_repository import ApiKeyRepository
from db.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

KEY_PREFIX = "wp_"
KEY_BODY_LENGTH = 32
KEY_ALPHABET = string.ascii_lowercase + string.digits
KEY_PATTERN = re.compile(rf"^{KEY_PREFIX}[a-z0-9]{{{KEY_BODY_LENGTH}}}$")
MAX_GENERATE_ATTEMPTS = 5


def generate_key_string() -> str:
    """Return a fresh key such as ``wp_a1b2c3d4e5f6g7h8i9j0k1l2m3n4o5p6``."""
    body = "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_BODY_LENGTH))
    return f"{KEY_PREFIX}{body}"


def validate_format(candidate) -> bool:
    """Purely syntactic check of the key shape."""
    return isinstance(candidate, str) and KEY_PATTERN.fullmatch(candidate) is not None


def mask_key(key: str, visible: int = 10) -> str:
    return f"{key[:visible]}..."


class ApiKeyService:
    def __init__(self, api_key_repo: ApiKeyRepository, user_repo: UserRepository):
        self.api_key_repo = api_key_repo
        self.user_repo = user_repo

    def generate(self, owner_user_id: int) -> ApiKey:
        """
        Create and persist an active key for the given user.

        Uniqueness is enforced by the store; a constraint violation counts as a
        collision and the generation is retried.
        """
        for attempt in range(1, MAX_GENERATE_ATTEMPTS + 1):
            api_key = ApiKey(user_id=owner_user_id, key=generate_key_string(), is_active=True)
            try:
                self.api_key_repo.create(api_key)
            except IntegrityError:
                logger.warning(
                    f"API key collision for user {owner_user_id} (attempt {attempt})"
                )
                continue
            logger.info(f"Created API key {api_key.id} for user {owner_user_id}")
            return api_key
        raise Conflict("Could not generate a unique API key")

    def generate_for_user(self, user_id: int) -> ApiKey:
        """Admin path: the target user must exist."""
        if not self.user_repo.get_user_by_id(user_id):
            raise NotFound("User not found")
        return self.generate(user_id)

    def resolve(self, candidate: str) -> ApiKey:
        # Malformed input never reaches the store
        if not validate_format(candidate):
            raise InvalidFormat("Invalid API key format")
        api_key = self.api_key_repo.get_by_key(candidate)
        if api_key is None:
            logger.warning(f"Unknown API key {mask_key(candidate)}")
            raise NotFound("API key not found")
        return api_key

    def get(self, key_id: int) -> ApiKey:
        api_key = self.api_key_repo.get_by_id(key_id)
        if api_key is None:
            raise NotFound("API key not found")
        return api_key

    def get_owned(self, key_id: int, identity: Identity) -> ApiKey:
        """Look up a key the caller may act on; keys of other users look absent."""
        api_key = self.get(key_id)
        try:
            ensure_owner(identity, api_key.user_id)
        except Forbidden:
            raise NotFound("API key not found")
        return api_key

    def revoke(self, key_id: int) -> ApiKey:
        api_key = self.get(key_id)
        if not api_key.is_active:
            return api_key
        self.api_key_repo.set_active(api_key, False)
        logger.info(f"Revoked API key {key_id}")
        return api_key

    def revoke_owned(self, key_id: int, identity: Identity) -> ApiKey:
        self.get_owned(key_id, identity)
        return self.revoke(key_id)

    def toggle(self, key_id: int) -> ApiKey:
        api_key = self.get(key_id)
        self.api_key_repo.set_active(api_key, not api_key.is_active)
        logger.info(
            f"API key {key_id} {'activated' if api_key.is_active else 'deactivated'}"
        )
        return api_key

    def list_for_user(self, user_id: int, active_only: bool = False) -> list[ApiKey]:
        return self.api_key_repo.list_by_user(user_id, active_only=active_only)

    def list_all(self) -> list[ApiKey]:
        return self.api_key_repo.list_all()

    def delete(self, key_id: int) -> None:
        api_key = self.get(key_id)
        self.api_key_repo.delete(api_key)
        logger.info(f"Deleted API key {key_id}")
