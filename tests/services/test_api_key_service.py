"""
Tests for the API key registry
"""
import pytest
from unittest.mock import MagicMock, patch
from sqlalchemy.exc import IntegrityError

from api.errors import Conflict, Forbidden, InvalidFormat, NotFound
from api.services.api_key_service import (
    ApiKeyService,
    generate_key_string,
    mask_key,
    validate_format,
)
from api.services.identity import Identity
from db.models import ApiKey, LogEntry, User
from db.models.user import ROLE_ADMIN
from db.repositories.api_key_repository import ApiKeyRepository
from db.repositories.user_repository import UserRepository


@pytest.fixture
def owner(db_session):
    user = User(email="owner@example.com", hashed_password="hashed")
    return UserRepository(db_session).create_user(user)


@pytest.fixture
def service(db_session):
    return ApiKeyService(ApiKeyRepository(db_session), UserRepository(db_session))


class TestKeyFormat:
    def test_generated_keys_are_well_formed_and_unique(self):
        keys = [generate_key_string() for _ in range(10_000)]
        assert all(validate_format(key) for key in keys)
        assert all(len(key) == 35 and key.startswith("wp_") for key in keys)
        assert len(set(keys)) == len(keys)

    @pytest.mark.parametrize(
        "candidate",
        [
            "",
            "wp_",
            "wp_" + "a" * 31,
            "wp_" + "a" * 33,
            "wp_" + "A" * 32,
            "xx_" + "a" * 32,
            "wp-" + "a" * 32,
            "wp_" + "a" * 31 + "!",
            "wp_" + "a" * 32 + "\n",
            " wp_" + "a" * 32,
            None,
            12345,
        ],
    )
    def test_validate_format_rejects_malformed(self, candidate):
        assert validate_format(candidate) is False

    def test_validate_format_accepts_expected_shape(self):
        assert validate_format("wp_a1b2c3d4e5f6g7h8i9j0k1l2m3n4o5p6") is True

    def test_mask_key_shows_prefix_only(self):
        assert mask_key("wp_a1b2c3d4e5f6g7h8i9j0k1l2m3n4o5p6") == "wp_a1b2c3d..."


class TestGenerate:
    def test_generate_persists_active_key(self, service, owner):
        api_key = service.generate(owner.id)
        assert api_key.id is not None
        assert api_key.user_id == owner.id
        assert api_key.is_active is True
        assert validate_format(api_key.key)

    def test_generate_many_keys_never_collide(self, service, owner):
        keys = {service.generate(owner.id).key for _ in range(50)}
        assert len(keys) == 50

    def test_generate_retries_on_collision(self):
        api_key_repo = MagicMock()
        api_key_repo.create.side_effect = [
            IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")),
            None,
        ]
        service = ApiKeyService(api_key_repo, MagicMock())
        api_key = service.generate(7)
        assert api_key_repo.create.call_count == 2
        assert api_key.user_id == 7

    def test_generate_gives_up_after_repeated_collisions(self):
        api_key_repo = MagicMock()
        api_key_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("dup"))
        service = ApiKeyService(api_key_repo, MagicMock())
        with pytest.raises(Conflict):
            service.generate(7)

    def test_generate_for_unknown_user(self, service):
        with pytest.raises(NotFound):
            service.generate_for_user(999)


class TestResolve:
    def test_resolve_returns_key(self, service, owner):
        created = service.generate(owner.id)
        resolved = service.resolve(created.key)
        assert resolved.id == created.id
        assert resolved.user_id == owner.id

    def test_resolve_malformed_never_touches_store(self):
        api_key_repo = MagicMock()
        service = ApiKeyService(api_key_repo, MagicMock())
        with pytest.raises(InvalidFormat):
            service.resolve("not-a-key")
        api_key_repo.get_by_key.assert_not_called()

    def test_resolve_unknown_key(self, service):
        with pytest.raises(NotFound):
            service.resolve(generate_key_string())

    def test_resolve_returns_inactive_keys(self, service, owner):
        created = service.generate(owner.id)
        service.revoke(created.id)
        assert service.resolve(created.key).is_active is False


class TestLifecycle:
    def test_revoke_is_idempotent(self, service, owner):
        created = service.generate(owner.id)
        assert service.revoke(created.id).is_active is False
        assert service.revoke(created.id).is_active is False

    def test_revoke_unknown_key(self, service):
        with pytest.raises(NotFound):
            service.revoke(404)

    def test_toggle_flips_state(self, service, owner):
        created = service.generate(owner.id)
        assert service.toggle(created.id).is_active is False
        assert service.toggle(created.id).is_active is True

    def test_revoke_owned_hides_other_users_keys(self, service, owner, db_session):
        other = UserRepository(db_session).create_user(
            User(email="other@example.com", hashed_password="hashed")
        )
        created = service.generate(owner.id)
        with pytest.raises(NotFound):
            service.revoke_owned(created.id, Identity(subject_id=other.id, role="USER"))
        assert service.get(created.id).is_active is True

    def test_get_owned_maps_ownership_refusal_to_not_found(self, service, owner):
        created = service.generate(owner.id)
        caller = Identity(subject_id=owner.id, role="USER")
        assert service.get_owned(created.id, caller).id == created.id
        with patch(
            "api.services.api_key_service.ensure_owner",
            side_effect=Forbidden("Not allowed to act on this resource"),
        ) as check:
            with pytest.raises(NotFound):
                service.get_owned(created.id, caller)
        check.assert_called_once()
        assert check.call_args[0][1] == owner.id

    def test_admin_may_revoke_any_key(self, service, owner):
        created = service.generate(owner.id)
        admin = Identity(subject_id=999, role=ROLE_ADMIN)
        assert service.revoke_owned(created.id, admin).is_active is False

    def test_list_for_user_newest_first(self, service, owner):
        first = service.generate(owner.id)
        second = service.generate(owner.id)
        service.revoke(first.id)
        assert [k.id for k in service.list_for_user(owner.id)] == [second.id, first.id]
        assert [k.id for k in service.list_for_user(owner.id, active_only=True)] == [second.id]

    def test_delete_keeps_log_entries(self, service, owner, db_session):
        created = service.generate(owner.id)
        db_session.add(
            LogEntry(
                api_key_id=created.id,
                user_id=owner.id,
                key_prefix=created.key[:10],
                endpoint="/api/send-receipt",
                status="success",
            )
        )
        db_session.commit()

        service.delete(created.id)

        assert db_session.query(ApiKey).count() == 0
        entry = db_session.query(LogEntry).one()
        assert entry.api_key_id is None
        assert entry.user_id == owner.id
