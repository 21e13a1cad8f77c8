"""Tests for VaultService: registration, unlock, persist and logout."""

import base64
import json

import pytest

from recordvault import config
from recordvault.errors import (
    CorruptContainer,
    InvalidCredentialsOrCorruptData,
    MalformedPayload,
    NotFound,
    PersistenceFailure,
    SessionError,
    UserAlreadyExists,
)
from recordvault.session import Session, SessionState
from recordvault.storage import VaultContainer, VaultContainerStore, storage_key_for
from recordvault.vault_service import VaultService


def _stored(store, username="alice"):
    return VaultContainer.from_json(store.get(storage_key_for(username)))


# ── Registration ────────────────────────────────────────────────────


class TestRegister:

    def test_seeds_default_categories(self, service, session):
        data = service.register(session, "Alice", "correct-horse")
        assert [c.name for c in data.categories] == config.DEFAULT_CATEGORY_NAMES
        assert all(c.is_enabled for c in data.categories)
        assert data.records == []

    def test_persists_and_logs_in(self, service, session, store):
        service.register(session, "Alice", "correct-horse")
        assert service.exists("alice")
        assert service.exists("  ALICE ")
        assert session.state is SessionState.LOGGED_IN
        assert session.username == "Alice"

    def test_stored_vault_is_not_plaintext(self, service, session, store):
        service.register(session, "Alice", "correct-horse")
        raw = store.get(storage_key_for("alice"))
        assert "Bank Accounts" not in raw
        assert "correct-horse" not in raw

    def test_double_registration_rejected(self, service, registered, store):
        before = store.get(storage_key_for("alice"))
        other = Session()
        with pytest.raises(UserAlreadyExists):
            service.register(other, "ALICE", "something-else")
        assert store.get(storage_key_for("alice")) == before
        assert other.state is SessionState.LOGGED_OUT

    def test_write_failure_leaves_logged_out(self, service, session, store):
        store.fail_writes = True
        with pytest.raises(PersistenceFailure):
            service.register(session, "Alice", "correct-horse")
        assert session.state is SessionState.LOGGED_OUT
        assert not service.exists("alice")

    def test_permission_failure_can_be_retried(self, file_store, monkeypatch):
        import recordvault.storage as storage_mod

        file_service = VaultService(file_store)
        session = Session()
        real_permissions = storage_mod.set_owner_only_permissions

        def refuse(path):
            raise PermissionError("chmod refused")

        monkeypatch.setattr(storage_mod, "set_owner_only_permissions", refuse)
        with pytest.raises(PersistenceFailure):
            file_service.register(session, "Zed", "pw")
        assert not file_service.exists("zed")
        assert session.state is SessionState.LOGGED_OUT

        monkeypatch.setattr(storage_mod, "set_owner_only_permissions", real_permissions)
        file_service.register(session, "Zed", "pw")
        assert session.is_logged_in()

    def test_uses_configured_kdf(self, store, session):
        VaultService(store, kdf_version=2).register(session, "Alice", "pw")
        assert _stored(store).kdf_version == 2

    def test_unknown_kdf_rejected(self, store):
        with pytest.raises(ValueError):
            VaultService(store, kdf_version=42)


# ── Unlock ──────────────────────────────────────────────────────────


class TestUnlock:

    def test_correct_password(self, service, registered):
        service.logout(registered)
        session = Session()
        data = service.unlock(session, "alice", "correct-horse")
        assert [c.name for c in data.categories] == config.DEFAULT_CATEGORY_NAMES
        assert session.is_logged_in()
        assert session.username == "alice"

    def test_wrong_password(self, service, registered):
        session = Session()
        with pytest.raises(InvalidCredentialsOrCorruptData) as exc:
            service.unlock(session, "Alice", "wrong-pw")
        assert session.state is SessionState.LOGGED_OUT
        assert exc.value.user_message == config.MSG_INVALID_CREDENTIALS

    def test_unknown_user(self, service, session):
        with pytest.raises(NotFound):
            service.unlock(session, "nobody", "pw")
        assert session.state is SessionState.LOGGED_OUT

    def test_tampered_ciphertext_looks_like_wrong_password(self, service, registered, store):
        container = _stored(store)
        flipped = bytearray(container.ciphertext)
        flipped[0] ^= 0x01
        container.ciphertext = bytes(flipped)
        VaultContainerStore(store).write("alice", container)

        with pytest.raises(InvalidCredentialsOrCorruptData):
            service.unlock(Session(), "Alice", "correct-horse")

    def test_corrupt_container(self, service, registered, store):
        store.set(storage_key_for("alice"), json.dumps({"salt": "AAAA"}))
        session = Session()
        with pytest.raises(CorruptContainer) as exc:
            service.unlock(session, "Alice", "correct-horse")
        assert session.state is SessionState.LOGGED_OUT
        assert exc.value.user_message == config.MSG_INVALID_CREDENTIALS

    def test_unhashable_kdf_field_is_corrupt(self, service, registered, store):
        record = json.loads(store.get(storage_key_for("alice")))
        record["kdf"] = [1]
        store.set(storage_key_for("alice"), json.dumps(record))

        with pytest.raises(CorruptContainer):
            service.unlock(Session(), "Alice", "correct-horse")
        with pytest.raises(CorruptContainer):
            service.persist(registered, registered.data)
        assert registered.is_logged_in()

    def test_malformed_payload(self, service, store, crypto):
        salt = crypto.generate_salt()
        nonce = crypto.generate_nonce()
        key = crypto.derive_key("pw", salt)
        ciphertext = crypto.encrypt(key, nonce, b'{"categories": "nope"}')
        VaultContainerStore(store).write("bob", VaultContainer(salt, nonce, ciphertext))

        session = Session()
        with pytest.raises(MalformedPayload):
            service.unlock(session, "bob", "pw")
        assert session.state is SessionState.LOGGED_OUT

    def test_backfills_is_enabled(self, service, store, crypto):
        salt = crypto.generate_salt()
        nonce = crypto.generate_nonce()
        key = crypto.derive_key("pw", salt)
        legacy = json.dumps({
            "categories": [{"category_id": 1, "name": "Loans", "created_at": "2023-01-01"}],
            "records": [],
        }).encode()
        VaultContainerStore(store).write("bob", VaultContainer(salt, nonce, crypto.encrypt(key, nonce, legacy)))

        data = service.unlock(Session(), "bob", "pw")
        assert data.categories[0].is_enabled is True

    def test_opens_record_without_format_fields(self, service, store, crypto):
        salt = crypto.generate_salt()
        nonce = crypto.generate_nonce()
        key = crypto.derive_key("pw", salt)
        plaintext = json.dumps({
            "categories": [{"category_id": 1, "created_at": "2024-05-01T10:00:00.000Z",
                            "name": "Loans", "is_enabled": True}],
            "records": [{"record_id": 2, "created_at": "2024-05-01T10:01:00.000Z", "category_id": 1,
                         "name": "Mortgage", "contact_information": None, "institute_name": "Bank",
                         "account_name": None, "account_owner": None, "id_number": None,
                         "credentials": None, "location": None, "nominee": None, "notes": None}],
        }).encode()
        legacy = {
            "salt": base64.b64encode(salt).decode(),
            "iv": base64.b64encode(nonce).decode(),
            "data": base64.b64encode(crypto.encrypt(key, nonce, plaintext)).decode(),
        }
        store.set(storage_key_for("carol"), json.dumps(legacy))

        data = service.unlock(Session(), "Carol", "pw")
        assert data.records[0].institute_name == "Bank"
        assert data.records[0].notes is None

    def test_vault_keeps_its_kdf_under_newer_default(self, service, registered, store):
        service.logout(registered)
        argon_service = VaultService(store, kdf_version=2)
        session = Session()
        argon_service.unlock(session, "Alice", "correct-horse")
        argon_service.persist(session, session.data)
        assert _stored(store).kdf_version == 1

    def test_argon2_vault_roundtrip(self, store):
        session = Session()
        argon_service = VaultService(store, kdf_version=2)
        argon_service.register(session, "dana", "pw")
        argon_service.logout(session)
        assert VaultService(store).unlock(Session(), "dana", "pw").records == []

    def test_unlock_replaces_previous_login(self, service, registered):
        service.register(Session(), "Bob", "bob-pw")
        service.unlock(registered, "Bob", "bob-pw")
        assert registered.username == "Bob"


# ── Persist ─────────────────────────────────────────────────────────


class TestPersist:

    def test_persist_and_reload(self, service, store):
        session = Session()
        service.register(session, "Alice", "correct-horse")
        service.logout(session)

        data = service.unlock(session, "Alice", "correct-horse")
        category = data.categories[1]
        record = data.new_record(category.category_id, "Checking", institute_name="First Bank")
        service.persist(session, data)
        service.logout(session)

        reloaded = service.unlock(session, "Alice", "correct-horse")
        assert reloaded.records == [record]
        assert reloaded.records[0].account_owner is None

    def test_fresh_nonce_every_save(self, service, registered, store):
        nonces = set()
        salts = set()
        for _ in range(3):
            service.persist(registered, registered.data)
            container = _stored(store)
            nonces.add(container.nonce)
            salts.add(container.salt)
        assert len(nonces) == 3
        assert len(salts) == 1

    def test_salt_never_regenerated(self, service, registered, store):
        salt = _stored(store).salt
        data = registered.data
        data.add_category("Cars")
        service.persist(registered, data)
        assert _stored(store).salt == salt

    def test_requires_login(self, service, session):
        with pytest.raises(SessionError):
            service.persist(session, None)

    def test_after_logout_rejected(self, service, registered):
        data = registered.data
        service.logout(registered)
        with pytest.raises(SessionError):
            service.persist(registered, data)

    def test_write_failure_keeps_session(self, service, registered, store):
        data = service.unlock(registered, "Alice", "correct-horse")
        data.new_record(data.categories[0].category_id, "Passport")
        store.fail_writes = True

        with pytest.raises(PersistenceFailure):
            service.persist(registered, data)
        assert registered.is_logged_in()
        assert registered.data.records == []

        store.fail_writes = False
        service.persist(registered, data)
        assert service.unlock(Session(), "Alice", "correct-horse").records == data.records

    def test_session_data_tracks_last_save(self, service, registered):
        data = service.unlock(registered, "Alice", "correct-horse")
        data.add_category("Cars")
        assert "Cars" not in [c.name for c in registered.data.categories]
        service.persist(registered, data)
        assert "Cars" in [c.name for c in registered.data.categories]

    def test_rederives_when_cached_key_is_stale(self, service, registered):
        registered.cache_key(b"\x00" * 32, b"\x09" * 16, 1)
        service.persist(registered, registered.data)
        service.logout(registered)
        assert service.unlock(Session(), "Alice", "correct-horse") is not None

    def test_persist_with_file_store(self, file_store):
        file_service = VaultService(file_store)
        session = Session()
        data = file_service.register(session, "Erin", "pw")
        data.new_record(data.categories[0].category_id, "Driving licence", id_number="D123")
        file_service.persist(session, data)
        file_service.logout(session)

        reopened = VaultService(file_store).unlock(Session(), "erin", "pw")
        assert reopened.records[0].id_number == "D123"


# ── Logout ──────────────────────────────────────────────────────────


class TestLogout:

    def test_clears_session(self, service, registered):
        key = registered._key
        service.logout(registered)
        assert registered.state is SessionState.LOGGED_OUT
        assert registered.username is None
        assert registered.password is None
        assert registered.data is None
        assert key == bytearray(len(key))

    def test_logout_when_logged_out(self, service, session):
        service.logout(session)
        assert session.state is SessionState.LOGGED_OUT
