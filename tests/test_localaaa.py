"""Tests for the local AAA plugin against in-memory collections."""

from __future__ import annotations

import bcrypt
import pytest
from pymongo.errors import ServerSelectionTimeoutError

from conftest import load_config, make_runtime
from ipctl import terminal
from ipctl.client.context import RequestContext
from ipctl.errors import DeadlineError, TransportError, ValidationError
from ipctl.handlers import localaaa
from ipctl.handlers.command import Request
from ipctl.handlers.localaaa import (
    BCRYPT_ROUNDS,
    AccountsHandler,
    GroupsHandler,
    LocalAAAService,
    client_options,
    connect_store,
    hash_password,
    local_aaa_handlers,
    new_account,
)
from ipctl.handlers.registry import Verb


class FakeCollection:
    def __init__(self):
        self.documents = []
        self._next_id = 1

    def _matches(self, document, query):
        return all(document.get(k) == v for k, v in query.items())

    def find(self, query):
        return [dict(d) for d in self.documents if self._matches(d, query)]

    def find_one(self, query):
        for document in self.documents:
            if self._matches(document, query):
                return dict(document)
        return None

    def insert_one(self, document):
        stored = dict(document, _id=self._next_id)
        self._next_id += 1
        self.documents.append(stored)

    def delete_one(self, query):
        for index, document in enumerate(self.documents):
            if self._matches(document, query):
                del self.documents[index]
                return


class BrokenCollection(FakeCollection):
    def find(self, query):
        raise ServerSelectionTimeoutError("no servers")


def fake_database():
    return {"accounts": FakeCollection(), "groups": FakeCollection()}


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeMongoClient:
    """Stands in for ``pymongo.MongoClient``; records how it was opened."""

    opened = []

    def __init__(self, url, **kwargs):
        self.url = url
        self.kwargs = kwargs
        self.closed = False
        self.databases = {}
        FakeMongoClient.opened.append(self)

    def __getitem__(self, name):
        return self.databases.setdefault(name, fake_database())

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def reset_fake_clients():
    FakeMongoClient.opened = []
    yield


@pytest.fixture
def service():
    return LocalAAAService(fake_database())


class TestPasswords:
    """bcrypt hashing."""

    def test_hash_verifies(self):
        hashed = hash_password("s3cret!")
        assert bcrypt.checkpw(b"s3cret!", hashed.encode("utf-8"))
        assert not bcrypt.checkpw(b"wrong", hashed.encode("utf-8"))

    def test_cost(self):
        assert hash_password("x").startswith(f"$2b${BCRYPT_ROUNDS:02d}$")

    def test_new_account_shape(self):
        account = new_account("admin", "pw", ["admins"])
        assert account["username"] == "admin"
        assert account["groups"] == ["admins"]
        assert account["activeTenant"] == "*"
        assert account["password"] != "pw"


class TestService:
    """Collection operations."""

    def test_create_and_list(self, service):
        service.create_account(new_account("admin", "pw"))
        accounts = service.get_accounts()
        assert [a["username"] for a in accounts] == ["admin"]
        assert "_id" not in accounts[0]

    def test_duplicate_username(self, service):
        service.create_account(new_account("admin", "pw"))
        with pytest.raises(ValidationError, match="username already exists"):
            service.create_account(new_account("admin", "other"))

    def test_delete_account(self, service):
        service.create_account(new_account("admin", "pw"))
        service.delete_account("admin")
        assert service.get_accounts() == []

    def test_groups(self, service):
        service.create_group("admins")
        service.create_group("ops")
        service.delete_group("ops")
        assert service.get_groups() == [{"name": "admins"}]

    def test_store_failure(self):
        broken = LocalAAAService({"accounts": BrokenCollection(), "groups": FakeCollection()})
        with pytest.raises(TransportError, match="failed to list accounts"):
            broken.get_accounts()


class TestHandlers:
    """The local-aaa command handlers."""

    def _handlers(self, runtime, service):
        return local_aaa_handlers(runtime, lambda: service)

    def test_descriptor_keys(self, runtime, service):
        accounts, groups = self._handlers(runtime, service)
        assert accounts.descriptor_key(Verb.GET) == ("localaaa", "get-accounts")
        assert accounts.descriptor_key(Verb.CREATE) == ("localaaa", "create-account")
        assert groups.descriptor_key(Verb.DELETE) == ("localaaa", "delete-group")

    def test_shared_service(self, runtime):
        opened = []

        def factory():
            opened.append(1)
            return LocalAAAService(fake_database())

        accounts, groups = local_aaa_handlers(runtime, factory)
        assert accounts.service is groups.service
        assert opened == [1]

    def test_create_account_prompts(self, runtime, service, monkeypatch):
        monkeypatch.setattr(terminal, "password", lambda label="Password": "s3cret!")
        accounts, _ = self._handlers(runtime, service)
        response = accounts.create(Request(args=["admin"], options={"groups": ("admins",)}))
        assert response.text == "Successfully created new user"
        stored = service.find_account("admin")
        assert stored["groups"] == ["admins"]
        assert bcrypt.checkpw(b"s3cret!", stored["password"].encode("utf-8"))

    def test_get_accounts_hides_password(self, runtime, service):
        service.create_account(new_account("admin", "pw"))
        accounts, _ = self._handlers(runtime, service)
        response = accounts.get(Request(args=[]))
        assert response.keys == ["username"]
        assert "password" not in response.object[0]

    def test_groups_handler(self, runtime, service):
        _, groups = self._handlers(runtime, service)
        assert groups.create(Request(args=["admins"])).text == "Successfully created new group"
        assert groups.get(Request(args=[])).object == [{"name": "admins"}]
        assert groups.delete(Request(args=["admins"])).text == "Successfully deleted group"

    def test_delete_account(self, runtime, service):
        service.create_account(new_account("admin", "pw"))
        accounts, _ = self._handlers(runtime, service)
        assert accounts.delete(Request(args=["admin"])).text == "Successfully deleted user"
        assert service.find_account("admin") is None

    def test_classes(self, runtime, service):
        accounts, groups = self._handlers(runtime, service)
        assert isinstance(accounts, AccountsHandler)
        assert isinstance(groups, GroupsHandler)
        assert [o.name for o in accounts.options(Verb.CREATE)] == ["groups"]


class TestConnection:
    """The store follows the invocation context."""

    URL = "mongodb://localhost:27017"

    def test_timeouts_from_deadline(self):
        clock = FakeClock(10.0)
        ctx = RequestContext(30, clock=clock)
        clock.now = 25.5
        assert client_options(ctx) == {
            "serverSelectionTimeoutMS": 14500,
            "connectTimeoutMS": 14500,
            "timeoutMS": 14500,
        }

    def test_no_timeouts_without_deadline(self):
        assert client_options(RequestContext.background()) == {}

    def test_connect_opens_database(self):
        ctx = RequestContext(30, clock=FakeClock())
        service = LocalAAAService.connect(self.URL, ctx, client_class=FakeMongoClient)
        client = FakeMongoClient.opened[0]
        assert client.url == self.URL
        assert client.kwargs["serverSelectionTimeoutMS"] == 30000
        assert service.accounts is client.databases["LocalAAA"]["accounts"]

    def test_cancel_closes_client(self):
        ctx = RequestContext.background()
        LocalAAAService.connect(self.URL, ctx, client_class=FakeMongoClient)
        client = FakeMongoClient.opened[0]
        assert not client.closed
        ctx.cancel()
        assert client.closed

    def test_cancelled_context_never_connects(self):
        ctx = RequestContext.background()
        ctx.cancel()
        with pytest.raises(DeadlineError):
            LocalAAAService.connect(self.URL, ctx, client_class=FakeMongoClient)
        assert FakeMongoClient.opened == []

    def test_operations_check_context(self):
        ctx = RequestContext.background()
        service = LocalAAAService(fake_database(), ctx)
        ctx.cancel()
        with pytest.raises(DeadlineError, match="canceled"):
            service.get_groups()

    def test_failure_after_deadline_is_deadline_error(self):
        clock = FakeClock(0.0)
        ctx = RequestContext(5, clock=clock)

        class SlowCollection(FakeCollection):
            def find(self, query):
                clock.now = 6.0
                raise ServerSelectionTimeoutError("no servers")

        service = LocalAAAService({"accounts": SlowCollection(), "groups": FakeCollection()}, ctx)
        with pytest.raises(DeadlineError, match="failed to list accounts"):
            service.get_accounts()

    def test_connect_store_uses_runtime_context(self, tmp_path, monkeypatch):
        monkeypatch.setattr(localaaa, "MongoClient", FakeMongoClient)
        cfg = load_config(tmp_path, f"[profile default]\nmongo_url = {self.URL}\n")
        runtime = make_runtime(cfg)
        service = connect_store(runtime)
        assert service.ctx is runtime.context
        runtime.context.cancel()
        assert FakeMongoClient.opened[0].closed
