"""
Local AAA plugin.

Accounts and groups of the local authentication adapter live in the
``LocalAAA`` database of the document store named by the active
profile's ``mongo_url``. These commands talk to that store directly,
bypassing the platform API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import bcrypt
import click
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .. import terminal
from ..client.context import RequestContext
from ..errors import DeadlineError, TransportError, ValidationError
from .command import Request
from .registry import ResourceHandler, Verb
from .response import Response

logger = logging.getLogger("ipctl.handlers.localaaa")

DATABASE = "LocalAAA"
ACCOUNTS = "accounts"
GROUPS = "groups"
BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """bcrypt hash of *password* with ``BCRYPT_ROUNDS`` rounds."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def new_account(username: str, password: str, groups: Sequence[str] = ()) -> Dict[str, Any]:
    """Build an account document in the layout the platform expects.

    Args:
        username: Login name.
        password: Clear-text password; only its bcrypt hash is stored.
        groups: Initial group memberships.

    Returns:
        dict: The document to insert.
    """
    return {
        "username": username,
        "activeTenant": "*",
        "firstname": "",
        "groups": list(groups),
        "password": hash_password(password),
        "tenants": [],
    }


def client_options(ctx: RequestContext) -> Dict[str, int]:
    """Return ``MongoClient`` timeouts sized from what is left of *ctx*.

    Args:
        ctx: The invocation context.

    Returns:
        dict: Empty when *ctx* has no deadline, otherwise the server
        selection, connect and operation timeouts in milliseconds.
    """
    remaining = ctx.remaining()
    if remaining is None:
        return {}
    millis = max(1, int(remaining * 1000))
    return {
        "serverSelectionTimeoutMS": millis,
        "connectTimeoutMS": millis,
        "timeoutMS": millis,
    }


class LocalAAAService:
    """Account and group operations on the ``LocalAAA`` database.

    Args:
        database: Anything indexable by collection name, normally a
            ``pymongo`` database.
        ctx: Checked before every operation; a failure after it is done
            surfaces as a ``DeadlineError``.
    """

    def __init__(self, database, ctx: Optional[RequestContext] = None):
        self.accounts = database[ACCOUNTS]
        self.groups = database[GROUPS]
        self.ctx = ctx

    @classmethod
    def connect(cls, url: str, ctx: RequestContext, client_class=None) -> "LocalAAAService":
        """Open the store at *url* for the lifetime of *ctx*.

        The client is closed when *ctx* is cancelled.

        Raises:
            DeadlineError: *ctx* is already cancelled or expired.
        """
        ctx.check()
        logger.info("mongo url is %s", url)
        client = (client_class or MongoClient)(url, **client_options(ctx))
        ctx.on_cancel(client.close)
        return cls(client[DATABASE], ctx)

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        if self.ctx is not None:
            self.ctx.check()
        try:
            yield
        except PyMongoError as exc:
            if self.ctx is not None and self.ctx.done:
                raise DeadlineError(f"failed to {action}: context deadline exceeded", cause=exc)
            raise TransportError(f"failed to {action}", cause=exc)

    @staticmethod
    def _strip(documents) -> List[Dict[str, Any]]:
        """Drop the Mongo ``_id`` from each document."""
        return [{k: v for k, v in doc.items() if k != "_id"} for doc in documents]

    def get_accounts(self) -> List[Dict[str, Any]]:
        """Every account document."""
        with self._guard("list accounts"):
            return self._strip(self.accounts.find({}))

    def find_account(self, username: str) -> Optional[Dict[str, Any]]:
        """The account called *username*, or ``None``."""
        with self._guard("find account"):
            return self.accounts.find_one({"username": username})

    def create_account(self, account: Dict[str, Any]) -> None:
        """Insert *account*.

        Raises:
            ValidationError: An account with that username exists.
        """
        if self.find_account(account["username"]) is not None:
            raise ValidationError("username already exists")
        with self._guard("create account"):
            self.accounts.insert_one(account)

    def delete_account(self, username: str) -> None:
        """Delete the account called *username*."""
        with self._guard("delete account"):
            self.accounts.delete_one({"username": username})

    def get_groups(self) -> List[Dict[str, Any]]:
        """Every group document."""
        with self._guard("list groups"):
            return self._strip(self.groups.find({}))

    def create_group(self, name: str) -> None:
        """Insert a group called *name*."""
        with self._guard("create group"):
            self.groups.insert_one({"name": name})

    def delete_group(self, name: str) -> None:
        """Delete the group called *name*."""
        with self._guard("delete group"):
            self.groups.delete_one({"name": name})


def connect_store(runtime) -> LocalAAAService:
    """Open the store named by the active profile, bound to the runtime context."""
    return LocalAAAService.connect(runtime.config.active_profile().mongo_url, runtime.context)


class _LocalAAAHandler(ResourceHandler):
    """Shared plumbing for the ``local-aaa`` account and group handlers."""

    descriptor = "localaaa"
    singular = ""
    capabilities = frozenset({Verb.GET, Verb.CREATE, Verb.DELETE})

    def __init__(self, runtime, service_factory=None):
        super().__init__(runtime)
        self._service_factory = service_factory or self._connect
        self._service: Optional[LocalAAAService] = None

    def _connect(self) -> LocalAAAService:
        return connect_store(self.runtime)

    @property
    def service(self) -> LocalAAAService:
        """The store, opened on first use."""
        if self._service is None:
            self._service = self._service_factory()
        return self._service

    def descriptor_key(self, verb: Verb) -> Tuple[str, str]:
        """Descriptors are keyed ``get-accounts``, ``create-account`` and so on."""
        noun = self.name if verb is Verb.GET else self.singular
        return self.descriptor, f"{verb.value}-{noun}"

    def options(self, verb: Verb) -> List[click.Option]:
        return []


class AccountsHandler(_LocalAAAHandler):
    """``local-aaa get|create|delete account``."""

    name = "accounts"
    singular = "account"

    def options(self, verb: Verb) -> List[click.Option]:
        if verb is Verb.CREATE:
            return [
                click.Option(
                    ["--group", "groups"], multiple=True,
                    help="Group to add the account to; may be repeated.",
                )
            ]
        return []

    def get(self, req: Request) -> Response:
        """List usernames; password hashes are never shown."""
        accounts = self.service.get_accounts()
        for account in accounts:
            account.pop("password", None)
        return Response(keys=["username"], object=accounts)

    def create(self, req: Request) -> Response:
        """Prompt for a password and insert a new account."""
        username = req.args[0]
        password = terminal.password()
        self.service.create_account(new_account(username, password, req.option("groups", ())))
        return Response(text="Successfully created new user", object={"username": username})

    def delete(self, req: Request) -> Response:
        self.service.delete_account(req.args[0])
        return Response(text="Successfully deleted user", object={"username": req.args[0]})


class GroupsHandler(_LocalAAAHandler):
    """``local-aaa get|create|delete group``."""

    name = "groups"
    singular = "group"

    def get(self, req: Request) -> Response:
        return Response(keys=["name"], object=self.service.get_groups())

    def create(self, req: Request) -> Response:
        self.service.create_group(req.args[0])
        return Response(text="Successfully created new group", object={"name": req.args[0]})

    def delete(self, req: Request) -> Response:
        self.service.delete_group(req.args[0])
        return Response(text="Successfully deleted group", object={"name": req.args[0]})


def local_aaa_handlers(runtime, service_factory=None) -> List[_LocalAAAHandler]:
    """Account and group handlers sharing one lazily opened store."""
    shared: Dict[str, LocalAAAService] = {}

    def factory() -> LocalAAAService:
        if "service" not in shared:
            if service_factory is not None:
                shared["service"] = service_factory()
            else:
                shared["service"] = connect_store(runtime)
        return shared["service"]

    return [AccountsHandler(runtime, factory), GroupsHandler(runtime, factory)]
