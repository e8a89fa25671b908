"""
Table-driven asset handlers.

Each asset type is described by an ``AssetSpec``: where its collection
lives, which field names an item, how items are exported and imported
and which verbs it supports. ``AssetHandler`` implements every asset
verb generically on top of that description.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import click
from pydantic import BaseModel, ConfigDict

from ..client.http import HttpClient
from ..client.service import request, request_json
from ..errors import FormattingError, ServerError, ValidationError
from ..terminal.terminal import to_json, to_yaml
from .assetio import asset_files, read_asset, source_root, write_assets
from .command import Request
from .registry import ResourceHandler, Verb
from .response import Response

logger = logging.getLogger("ipctl.handlers.assets")


class AssetSpec(BaseModel):
    """Static description of one asset type."""

    model_config = ConfigDict(frozen=True)

    name: str
    singular: str
    path: str
    group: str
    capabilities: FrozenSet[Verb]
    key: str = "name"
    id_field: str = "_id"
    envelope: str = ""
    item_path: str = ""
    import_path: str = ""
    import_wrapper: str = ""
    export_path: str = ""
    health_path: str = ""
    columns: Tuple[str, ...] = ("name",)


def not_found(singular: str, name: str) -> ServerError:
    """The error raised when no asset called *name* exists."""
    return ServerError(f'{singular} "{name}" not found', status_code=404)


class AssetHandler(ResourceHandler):
    """Generic implementation of the asset verbs for one ``AssetSpec``."""

    def __init__(self, runtime, spec: AssetSpec):
        """Create a handler.

        Args:
            runtime: The invocation runtime.
            spec: Paths, key field and capabilities of the asset kind.
        """
        super().__init__(runtime)
        self.spec = spec
        self.name = spec.name
        self.group = spec.group
        self.descriptor = spec.name
        self.capabilities = spec.capabilities

    # -- service -------------------------------------------------------------

    def _client(self) -> HttpClient:
        return self.runtime.client

    def _fill(self, template: str, item: Dict[str, Any]) -> str:
        """Expand ``{path}``, ``{id}`` and ``{name}`` in an endpoint template."""
        return template.format(
            path=self.spec.path,
            id=item.get(self.spec.id_field, ""),
            name=item.get(self.spec.key, ""),
        )

    def item_path(self, item: Dict[str, Any]) -> str:
        """Endpoint of one asset; ``{path}/{id}`` unless ``AssetSpec.item_path`` overrides it."""
        return self._fill(self.spec.item_path or "{path}/{id}", item)

    def list_items(self, client: HttpClient) -> List[Dict[str, Any]]:
        """Fetch every asset of this kind.

        Args:
            client: Client for the target profile.

        Returns:
            list: The assets, unwrapped from the response envelope.

        Raises:
            FormattingError: The response is not a list.
        """
        data = request_json(client, "GET", self.spec.path)
        if self.spec.envelope and isinstance(data, dict):
            data = data.get(self.spec.envelope)
        if data is None:
            return []
        if not isinstance(data, list):
            raise FormattingError(f"unexpected response listing {self.spec.name}")
        return data

    def find(self, client: HttpClient, name: str) -> Optional[Dict[str, Any]]:
        """Return the asset whose key field equals *name*, or ``None``."""
        for item in self.list_items(client):
            if item.get(self.spec.key) == name:
                return item
        return None

    def get_item(self, client: HttpClient, name: str) -> Dict[str, Any]:
        """Like ``find`` but raises ``ServerError`` (404) when nothing matches."""
        item = self.find(client, name)
        if item is None:
            raise not_found(self.spec.singular, name)
        return item

    def export_item(self, client: HttpClient, item: Dict[str, Any]) -> Dict[str, Any]:
        """The portable document for *item*, fetched from the export endpoint when there is one."""
        if not self.spec.export_path:
            return item
        return request_json(client, "GET", self._fill(self.spec.export_path, item))

    def delete_item(self, client: HttpClient, item: Dict[str, Any]) -> None:
        """Delete *item* on the server."""
        request(client, "DELETE", self.item_path(item))

    def import_document(self, client: HttpClient, document: Dict[str, Any], replace: bool = False) -> Any:
        """Create an asset from an exported *document*.

        Args:
            client: Client for the target profile.
            document: Exported asset document.
            replace: Delete an existing asset with the same key first.

        Returns:
            The decoded server response.
        """
        name = document.get(self.spec.key)
        if replace and name:
            existing = self.find(client, name)
            if existing is not None:
                logger.info("replacing existing %s %s", self.spec.singular, name)
                self.delete_item(client, existing)
        body: Any = document
        if self.spec.import_wrapper:
            body = {self.spec.import_wrapper: document}
        return request_json(client, "POST", self.spec.import_path or self.spec.path, body)

    # -- reader --------------------------------------------------------------

    def get(self, req: Request) -> Response:
        """List the assets with their configured columns."""
        items = self.list_items(self._client())
        return Response(keys=list(self.spec.columns), object=items)

    def describe(self, req: Request) -> Response:
        """Show one asset as YAML."""
        item = self.get_item(self._client(), req.args[0])
        return Response(text=to_yaml(item).rstrip("\n"), object=item)

    # -- writer --------------------------------------------------------------

    def create(self, req: Request) -> Response:
        """Create an empty asset called ``args[0]``.

        Raises:
            ValidationError: It already exists and ``--replace`` was not given.
        """
        client = self._client()
        name = req.args[0]
        existing = self.find(client, name)
        if existing is not None:
            if not req.option("replace", False):
                raise ValidationError(f'{self.spec.singular} "{name}" already exists')
            self.delete_item(client, existing)
        result = request_json(client, "POST", self.spec.path, {self.spec.key: name})
        return Response(
            text=f"Successfully created {self.spec.singular} `{name}`",
            object=result,
        )

    def delete(self, req: Request) -> Response:
        """Delete the asset called ``args[0]``."""
        client = self._client()
        name = req.args[0]
        self.delete_item(client, self.get_item(client, name))
        return Response(
            text=f"Successfully deleted {self.spec.singular} `{name}`",
            object={"deleted": name},
        )

    def clear(self, req: Request) -> Response:
        """Delete every asset of this kind."""
        client = self._client()
        items = self.list_items(client)
        for item in items:
            self.delete_item(client, item)
        return Response(
            text=f"Deleted {len(items)} {self.spec.singular}(s)",
            object={"deleted": len(items)},
        )

    # -- copy / edit ---------------------------------------------------------

    def copy(self, req: Request) -> Response:
        """Copy one asset from ``--from`` to ``--to``.

        Raises:
            ValidationError: Both profiles are the same.
        """
        name = req.args[0]
        source = req.option("from_profile", "")
        target = req.option("to_profile", "")
        if source == target:
            raise ValidationError("source and destination profiles must be different")

        source_client = self.runtime.client_for(source)
        document = self.export_item(source_client, self.get_item(source_client, name))
        self.import_document(self.runtime.client_for(target), document, req.option("replace", False))
        return Response(
            text=f"Successfully copied {self.spec.singular} `{name}` from `{source}` to `{target}`",
            object={"name": name, "from": source, "to": target},
        )

    def edit(self, req: Request) -> Response:
        """Open the exported asset in ``$EDITOR`` and PUT the result back.

        An unchanged or empty buffer cancels the edit.
        """
        client = self._client()
        name = req.args[0]
        item = self.get_item(client, name)
        original = to_json(self.export_item(client, item))

        edited = click.edit(original, extension=".json")
        if edited is None or not edited.strip() or edited.strip() == original.strip():
            return Response(text="Edit cancelled, no changes made", object={"updated": False})
        try:
            document = json.loads(edited)
        except ValueError as exc:
            raise ValidationError("edited document is not valid JSON", cause=exc)

        result = request_json(client, "PUT", self.item_path(item), document)
        return Response(
            text=f"Successfully updated {self.spec.singular} `{name}`",
            object=result if result is not None else document,
        )

    # -- import / export -----------------------------------------------------

    def import_(self, req: Request) -> Response:
        """Import one asset file, from the working directory or a repository."""
        with source_root(req) as root:
            document = read_asset(root / req.args[0])
        self.import_document(self._client(), document, req.option("replace", False))
        name = document.get(self.spec.key, req.args[0])
        return Response(
            text=f"Successfully imported {self.spec.singular} `{name}`",
            object={"imported": name},
        )

    def export(self, req: Request) -> Response:
        """Export one asset to a file, or commit it to a repository."""
        client = self._client()
        name = req.args[0]
        document = self.export_item(client, self.get_item(client, name))
        _, target = write_assets(req, [(name, document)], self.spec.singular)
        return Response(
            text=f"Successfully exported {self.spec.singular} `{name}` to `{target}`",
            object={"exported": name, "target": target},
        )

    # -- datasets ------------------------------------------------------------

    def dump(self, req: Request) -> Response:
        """Export every asset of this kind."""
        client = self._client()
        documents = [
            (item.get(self.spec.key, ""), self.export_item(client, item))
            for item in self.list_items(client)
        ]
        count, target = write_assets(req, documents, self.spec.singular)
        return Response(
            text=f"Dumped {count} {self.spec.singular}(s)",
            object={"dumped": count, "target": target},
        )

    def load(self, req: Request) -> Response:
        """Import every asset file in ``args[0]``, skipping ones that already exist."""
        client = self._client()
        directory = req.args[0]
        existing = {item.get(self.spec.key) for item in self.list_items(client)}
        loaded = skipped = 0

        with source_root(req) as root:
            for path in asset_files(root / directory):
                document = read_asset(path)
                if document.get(self.spec.key) in existing:
                    logger.info("%s already exists, skipping", path.name)
                    skipped += 1
                    continue
                try:
                    self.import_document(client, document)
                except ServerError as exc:
                    if "already exists" not in exc.message:
                        raise
                    logger.info("%s already exists, skipping", path.name)
                    skipped += 1
                    continue
                loaded += 1

        return Response(
            text=f"Successfully loaded {loaded} and skipped {skipped} files from `{directory}`",
            object={"loaded": loaded, "skipped": skipped, "path": directory},
        )

    # -- controllers ---------------------------------------------------------

    def _control(self, req: Request, action: str) -> Response:
        """PUT ``{path}/{name}/{action}`` for an application or adapter."""
        name = req.args[0]
        request(self._client(), "PUT", f"{self.spec.path}/{name}/{action}")
        past = {"start": "started", "stop": "stopped", "restart": "restarted"}[action]
        return Response(
            text=f"Successfully {past} {self.spec.singular} `{name}`",
            object={"name": name, "action": action},
        )

    def start(self, req: Request) -> Response:
        """Start the named application or adapter."""
        return self._control(req, "start")

    def stop(self, req: Request) -> Response:
        """Stop the named application or adapter."""
        return self._control(req, "stop")

    def restart(self, req: Request) -> Response:
        """Restart the named application or adapter."""
        return self._control(req, "restart")

    def inspect(self, req: Request) -> Response:
        """Report name, state and version from the health endpoint."""
        data = request_json(self._client(), "GET", self.spec.health_path or self.spec.path)
        if isinstance(data, dict):
            data = data.get("results", [])
        rows = [
            {
                "name": entry.get("id") or entry.get("name", ""),
                "state": entry.get("state", ""),
                "version": entry.get("version", ""),
            }
            for entry in data or []
        ]
        return Response(keys=["name", "state", "version"], object=rows)


SERVER_HEALTH = (
    ("status", "/health/status"),
    ("system", "/health/system"),
    ("server", "/health/server"),
    ("applications", "/health/applications"),
    ("adapters", "/health/adapters"),
)


class ServerHandler(ResourceHandler):
    """``inspect server``: the combined health report."""

    name = "server"
    group = "admin-essentials"
    capabilities = frozenset({Verb.INSPECT})

    def inspect(self, req: Request) -> Response:
        """Collect every health endpoint into one report."""
        report: Dict[str, Any] = {}
        for key, path in SERVER_HEALTH:
            report[key] = request_json(self.runtime.client, "GET", path)
        return Response(text=to_yaml(report).rstrip("\n"), object=report)
