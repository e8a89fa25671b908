"""``client show``: the connection settings in use."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from ..terminal.terminal import to_json
from .command import Request
from .registry import ResourceHandler, Verb
from .response import Response

MASK = "********"


def client_settings(profile) -> Dict[str, Any]:
    """Connection settings of *profile* with secrets masked.

    Args:
        profile: The active profile.

    Returns:
        dict: Host, port, TLS and credential fields; an unset port shows
        the scheme default.
    """
    port = profile.port or (443 if profile.use_tls else 80)
    return {
        "host": profile.host,
        "port": port,
        "use_tls": profile.use_tls,
        "verify": profile.verify,
        "username": profile.username,
        "password": MASK,
        "client_id": profile.client_id,
        "client_secret": MASK,
    }


class LocalClientHandler(ResourceHandler):
    """``client show``: print the active profile with secrets masked."""

    name = "show"
    descriptor = "localclient"
    capabilities = frozenset({Verb.CLIENT})

    def descriptor_key(self, verb: Verb) -> Tuple[str, str]:
        return self.descriptor, "show"

    def client(self, req: Request) -> Response:
        """Render the active profile settings as JSON."""
        settings = client_settings(self.runtime.config.active_profile())
        return Response(text=to_json(settings), object=settings)
