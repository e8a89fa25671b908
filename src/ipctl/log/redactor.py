"""
Credential redaction for log output.

Patterns run in a fixed order over the fully formatted record. A
pattern with a capture group keeps that group (the label, such as
``password=``) and replaces the rest of the match with ``<REDACTED>``;
a pattern without one replaces the whole match.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Pattern

REDACTED = "<REDACTED>"

_TOKEN_CHARS = r"[a-zA-Z0-9\-._~+/]"


class RedactionPattern(NamedTuple):
    """A named regular expression for one kind of secret."""
    name: str
    pattern: Pattern[str]


def _p(name: str, regex: str) -> RedactionPattern:
    return RedactionPattern(name, re.compile(regex))


PATTERNS: List[RedactionPattern] = [
    _p("bearer_token", rf"(?i)(bearer\s+){_TOKEN_CHARS}+=*"),
    _p("api_key", rf"""(?i)(api[_\-\s]?key\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("api_key_header", rf"(?i)(x-api-key\s*:\s*){_TOKEN_CHARS}{{16,}}"),
    _p("jwt_token", rf"eyJ{_TOKEN_CHARS}*\.eyJ{_TOKEN_CHARS}*\.{_TOKEN_CHARS}*"),
    _p("oauth_token", rf"""(?i)(oauth[_-]?token\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("access_token", rf"""(?i)(access[_-]?token\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("refresh_token", rf"""(?i)(refresh[_-]?token\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("password", r"""(?i)(password\s*[:=]\s*['"]?)(?!<REDACTED>)[^\s'"]{6,}['"]?"""),
    _p("passwd", r"""(?i)(passwd\s*[:=]\s*['"]?)(?!<REDACTED>)[^\s'"]{6,}['"]?"""),
    _p("pwd", r"""(?i)(pwd\s*[:=]\s*['"]?)(?!<REDACTED>)[^\s'"]{6,}['"]?"""),
    _p("aws_access_key", r"(?:A3T[A-Z0-9]|AKIA|AGPA|AIDA|AROA|AIPA|ANPA|ANVA|ASIA)[A-Z0-9]{16}"),
    _p(
        "aws_secret_key",
        r"""(?i)(aws[_-]?secret[_-]?access[_-]?key\s*[:=]\s*['"]?)[a-zA-Z0-9/+=]{40}['"]?""",
    ),
    _p("github_token", r"ghp_[a-zA-Z0-9]{36}"),
    _p("github_oauth", r"gho_[a-zA-Z0-9]{36}"),
    _p("github_app_token", r"(?:ghu|ghs)_[a-zA-Z0-9]{36}"),
    _p("secret", rf"""(?i)(secret\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("client_secret", rf"""(?i)(client[_-]?secret\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("session_token", rf"""(?i)(session[_-]?token\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("session_id", rf"""(?i)(session[_-]?id\s*[:=]\s*['"]?){_TOKEN_CHARS}{{16,}}['"]?"""),
    _p("mongodb_uri", r"mongodb(?:\+srv)?://[^:]+:[^@]+@[^\s]+"),
    _p("postgres_uri", r"postgres(?:ql)?://[^:]+:[^@]+@[^\s]+"),
    _p(
        "ssh_private_key",
        r"-----BEGIN\s+(?:RSA|DSA|EC|OPENSSH)\s+PRIVATE\s+KEY-----[\s\S]*?"
        r"-----END\s+(?:RSA|DSA|EC|OPENSSH)\s+PRIVATE\s+KEY-----",
    ),
    _p("authorization_basic", r"(?i)(authorization\s*:\s*basic\s+)[a-zA-Z0-9+/=]+"),
    _p("generic_token", rf"""(?i)(token\s*[:=]\s*['"]?){_TOKEN_CHARS}{{20,}}['"]?"""),
]

INDICATORS = (
    "token", "password", "secret", "api", "bearer", "authorization",
    "oauth", "session", "key", "jwt", "aws", "github", "mongodb",
    "postgres", "mysql", "-----begin", "passwd", "pwd",
)


def _replace(match: "re.Match[str]") -> str:
    """Keep the captured prefix, if any, and mask the rest."""
    if match.re.groups > 0 and match.group(1) is not None:
        return match.group(1) + REDACTED
    return REDACTED


class Redactor:
    """Rewrites sensitive substrings; a disabled redactor is a no-op."""

    def __init__(self, enabled: bool = True):
        """Create a redactor.

        Args:
            enabled: When False every method returns its input untouched.
        """
        self.enabled = enabled

    def redact(self, text: str) -> str:
        """Return *text* with every sensitive match masked.

        Args:
            text: Text to scan.

        Returns:
            str: The redacted text, or *text* unchanged when disabled.
        """
        if not self.enabled:
            return text
        for entry in PATTERNS:
            text = entry.pattern.sub(_replace, text)
        return text

    def redact_bytes(self, data: bytes) -> bytes:
        """Byte-level ``redact``; invalid UTF-8 passes through unchanged."""
        if not self.enabled:
            return data
        return self.redact(data.decode("utf-8", errors="surrogateescape")).encode(
            "utf-8", errors="surrogateescape"
        )

    def should_redact(self, text: str) -> bool:
        """Cheap pre-check: indicator words first, full patterns only on a hit."""
        if not self.enabled:
            return False
        lowered = text.lower()
        if not any(word in lowered for word in INDICATORS):
            return False
        return any(entry.pattern.search(text) for entry in PATTERNS)


_default = Redactor(True)


def redact(text: str) -> str:
    """Redact *text* with the process-wide enabled redactor."""
    return _default.redact(text)


def redact_bytes(data: bytes) -> bytes:
    """Redact *data* with the process-wide enabled redactor."""
    return _default.redact_bytes(data)


def should_redact(text: str) -> bool:
    """True when *text* contains anything the default redactor would mask."""
    return _default.should_redact(text)
