"""Log sanitization for azdsc diagnostics.

The service principal secret is the only credential this tool handles and
it must never reach stdout. Azure SDK exceptions occasionally echo request
bodies or headers, so every exception message that is logged passes
through LogSanitizer first.
"""

import re
from re import Pattern


class LogSanitizer:
    """Mask the registered secret and token-bearing fragments in messages.

    The registered secrets are process-wide because the CLI authenticates
    exactly once per run.
    """

    REDACTED = "[REDACTED]"

    # Fragments identity and ARM error bodies can carry
    SECRET_PATTERNS: dict[str, Pattern] = {
        "client_secret": re.compile(r'(client_secret["\']?\s*[:=]\s*["\']?)([^\s"\'&,]+)', re.IGNORECASE),
        "bearer": re.compile(r"(Bearer\s+)([\w\-.~+/]+=*)", re.IGNORECASE),
        "access_token": re.compile(r'(access_token["\']?\s*[:=]\s*["\']?)([^\s"\'&,]+)', re.IGNORECASE),
    }

    _known_secrets: set[str] = set()

    @classmethod
    def register_secret(cls, secret: str | None) -> None:
        """Remember a literal secret value; empty values are ignored."""
        if secret:
            cls._known_secrets.add(secret)

    @classmethod
    def clear_secrets(cls) -> None:
        cls._known_secrets.clear()

    @classmethod
    def sanitize(cls, message) -> str:
        """Return message with registered secrets and token fragments masked.

        Examples:
            >>> LogSanitizer.sanitize("client_secret=abc123")
            'client_secret=[REDACTED]'
        """
        text = str(message)
        # Longest first so a secret containing another one is fully masked
        for secret in sorted(cls._known_secrets, key=len, reverse=True):
            text = text.replace(secret, cls.REDACTED)
        for pattern in cls.SECRET_PATTERNS.values():
            text = pattern.sub(r"\1" + cls.REDACTED, text)
        return text

    @classmethod
    def describe(cls, error: BaseException, context: str = "") -> str:
        """Sanitized one-line description of an exception, optionally prefixed."""
        detail = cls.sanitize(error)
        return f"{context}: {detail}" if context else detail
