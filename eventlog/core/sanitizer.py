"""Redaction of sensitive fields in structured log payloads."""

from typing import Any, Mapping

REDACTED = "[REDACTED]"

# Matched as case-insensitive substrings of the key name
SENSITIVE_KEY_FRAGMENTS = (
    "password",
    "token",
    "secret",
    "key",
    "apikey",
    "authorization",
    "credit",
    "card",
    "cvv",
    "ssn",
    "social",
)


class DataSanitizer:
    """
    Recursively redacts sensitive keys in JSON-like data.

    Any mapping key whose lower-cased name contains one of the sensitive
    fragments has its value replaced by ``[REDACTED]``, whatever that value
    is. Lists and tuples are walked element by element. The input is never
    mutated; a new structure is returned.
    """

    def __init__(self, fragments: tuple[str, ...] = SENSITIVE_KEY_FRAGMENTS) -> None:
        self.fragments = tuple(fragment.lower() for fragment in fragments)

    def is_sensitive(self, key: Any) -> bool:
        """Check whether a mapping key names sensitive data."""
        lowered = str(key).lower()
        return any(fragment in lowered for fragment in self.fragments)

    def sanitize(self, value: Any) -> Any:
        """Return ``value`` with every sensitive key redacted at any depth."""
        if not value:
            return value

        if isinstance(value, Mapping):
            return {
                key: REDACTED if self.is_sensitive(key) else self.sanitize(item)
                for key, item in value.items()
            }

        if isinstance(value, (list, tuple)):
            return [self.sanitize(item) for item in value]

        return value


_default_sanitizer = DataSanitizer()


def sanitize(value: Any) -> Any:
    """Sanitize ``value`` with the default sensitive-key set."""
    return _default_sanitizer.sanitize(value)
