"""Cache key prefixing.

Every cache key starts with a prefix that identifies the running build, so a
new deployment never reads entries written by an older one. The prefix is
computed once per process from the first available of:

  1. the source-control revision (settings, else ``git rev-parse --short HEAD``)
  2. the build timestamp
  3. the build version
  4. a random 12-character token
"""

from __future__ import annotations

import logging
import secrets
import string
import subprocess
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from indexsync.config.settings import BuildSettings

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits

_prefix: str | None = None


def _git_revision() -> str | None:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    revision = result.stdout.strip()
    return revision if result.returncode == 0 and revision else None


def _format_build_time(value: str) -> str:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).isoformat().replace("+00:00", "Z")


def compute_key_prefix(build: BuildSettings | None = None, use_git: bool = True) -> str:
    """Compute a prefix from build metadata without storing it."""
    if build is not None and build.git_commit:
        return build.git_commit
    if use_git:
        revision = _git_revision()
        if revision:
            return revision
    if build is not None and build.build_time:
        return _format_build_time(build.build_time)
    if build is not None and build.version:
        return build.version
    return "".join(secrets.choice(_ALPHABET) for _ in range(12))


def init_key_prefix(build: BuildSettings | None = None, use_git: bool = True) -> str:
    """Set the process-wide prefix. Later calls return the first value."""
    global _prefix
    if _prefix is None:
        _prefix = compute_key_prefix(build, use_git=use_git)
        logger.info("Cache key prefix: %s", _prefix)
    return _prefix


def get_key_prefix() -> str:
    """Return the process-wide prefix, initializing it from defaults if needed."""
    return _prefix if _prefix is not None else init_key_prefix()


class PrefixedKeyGenerator:
    """Builds cache keys of the form ``{prefix}:{namespace}:{param}:...``."""

    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix or get_key_prefix()

    def generate(self, namespace: str, *params: object) -> str:
        parts = [self.prefix, namespace, *(str(p) for p in params)]
        return ":".join(parts)
