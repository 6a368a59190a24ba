"""Authentication for the remote push sink."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, MutableMapping

    from articlestash.config import RemoteConfig

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class AuthSession:
    """Bearer token and extra headers for an article-management API.

    *refresh* is called after a 401 response; it returns either a new token
    or a dict with ``bearer_token`` and/or ``headers`` keys.
    """

    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    bearer_token: str | None = None
    refresh: Callable[[], str | dict] | None = None

    @classmethod
    def from_remote_config(cls, remote: RemoteConfig) -> AuthSession:
        return cls(headers=dict(remote.headers), bearer_token=remote.token)

    def apply_headers(self, headers: MutableMapping[str, str]) -> None:
        if self.headers:
            headers.update(self.headers)
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"

    def refresh_if_needed(self) -> bool:
        """Refresh credentials; return True if new credentials were obtained."""
        if not self.refresh:
            return False
        updated = self.refresh()
        if isinstance(updated, str):
            self.bearer_token = updated
            return True
        if isinstance(updated, dict):
            if "bearer_token" in updated:
                self.bearer_token = str(updated["bearer_token"])
            if isinstance(updated.get("headers"), dict):
                self.headers.update(updated["headers"])
            return True
        logger.warning("Auth refresh returned %r; keeping current credentials", updated)
        return False
