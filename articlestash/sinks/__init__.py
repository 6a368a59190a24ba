"""Output sinks.  Importing this package registers the built-in sinks.

- ``epub``      e-book file per article (default)
- ``markdown``  Markdown document per article
- ``remote``    JSON push to an article-management API (needs ``[remote]`` config)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from articlestash.auth import AuthSession
from articlestash.errors import ConfigError
from articlestash.plugins import register_sink
from articlestash.sinks.epub import EpubSink
from articlestash.sinks.markdown import MarkdownSink
from articlestash.sinks.remote import RemotePushSink

if TYPE_CHECKING:
    from articlestash.config import AppConfig


def _remote_from_config(config: AppConfig) -> RemotePushSink:
    if config.remote is None:
        raise ConfigError("the remote sink needs a [remote] section with an endpoint")
    return RemotePushSink(
        config.remote.endpoint,
        auth=AuthSession.from_remote_config(config.remote),
        timeout=config.remote.timeout,
        max_retries=config.remote.max_retries,
    )


def register_builtin_sinks() -> None:
    register_sink("epub", lambda config: EpubSink(config.output_dir))
    register_sink("markdown", lambda config: MarkdownSink(config.output_dir))
    register_sink("remote", _remote_from_config)


register_builtin_sinks()

__all__ = ["EpubSink", "MarkdownSink", "RemotePushSink", "register_builtin_sinks"]
