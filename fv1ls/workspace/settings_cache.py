"""
Per-document settings cache.

Settings are fetched lazily from the editor with ``workspace/configuration``
and memoized per document URI. When the client cannot answer configuration
requests, a single global value is used instead, replaced directly from
``workspace/didChangeConfiguration`` payloads.

Invariant: at most one pending or resolved entry per URI. Concurrent callers
for the same URI await the same fetch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from lsprotocol.types import (
    ConfigurationItem,
    ConfigurationParams,
    DidCloseTextDocumentParams,
)

if TYPE_CHECKING:
    from fv1ls.lsp.fv1_language_server import FV1LanguageServer


CONFIGURATION_SECTION = "fv1AssemblyLanguageServer"

DEFAULT_MAX_NUMBER_OF_PROBLEMS = 100


@dataclass(frozen=True)
class ServerSettings:
    """Resolved settings for one document."""

    max_number_of_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS

    @classmethod
    def from_dict(cls, data: Any) -> ServerSettings:
        """
        Parse a configuration section as returned by the editor.

        Unknown keys are ignored. Values of the wrong type fall back to
        defaults, negative limits clamp to 0.
        """
        if not isinstance(data, dict):
            return cls()

        limit = data.get("maxNumberOfProblems", DEFAULT_MAX_NUMBER_OF_PROBLEMS)
        if isinstance(limit, bool) or not isinstance(limit, (int, float)):
            limit = DEFAULT_MAX_NUMBER_OF_PROBLEMS

        return cls(max_number_of_problems=max(0, int(limit)))


class SettingsCache:
    """
    Settings lookup with per-resource memoization.

    Usage:
        cache = SettingsCache(server, per_resource=caps.configuration)
        cache.register_text_sync_hooks()

        settings = await cache.get(uri)

        # On workspace/didChangeConfiguration
        cache.invalidate_all()          # per-resource mode
        cache.update_global(payload)    # global mode
    """

    def __init__(
        self,
        server: FV1LanguageServer,
        per_resource: bool,
        section: str = CONFIGURATION_SECTION,
    ) -> None:
        self.server = server
        self.per_resource = per_resource
        self.section = section

        self._global_settings = ServerSettings()
        self._entries: dict[str, asyncio.Future[ServerSettings]] = {}

    @property
    def global_settings(self) -> ServerSettings:
        return self._global_settings

    def register_text_sync_hooks(self) -> None:
        """Drop a document's settings when the editor closes it."""
        text_sync = self.server.text_sync_manager
        if text_sync:
            text_sync.add_on_close_hook(self._on_document_closed)

    async def get(self, uri: str) -> ServerSettings:
        """Return the settings that apply to ``uri``."""
        if not self.per_resource:
            return self._global_settings

        entry = self._entries.get(uri)
        if entry is None:
            entry = asyncio.ensure_future(self._fetch(uri))
            entry.add_done_callback(partial(self._discard_failed, uri))
            self._entries[uri] = entry

        # Shielded so a cancelled caller does not cancel the shared fetch.
        return await asyncio.shield(entry)

    def invalidate_all(self) -> None:
        """Drop every per-resource entry. The global value is kept."""
        self._entries.clear()

    def forget(self, uri: str) -> None:
        """Drop the entry for a single document."""
        self._entries.pop(uri, None)

    def update_global(self, settings: Any) -> None:
        """
        Replace the global settings from a didChangeConfiguration payload.

        The payload is the whole settings object sent by the editor, the
        relevant values live under ``self.section``.
        """
        section = settings.get(self.section) if isinstance(settings, dict) else None
        self._global_settings = ServerSettings.from_dict(section)

    def is_cached(self, uri: str) -> bool:
        return uri in self._entries

    @property
    def cached_uris(self) -> list[str]:
        return list(self._entries)

    async def _fetch(self, uri: str) -> ServerSettings:
        result = await self.server.workspace_configuration_async(
            ConfigurationParams(
                items=[ConfigurationItem(scope_uri=uri, section=self.section)]
            )
        )
        return ServerSettings.from_dict(result[0] if result else None)

    def _discard_failed(self, uri: str, entry: asyncio.Future[ServerSettings]) -> None:
        if not entry.cancelled() and entry.exception() is None:
            return
        # The entry may already have been replaced after an invalidation.
        if self._entries.get(uri) is entry:
            del self._entries[uri]

    async def _on_document_closed(self, params: DidCloseTextDocumentParams) -> None:
        self.forget(params.text_document.uri)
