"""
Text Synchronization Manager

Receives the LSP text sync notifications and lets capabilities and caches
react to the document lifecycle through hooks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

from lsprotocol.types import (
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    LogMessageParams,
    MessageType,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
)

if TYPE_CHECKING:
    from fv1ls.lsp.fv1_language_server import FV1LanguageServer


# Type aliases for hook signatures
OnOpenHook = Callable[[DidOpenTextDocumentParams], Awaitable[None]]
OnChangeHook = Callable[[DidChangeTextDocumentParams], Awaitable[None]]
OnCloseHook = Callable[[DidCloseTextDocumentParams], Awaitable[None]]

P = TypeVar("P")


class TextSyncManager:
    """
    Tracks the open/change/close lifecycle of documents and broadcasts it.

    pygls keeps the authoritative text and version of every open document in
    ``server.workspace`` and applies each notification (incremental edits
    included) before the handlers below run. This class only fans the events
    out to registered hooks.

    - Hooks run in registration order
    - One failing hook does not stop the others, the error is logged
    - Notifications are processed in arrival order, never coalesced

    Usage:
        text_sync = TextSyncManager(server)
        text_sync.register_handlers()
        server.text_sync_manager = text_sync

        class DiagnosticsCapability(Capability):
            def register(self):
                text_sync = self.server.text_sync_manager
                text_sync.add_on_change_hook(self._on_change)
    """

    def __init__(self, server: FV1LanguageServer) -> None:
        self.server = server

        self._on_open_hooks: list[OnOpenHook] = []
        self._on_change_hooks: list[OnChangeHook] = []
        self._on_close_hooks: list[OnCloseHook] = []

    def add_on_open_hook(self, hook: OnOpenHook) -> None:
        """
        Register a hook for document open events.

        Args:
            hook: Async function taking DidOpenTextDocumentParams
        """
        self._on_open_hooks.append(hook)

    def add_on_change_hook(self, hook: OnChangeHook) -> None:
        """
        Register a hook for document change events.

        Called once per didChange notification, i.e. on every edit.

        Args:
            hook: Async function taking DidChangeTextDocumentParams
        """
        self._on_change_hooks.append(hook)

    def add_on_close_hook(self, hook: OnCloseHook) -> None:
        """
        Register a hook for document close events.

        Use for cleanup of per-document state.

        Args:
            hook: Async function taking DidCloseTextDocumentParams
        """
        self._on_close_hooks.append(hook)

    async def _broadcast(
        self, event: str, hooks: list[Callable[[P], Awaitable[None]]], params: P
    ) -> None:
        for hook in hooks:
            try:
                await hook(params)
            except Exception as e:
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Error in {event} hook {hook.__name__}: "
                                f"{type(e).__name__}: {e}"
                    )
                )

    async def _broadcast_on_open(self, params: DidOpenTextDocumentParams) -> None:
        await self._broadcast("on_open", self._on_open_hooks, params)

    async def _broadcast_on_change(self, params: DidChangeTextDocumentParams) -> None:
        await self._broadcast("on_change", self._on_change_hooks, params)

    async def _broadcast_on_close(self, params: DidCloseTextDocumentParams) -> None:
        await self._broadcast("on_close", self._on_close_hooks, params)

    def register_handlers(self) -> None:
        """
        Register LSP text synchronization handlers with the server.

        Call once, before capabilities register their hooks.

        Registers handlers for:
        - textDocument/didOpen
        - textDocument/didChange
        - textDocument/didClose
        """

        @self.server.feature(TEXT_DOCUMENT_DID_OPEN)
        async def did_open(
            ls: FV1LanguageServer,
            params: DidOpenTextDocumentParams,
        ) -> None:
            ls.window_log_message(
                LogMessageParams(
                    type=MessageType.Info,
                    message=f"Document opened: {params.text_document.uri}"
                )
            )
            await self._broadcast_on_open(params)

        @self.server.feature(TEXT_DOCUMENT_DID_CHANGE)
        async def did_change(
            ls: FV1LanguageServer,
            params: DidChangeTextDocumentParams,
        ) -> None:
            ls.window_log_message(
                LogMessageParams(
                    type=MessageType.Log,
                    message=f"Document changed: {params.text_document.uri} "
                            f"(version {params.text_document.version})"
                )
            )
            await self._broadcast_on_change(params)

        @self.server.feature(TEXT_DOCUMENT_DID_CLOSE)
        async def did_close(
            ls: FV1LanguageServer,
            params: DidCloseTextDocumentParams,
        ) -> None:
            ls.window_log_message(
                LogMessageParams(
                    type=MessageType.Info,
                    message=f"Document closed: {params.text_document.uri}"
                )
            )
            await self._broadcast_on_close(params)
