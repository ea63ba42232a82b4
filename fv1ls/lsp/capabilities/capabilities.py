"""
LSP Capabilities Manager

This module manages LSP feature handlers (completion, diagnostics) using a
plugin architecture.

Design Principles:
1. Plugin-based (add capabilities without modifying core)
2. Type-safe (abstract base class)
3. Composable (multiple handlers for same feature)
4. Testable (isolated capability handlers)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionItem,
    CompletionList,
    CompletionParams,
    LogMessageParams,
    MessageType,
)
from pygls.workspace.text_document import TextDocument

if TYPE_CHECKING:
    from fv1ls.lsp.fv1_language_server import FV1LanguageServer


class Capability(ABC):
    """
    Base class for all LSP capability handlers.

    Each capability handles one LSP feature and decides whether it can handle
    a specific request based on context.
    """

    def __init__(self, server: FV1LanguageServer) -> None:
        self.server = server

    def register(self) -> None:
        """
        Hook this capability into the server.

        Called once during server creation. Capabilities driven by the
        document lifecycle register text sync hooks here.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this capability."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this capability does."""
        pass

    @abstractmethod
    async def can_handle(self, params) -> bool:
        """Check if the capability can handle the request."""
        pass


class CompletionCapability(Capability):
    """Base class for completion capabilities."""

    @abstractmethod
    async def can_handle(self, params: CompletionParams) -> bool:
        """
        Check if this capability can handle the completion request.

        Returns True if this capability should provide completions
        for the current context.
        """
        pass

    @abstractmethod
    async def complete(self, params: CompletionParams) -> CompletionList:
        """
        Provide completion items.

        Only called if can_handle() returns True.
        """
        pass

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        """
        Fill in the details of a completion item chosen by the user.

        Override this method to provide lazy resolution. By default, returns
        the item unchanged.
        """
        return item


class DiagnosticCapability(Capability):
    """Base class for capabilities that publish diagnostics for a document."""

    @abstractmethod
    async def can_handle(self, params: TextDocument) -> bool:
        """Check if this capability validates the given document."""
        pass

    @abstractmethod
    async def validate(self, document: TextDocument) -> None:
        """Compute and publish diagnostics for the document."""
        pass


class CapabilityManager:
    """
    Central manager for all LSP capabilities.

    Usage:
        # In server creation
        manager = CapabilityManager(server)
        manager.register_all()
    """

    def __init__(
        self,
        server: FV1LanguageServer,
        capabilities: dict[str, Capability] | None = None,
    ):
        self.server = server

        # Default capabilities
        if capabilities is None:
            from fv1ls.lsp.capabilities.diagnostics_capability import (
                PatternDiagnosticsCapability,
            )
            from fv1ls.lsp.capabilities.instruction_capabilities import (
                InstructionCompletionCapability,
            )

            capabilities = {
                "instruction_completion": InstructionCompletionCapability(server),
                "pattern_diagnostics": PatternDiagnosticsCapability(server),
            }

        self.capabilities = capabilities
        self._registered = False

    def register_all(self) -> None:
        """Register all capabilities with the server."""
        if self._registered:
            return

        for capability in self.capabilities.values():
            capability.register()

        self._registered = True

    def get_capability(self, name: str) -> Capability | None:
        """Get a specific capability by name"""
        return self.capabilities.get(name)

    def get_capabilities_by_type(self, capability_type: type) -> list[Capability]:
        """Get all capabilities of a specific type (e.g., all CompletionCapability)."""
        return [
            cap
            for cap in self.capabilities.values()
            if isinstance(cap, capability_type)
        ]

    async def handle_completion(self, params: CompletionParams) -> CompletionList:
        """
        Handle completion requests by delegating to capable handlers.

        This aggregates results from all completion capabilities that
        can handle the request.
        """
        all_items = []

        for capability in self.get_capabilities_by_type(CompletionCapability):
            if await capability.can_handle(params):
                result = await capability.complete(params)  # pyright: ignore
                all_items.extend(result.items)

        return CompletionList(is_incomplete=False, items=all_items)

    async def resolve_completion(self, item: CompletionItem) -> CompletionItem:
        """Return the first resolution that differs from the item sent."""
        for capability in self.get_capabilities_by_type(CompletionCapability):
            try:
                resolved = await capability.resolve(item)  # pyright: ignore
                if resolved is not item:
                    return resolved
            except Exception as e:
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Completion resolve error in {capability.name}: {e}"
                    )
                )

        return item

    async def revalidate_documents(self) -> None:
        """
        Run every diagnostic capability on every open document.

        Passes run concurrently. A failing pass is logged and leaves the
        previously published diagnostics of its document in place.
        """
        documents = list(self.server.workspace.text_documents.values())
        passes = []
        for capability in self.get_capabilities_by_type(DiagnosticCapability):
            for document in documents:
                if await capability.can_handle(document):
                    passes.append((capability, document))

        results = await asyncio.gather(
            *(capability.validate(document) for capability, document in passes),  # pyright: ignore
            return_exceptions=True,
        )

        for (capability, document), result in zip(passes, results):
            if isinstance(result, Exception):
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Validation error in {capability.name} for "
                                f"{document.uri}: {type(result).__name__}: {result}"
                    )
                )
