"""
Pattern-based diagnostics.

Every open or changed document is rescanned in full with a problem rule and
the resulting set replaces whatever was published for it before.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from lsprotocol.types import (
    Diagnostic,
    DiagnosticRelatedInformation,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Location,
    PublishDiagnosticsParams,
)
from pygls.workspace.text_document import TextDocument

from fv1ls.lsp.capabilities.capabilities import DiagnosticCapability
from fv1ls.utils.positions import LineIndex

DIAGNOSTIC_SOURCE = "fv1-assembly"


@dataclass(frozen=True)
class ProblemRule:
    """
    A regular expression whose matches are reported as problems.

    ``message`` is formatted with the matched text as ``{match}``. Each entry
    of ``related_messages`` becomes one related-information item pointing at
    the problem itself.
    """

    pattern: re.Pattern[str]
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.Warning
    related_messages: tuple[str, ...] = ()


# Word boundaries follow the editor's ASCII notion of a word.
UPPERCASE_RULE = ProblemRule(
    pattern=re.compile(r"\b[A-Z]{2,}\b", re.ASCII),
    message="{match} is all uppercase.",
    related_messages=("Spelling matters", "Particularly for names"),
)


class PatternDiagnosticsCapability(DiagnosticCapability):
    """Publishes a warning for every match of a problem rule."""

    def __init__(self, server, rule: ProblemRule = UPPERCASE_RULE) -> None:
        super().__init__(server)
        self.rule = rule

    @property
    def name(self) -> str:
        return "pattern_diagnostics"

    @property
    def description(self) -> str:
        return "Report problems matching a pattern in FV-1 assembly documents"

    def register(self) -> None:
        text_sync = self.server.text_sync_manager
        if text_sync:
            text_sync.add_on_open_hook(self._on_open)
            text_sync.add_on_change_hook(self._on_change)

    async def can_handle(self, params: TextDocument) -> bool:
        return True

    async def _on_open(self, params: DidOpenTextDocumentParams) -> None:
        await self._validate_uri(params.text_document.uri)

    async def _on_change(self, params: DidChangeTextDocumentParams) -> None:
        await self._validate_uri(params.text_document.uri)

    async def _validate_uri(self, uri: str) -> None:
        document = self.server.workspace.get_text_document(uri)
        if await self.can_handle(document):
            await self.validate(document)

    async def validate(self, document: TextDocument) -> None:
        """
        Rescan the document and publish its diagnostics.

        A failure to fetch settings propagates and nothing is published, so
        the previous diagnostics stay visible.
        """
        settings = await self.server.settings_cache.get(document.uri)
        diagnostics = self.collect(document, settings.max_number_of_problems)

        self.server.text_document_publish_diagnostics(
            PublishDiagnosticsParams(
                uri=document.uri,
                version=document.version,
                diagnostics=diagnostics,
            )
        )

    def collect(self, document: TextDocument, limit: int) -> list[Diagnostic]:
        """Scan the document text, keeping at most ``limit`` matches."""
        related = self.server.session_capabilities.related_information
        diagnostics: list[Diagnostic] = []

        if limit <= 0:
            return diagnostics

        index = LineIndex(document)
        for match in self.rule.pattern.finditer(document.source):
            diagnostic_range = index.range_at(match.start(), match.end())
            diagnostic = Diagnostic(
                range=diagnostic_range,
                message=self.rule.message.format(match=match.group(0)),
                severity=self.rule.severity,
                source=DIAGNOSTIC_SOURCE,
            )

            if related and self.rule.related_messages:
                diagnostic.related_information = [
                    DiagnosticRelatedInformation(
                        location=Location(uri=document.uri, range=diagnostic_range),
                        message=message,
                    )
                    for message in self.rule.related_messages
                ]

            diagnostics.append(diagnostic)
            if len(diagnostics) >= limit:
                break

        return diagnostics
