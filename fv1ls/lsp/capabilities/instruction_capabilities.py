"""
Instruction-related LSP capabilities.

Completion offers every FV-1 instruction regardless of the cursor position,
resolution adds the full documentation of the selected one.
"""

import copy

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionItemLabelDetails,
    CompletionList,
    CompletionParams,
    MarkupContent,
    MarkupKind,
)

from fv1ls.lsp.capabilities.capabilities import CompletionCapability
from fv1ls.workspace.instructions import (
    Instruction,
    InstructionCatalog,
    default_catalog,
)

# Key of the resolution payload stored in CompletionItem.data
RESOLVE_KEY = "instruction"

ITEM_KINDS = {
    "keyword": CompletionItemKind.Keyword,
    "function": CompletionItemKind.Function,
}


def build_documentation(instruction: Instruction) -> str:
    """Markdown documentation for an instruction."""
    parts = [instruction.summary]

    if instruction.notes:
        parts.append("\n".join(f"- {note}" for note in instruction.notes))

    if instruction.usage_lines:
        usage = "\n".join(instruction.usage_lines)
        parts.append(f"**Usage:**\n```spn\n{usage}\n```")

    return "\n\n".join(parts)


def build_detail(instruction: Instruction) -> str:
    """One-line detail: the example statement, or the summary without one."""
    statements = [
        line for line in instruction.usage_lines if not line.lstrip().startswith(";")
    ]
    if statements:
        return f"Usage: {statements[0]}"
    return instruction.summary


class InstructionCompletionCapability(CompletionCapability):
    """Provides completion for FV-1 instruction mnemonics."""

    def __init__(self, server, catalog: InstructionCatalog | None = None) -> None:
        super().__init__(server)
        self.catalog = catalog if catalog is not None else default_catalog()

    @property
    def name(self) -> str:
        return "instruction_completion"

    @property
    def description(self) -> str:
        return "Autocomplete FV-1 instruction mnemonics"

    async def can_handle(self, params: CompletionParams) -> bool:
        # Completion is context free, the position is not inspected.
        return True

    async def complete(self, params: CompletionParams) -> CompletionList:
        """Provide the whole catalog in declaration order."""
        items = [
            CompletionItem(
                label=instruction.mnemonic,
                kind=ITEM_KINDS[instruction.kind],
                detail=instruction.summary,
                data={RESOLVE_KEY: instruction.mnemonic},
            )
            for instruction in self.catalog
        ]

        return CompletionList(is_incomplete=False, items=items)

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        """
        Attach documentation, detail and operand signature to the item.

        Items without a known resolution key are returned as is. The result
        depends only on the key, so resolving twice changes nothing.
        """
        instruction = self._instruction_for(item)
        if instruction is None:
            return item

        resolved = copy.copy(item)
        resolved.detail = build_detail(instruction)
        resolved.documentation = MarkupContent(
            kind=MarkupKind.Markdown,
            value=build_documentation(instruction),
        )
        if instruction.operands:
            resolved.label_details = CompletionItemLabelDetails(
                detail=f" {instruction.operands}"
            )

        return resolved

    def _instruction_for(self, item: CompletionItem) -> Instruction | None:
        data = item.data
        if not isinstance(data, dict):
            return None

        mnemonic = data.get(RESOLVE_KEY)
        if not isinstance(mnemonic, str):
            return None

        return self.catalog.get(mnemonic)
