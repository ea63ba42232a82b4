"""
Instruction catalog for FV-1 assembly.

The catalog is static data shipped next to this module as ``instructions.yml``.
It is loaded once, frozen, and shared by every session in the process.
Completion reads it in declaration order.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

import yaml

CATALOG_FILE = Path(__file__).with_name("instructions.yml")

INSTRUCTION_KINDS = ("keyword", "function")


@dataclass(frozen=True)
class Instruction:
    """One FV-1 instruction mnemonic with its documentation."""

    mnemonic: str
    summary: str
    kind: str = "keyword"
    operands: str | None = None
    notes: tuple[str, ...] = ()
    usage: str | None = None

    @property
    def usage_lines(self) -> list[str]:
        """Usage example split into lines, without surrounding blank lines."""
        if not self.usage:
            return []
        return self.usage.strip("\n").splitlines()


class InstructionCatalog:
    """
    Immutable, ordered table of known instructions.

    Usage:
        catalog = InstructionCatalog.load()
        for instruction in catalog:
            print(instruction.mnemonic)

        rda = catalog.get("RDA")
    """

    def __init__(self, instructions: tuple[Instruction, ...]) -> None:
        self._instructions = instructions

        by_mnemonic: dict[str, Instruction] = {}
        for instruction in instructions:
            if instruction.mnemonic in by_mnemonic:
                raise ValueError(
                    f"Duplicate instruction mnemonic: {instruction.mnemonic}"
                )
            by_mnemonic[instruction.mnemonic] = instruction

        self._by_mnemonic: Mapping[str, Instruction] = MappingProxyType(by_mnemonic)

    @classmethod
    def load(cls, path: Path = CATALOG_FILE) -> InstructionCatalog:
        """Load a catalog from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data) -> InstructionCatalog:
        """Build a catalog from already parsed YAML data."""
        if not isinstance(data, dict) or not isinstance(
            data.get("instructions"), list
        ):
            raise ValueError("Instruction catalog must define an 'instructions' list")

        return cls(tuple(_parse_instruction(entry) for entry in data["instructions"]))

    def get(self, mnemonic: str) -> Instruction | None:
        """Look up an instruction by mnemonic (case-insensitive)."""
        return self._by_mnemonic.get(mnemonic.upper())

    @property
    def mnemonics(self) -> list[str]:
        return [instruction.mnemonic for instruction in self._instructions]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __len__(self) -> int:
        return len(self._instructions)

    def __contains__(self, mnemonic: object) -> bool:
        return isinstance(mnemonic, str) and mnemonic.upper() in self._by_mnemonic


def _parse_instruction(entry) -> Instruction:
    if not isinstance(entry, dict) or "mnemonic" not in entry:
        raise ValueError(f"Invalid instruction entry: {entry!r}")

    mnemonic = str(entry["mnemonic"]).upper()
    kind = entry.get("kind", "keyword")
    if kind not in INSTRUCTION_KINDS:
        raise ValueError(f"Unknown instruction kind for {mnemonic}: {kind!r}")

    return Instruction(
        mnemonic=mnemonic,
        summary=str(entry.get("summary", "")),
        kind=kind,
        operands=entry.get("operands"),
        notes=tuple(str(note) for note in entry.get("notes") or ()),
        usage=entry.get("usage"),
    )


@lru_cache(maxsize=1)
def default_catalog() -> InstructionCatalog:
    """Process-wide catalog loaded from the bundled YAML file."""
    return InstructionCatalog.load()
