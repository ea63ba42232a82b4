"""Workspace state for FV1LS: instruction catalog and settings cache."""
from .instructions import Instruction, InstructionCatalog, default_catalog
from .settings_cache import ServerSettings, SettingsCache

__all__ = [
    'Instruction',
    'InstructionCatalog',
    'ServerSettings',
    'SettingsCache',
    'default_catalog',
]
