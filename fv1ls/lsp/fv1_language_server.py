from pygls.lsp.server import LanguageServer

from fv1ls.lsp.capabilities.capabilities import CapabilityManager
from fv1ls.lsp.session_capabilities import SessionCapabilities
from fv1ls.lsp.text_sync_manager import TextSyncManager
from fv1ls.workspace.settings_cache import SettingsCache


class FV1LanguageServer(LanguageServer):
    """
    Custom Language Server with FV-1 specific attributes.

    Attributes:
        session_capabilities: Flags negotiated in ``initialize``, read-only after
        settings_cache: Per-document settings, switched to per-resource mode in initialize
    """

    def __init__(self, name: str, version: str):
        super().__init__(name, version)

        self.session_capabilities = SessionCapabilities()
        self.settings_cache: SettingsCache | None = None
        self.capability_manager: CapabilityManager | None = None
        self.text_sync_manager: TextSyncManager | None = None
