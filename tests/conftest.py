from unittest.mock import AsyncMock, Mock

import pytest
from pygls.workspace.text_document import TextDocument

from fv1ls.lsp.session_capabilities import SessionCapabilities
from fv1ls.lsp.text_sync_manager import TextSyncManager
from fv1ls.workspace.settings_cache import SettingsCache


@pytest.fixture
def documents() -> dict[str, TextDocument]:
    """Open documents of the mock server, keyed by URI."""
    return {}


@pytest.fixture
def server(documents):
    """
    Mock server with real text sync manager and settings cache.

    The workspace is backed by the ``documents`` fixture. Configuration
    requests answer with the declared default unless a test overrides
    ``workspace_configuration_async``.
    """
    server = Mock()
    server.window_log_message = Mock()  # Use window_log_message for pygls v2
    server.text_document_publish_diagnostics = Mock()
    server.workspace_configuration_async = AsyncMock(
        return_value=[{"maxNumberOfProblems": 100}]
    )
    server.session_capabilities = SessionCapabilities()

    server.workspace.text_documents = documents
    server.workspace.get_text_document.side_effect = lambda uri: documents[uri]

    server.text_sync_manager = TextSyncManager(server)
    server.settings_cache = SettingsCache(server, per_resource=False)
    server.settings_cache.register_text_sync_hooks()
    server.capability_manager = None
    return server


@pytest.fixture
def published(server):
    """Return the PublishDiagnosticsParams sent so far, in order."""

    def _published() -> list:
        return [
            call.args[0]
            for call in server.text_document_publish_diagnostics.call_args_list
        ]

    return _published
