import uuid

from lsprotocol.types import (
    COMPLETION_ITEM_RESOLVE,
    INITIALIZE,
    INITIALIZED,
    TEXT_DOCUMENT_COMPLETION,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    WORKSPACE_DID_CHANGE_WATCHED_FILES,
    WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS,
    CompletionItem,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DidChangeConfigurationParams,
    DidChangeWatchedFilesParams,
    DidChangeWorkspaceFoldersParams,
    InitializedParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    Registration,
    RegistrationParams,
)

from fv1ls.lsp.capabilities.capabilities import CapabilityManager
from fv1ls.lsp.fv1_language_server import FV1LanguageServer
from fv1ls.lsp.session_capabilities import SessionCapabilities
from fv1ls.lsp.text_sync_manager import TextSyncManager
from fv1ls.workspace.settings_cache import SettingsCache

SERVER_NAME = "fv1ls"
SERVER_VERSION = "0.1.0"


def apply_initialize(ls: FV1LanguageServer, params: InitializeParams) -> None:
    """Negotiate the session capabilities and configure the settings cache."""
    ls.session_capabilities = SessionCapabilities.from_client_capabilities(
        params.capabilities
    )
    if ls.settings_cache:
        ls.settings_cache.per_resource = ls.session_capabilities.configuration

    caps = ls.session_capabilities
    ls.window_log_message(
        LogMessageParams(
            MessageType.Info,
            f"Client capabilities: configuration={caps.configuration}, "
            f"workspace_folders={caps.workspace_folders}, "
            f"related_information={caps.related_information}",
        )
    )


async def apply_configuration_change(
    ls: FV1LanguageServer, params: DidChangeConfigurationParams
) -> None:
    """
    React to a configuration change and revalidate every open document.

    With per-resource configuration the cached settings are dropped and
    fetched again lazily, otherwise the payload becomes the global settings.
    """
    if ls.settings_cache:
        if ls.session_capabilities.configuration:
            ls.settings_cache.invalidate_all()
        else:
            ls.settings_cache.update_global(params.settings)

    if ls.capability_manager:
        await ls.capability_manager.revalidate_documents()


def create_server() -> FV1LanguageServer:
    """
    Creates and returns a configured Language Server instance.

    The LanguageServer class from pygls handles:
    - JSON-RPC communication with clients (editors)
    - Request/response lifecycle
    - Text document storage and incremental updates
    - Server capability advertisement from the registered features
    """
    server = FV1LanguageServer(SERVER_NAME, SERVER_VERSION)

    # Text sync first so caches and capabilities can register hooks.
    server.text_sync_manager = TextSyncManager(server)
    server.text_sync_manager.register_handlers()

    # Global mode until the client tells us it answers configuration requests.
    server.settings_cache = SettingsCache(server, per_resource=False)
    server.settings_cache.register_text_sync_hooks()

    server.capability_manager = CapabilityManager(server)
    server.capability_manager.register_all()

    @server.feature(INITIALIZE)
    def initialize(ls: FV1LanguageServer, params: InitializeParams):
        """Negotiate capabilities, runs once per session."""
        apply_initialize(ls, params)

    @server.feature(INITIALIZED)
    async def initialized(ls: FV1LanguageServer, params: InitializedParams):
        """Subscribe to configuration changes when the client supports it."""
        if not ls.session_capabilities.configuration:
            return

        try:
            await ls.client_register_capability_async(
                RegistrationParams(
                    registrations=[
                        Registration(
                            id=str(uuid.uuid4()),
                            method=WORKSPACE_DID_CHANGE_CONFIGURATION,
                        )
                    ]
                )
            )
        except Exception as e:
            ls.window_log_message(
                LogMessageParams(
                    MessageType.Warning,
                    f"Could not register for configuration changes: {e}",
                )
            )

    @server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
    async def did_change_configuration(
        ls: FV1LanguageServer, params: DidChangeConfigurationParams
    ):
        await apply_configuration_change(ls, params)

    @server.feature(WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
    def did_change_workspace_folders(
        ls: FV1LanguageServer, params: DidChangeWorkspaceFoldersParams
    ):
        ls.window_log_message(
            LogMessageParams(MessageType.Log, "Workspace folder change event received.")
        )

    @server.feature(WORKSPACE_DID_CHANGE_WATCHED_FILES)
    def did_change_watched_files(
        ls: FV1LanguageServer, params: DidChangeWatchedFilesParams
    ):
        ls.window_log_message(
            LogMessageParams(
                MessageType.Log,
                f"Watched files changed: {len(params.changes)} event(s)",
            )
        )

    @server.feature(TEXT_DOCUMENT_COMPLETION, CompletionOptions(resolve_provider=True))
    async def completion(ls: FV1LanguageServer, params: CompletionParams):
        if ls.capability_manager:
            return await ls.capability_manager.handle_completion(params)
        return CompletionList(is_incomplete=False, items=[])

    @server.feature(COMPLETION_ITEM_RESOLVE)
    async def completion_resolve(ls: FV1LanguageServer, item: CompletionItem):
        if ls.capability_manager:
            return await ls.capability_manager.resolve_completion(item)
        return item

    return server
