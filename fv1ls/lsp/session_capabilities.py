"""
Client capability negotiation.

Reads the capability descriptor sent by the editor in ``initialize`` and
freezes the three feature flags the rest of the server depends on.
"""

from __future__ import annotations

from dataclasses import dataclass

from lsprotocol.types import ClientCapabilities


@dataclass(frozen=True)
class SessionCapabilities:
    """
    Feature flags negotiated once per session.

    Attributes:
        configuration: client answers ``workspace/configuration`` requests,
            so settings can be fetched per document.
        workspace_folders: client sends workspace folder change notifications.
        related_information: client renders ``Diagnostic.related_information``.
    """

    configuration: bool = False
    workspace_folders: bool = False
    related_information: bool = False

    @classmethod
    def from_client_capabilities(
        cls, capabilities: ClientCapabilities | None
    ) -> SessionCapabilities:
        """Derive the flags. Absent sections mean "not supported"."""
        workspace = getattr(capabilities, "workspace", None)
        text_document = getattr(capabilities, "text_document", None)
        publish_diagnostics = getattr(text_document, "publish_diagnostics", None)

        return cls(
            configuration=bool(getattr(workspace, "configuration", False)),
            workspace_folders=bool(getattr(workspace, "workspace_folders", False)),
            related_information=bool(
                getattr(publish_diagnostics, "related_information", False)
            ),
        )
