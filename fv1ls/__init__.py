"""FV1LS - Language Server for Spin Semiconductor FV-1 assembly."""
