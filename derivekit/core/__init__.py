"""Core value types, metadata and arrays used by derivekit plugins."""
