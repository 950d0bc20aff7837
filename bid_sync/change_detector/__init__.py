from .fingerprint import fingerprint, needs_sync

__all__ = ["fingerprint", "needs_sync"]
