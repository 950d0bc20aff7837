from .orchestrator import SyncOrchestrator, SyncResult

__all__ = ["SyncOrchestrator", "SyncResult"]
