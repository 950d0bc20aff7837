from .status_rules import apply_auto_status

__all__ = ["apply_auto_status"]
