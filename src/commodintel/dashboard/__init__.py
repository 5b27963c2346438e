from .console import ConsoleDashboard, confidence_bar, status_label

__all__ = ["ConsoleDashboard", "confidence_bar", "status_label"]
