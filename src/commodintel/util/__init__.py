from .jsonlog import log_event, log_json, utc_iso, utc_now

__all__ = ["log_event", "log_json", "utc_iso", "utc_now"]
