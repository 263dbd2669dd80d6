import json
import logging
import sys
from datetime import datetime, timezone

security_logger = logging.getLogger("cramitup.security")


def configure_logging():
    logger = logging.getLogger()
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)


def log_security_event(event: str, **data) -> dict:
    """Emit a structured security event and return the logged entry."""
    entry = {"timestamp": datetime.now(timezone.utc).isoformat(), "event": event}
    entry.update(data)
    security_logger.warning("[SECURITY] %s", json.dumps(entry, ensure_ascii=False, default=str))
    return entry
