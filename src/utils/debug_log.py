"""
Debug Log Utility

Optional, file-based debug logging for the stack manager. Logs are written
only when enabled via environment variable; failures are swallowed so stack
building never breaks because of logging.

Inputs:
    - debug_log(location, message, data) calls from application code
    - Environment: DICOMSTACK_DEBUG_LOG (set to 1, true, or yes to enable)
    - Environment: DICOMSTACK_DEBUG_LOG_PATH (optional log file override)

Outputs:
    - When enabled: appends JSON lines to <project_root>/.debug/stack_debug.log
    - When disabled or on error: no side effects

Requirements:
    - Standard library only: pathlib, os, json, time
"""

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

# src/utils/debug_log.py -> parent=utils, parent.parent=src, parent.parent.parent=project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_ENABLED_VALUES = ("1", "true", "yes")


def is_debug_log_enabled() -> bool:
    """Return True when DICOMSTACK_DEBUG_LOG is set to 1, true, or yes (case-insensitive)."""
    return os.getenv("DICOMSTACK_DEBUG_LOG", "0").strip().lower() in _ENABLED_VALUES


def get_debug_log_path() -> Path:
    """Return the log file path, honouring DICOMSTACK_DEBUG_LOG_PATH."""
    override = os.getenv("DICOMSTACK_DEBUG_LOG_PATH", "").strip()
    if override:
        return Path(override)
    return _PROJECT_ROOT / ".debug" / "stack_debug.log"


def debug_log(location: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
    """
    Append one JSON log line to the debug log when debug logging is enabled.

    Failures (missing dir, permission, disk full, etc.) are caught and ignored.

    Args:
        location: Call site identifier (e.g. "stack_manager.make_and_add_stack").
        message: Short description of the event.
        data: Optional dict of context (must be JSON-serializable).
    """
    if not is_debug_log_enabled():
        return
    try:
        log_path = get_debug_log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "sessionId": f"pid-{os.getpid()}",
            "location": location,
            "message": message,
            "data": data or {},
            "timestamp": int(time.time() * 1000),
        }
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(payload) + "\n")
    except Exception:
        pass
