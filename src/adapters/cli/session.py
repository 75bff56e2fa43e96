"""
adapters.cli.session - Local session credential storage.

Credentials (user_id + JWT access_token) are stored in
~/.meal-planner/session.json so the user stays logged in between CLI
invocations without re-entering their password every time.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path

logger = logging.getLogger(__name__)

_SESSION_DIR  = Path.home() / ".meal-planner"
_SESSION_FILE = _SESSION_DIR / "session.json"


@dataclass
class Session:
    user_id: int
    access_token: str
    email: str = ""


def _session_file(path: Path | None) -> Path:
    return path if path is not None else _SESSION_FILE


def load_session(path: Path | None = None) -> Session | None:
    """Return the stored session, or None if the user is not logged in."""
    path = _session_file(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Session(**data)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Ignoring unreadable session file %s: %s", path, exc)
        return None


def save_session(session: Session, path: Path | None = None) -> None:
    """Persist session credentials to disk."""
    path = _session_file(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(session), indent=2), encoding="utf-8"
    )


def clear_session(path: Path | None = None) -> None:
    """Delete stored credentials (logout)."""
    path = _session_file(path)
    if path.exists():
        path.unlink()
