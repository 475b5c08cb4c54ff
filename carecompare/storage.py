"""Session-scoped JSON storage for households, plans, cost settings and scenarios.

Each session lives under ``<data root>/user_sessions/<session_id>/`` with one JSON file
per collection and an ``audits/`` folder. Storage is a best-effort cache: unreadable
files load as their defaults, while failed writes surface as HTTP 500 errors.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import HTTPException
from pydantic import TypeAdapter, ValidationError

from carecompare import config
from carecompare.models import CostSettings, Person, Plan, Scenarios

logger = logging.getLogger(__name__)

DATA_ROOT = config.DATA_ROOT
_SAFE_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

COLLECTION_FILES: dict[str, str] = {
    "people": "people.json",
    "plans": "plans.json",
    "cost_settings": "cost_settings.json",
    "scenarios": "scenarios.json",
}

_PEOPLE = TypeAdapter(list[Person])
_PLANS = TypeAdapter(list[Plan])

_current_session_id: str | None = None


def _session_root() -> Path:
    return DATA_ROOT / "user_sessions"


def _samples_root() -> Path:
    return DATA_ROOT / "samples"


def _write_json(target: Path, payload: Any) -> None:
    try:
        target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"unable to persist session artifact: {exc}") from exc


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("ignoring unreadable %s: %s", path, exc)
        return default


def set_current_session(session_id: str | None) -> None:
    """Remember the active session id for subsequent requests."""

    global _current_session_id
    _current_session_id = session_id


def get_current_session() -> str | None:
    return _current_session_id


def session_dir(session_id: str) -> Path:
    return _session_root() / session_id


def _validate_id(session_id: str) -> str:
    normalized = str(session_id or "").strip()
    if not normalized:
        raise HTTPException(status_code=400, detail="session_id is required")
    if not _SAFE_ID_PATTERN.fullmatch(normalized):
        raise HTTPException(status_code=400, detail="invalid session_id")
    return normalized


def ensure_session_files(session_id: str) -> Path:
    """Make sure the session's collection files and audit folder exist."""

    base = session_dir(session_id)
    if not base.exists():
        raise HTTPException(status_code=404, detail={"error": "session not found", "session_id": session_id})
    (base / "audits").mkdir(parents=True, exist_ok=True)
    defaults: dict[str, Any] = {
        "people": [],
        "plans": [],
        "cost_settings": CostSettings().model_dump(by_alias=True),
        "scenarios": Scenarios().model_dump(by_alias=True),
    }
    for kind, filename in COLLECTION_FILES.items():
        target = base / filename
        if not target.exists():
            _write_json(target, defaults[kind])
    return base


def _seed_session_with_samples(session_id: str) -> None:
    """Copy the bundled sample household and plans into a fresh session."""

    samples = _samples_root()
    if not samples.exists():
        return
    base = session_dir(session_id)
    for kind in ("people", "plans"):
        payload = _read_json(samples / COLLECTION_FILES[kind], [])
        if not isinstance(payload, list) or not payload:
            continue
        target = base / COLLECTION_FILES[kind]
        if _read_json(target, []):
            continue
        _write_json(target, payload)


def record_audit_entry(session_id: str, prefix: str, payload: Any) -> None:
    """Persist an audit payload under the session's audits directory."""

    if not config.AUDIT_ENABLED:
        return
    base = ensure_session_files(session_id)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    target = base / "audits" / f"{prefix}_{timestamp}.json"
    try:
        target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        # auditing is best-effort
        logger.warning("audit entry %s not written: %s", target.name, exc)


def resolve_session(session_id: str | None, *, required: bool = True) -> str | None:
    """Return a usable session id, optionally falling back to the in-memory current session."""

    normalized = str(session_id or "").strip()
    if normalized:
        _validate_id(normalized)
        if not session_dir(normalized).exists():
            available = [item["session_id"] for item in list_sessions()["sessions"]]
            raise HTTPException(
                status_code=404,
                detail={"error": "session not found", "session_id": normalized, "available_sessions": available},
            )
        ensure_session_files(normalized)
        set_current_session(normalized)
        return normalized

    fallback = get_current_session()
    if fallback and session_dir(fallback).exists():
        ensure_session_files(fallback)
        return fallback

    if required:
        raise HTTPException(status_code=400, detail="No session. Call /session/start first.")
    return None


def _format_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def list_sessions() -> dict[str, list[dict[str, Any]]]:
    """Return metadata about known sessions, newest first."""

    root = _session_root()
    if not root.exists():
        return {"sessions": []}

    current = get_current_session()
    sessions: list[dict[str, Any]] = []
    for path in root.iterdir():
        if not path.is_dir():
            continue
        people = _read_json(path / COLLECTION_FILES["people"], [])
        plans = _read_json(path / COLLECTION_FILES["plans"], [])
        sessions.append(
            {
                "session_id": path.name,
                "created_at": _format_timestamp(path.stat().st_mtime),
                "people_count": len(people) if isinstance(people, list) else 0,
                "plan_count": len(plans) if isinstance(plans, list) else 0,
                "is_current": path.name == current,
            }
        )

    sessions.sort(key=lambda item: item["created_at"], reverse=True)
    return {"sessions": sessions}


def start_session(session_id: str | None = None) -> dict[str, str]:
    """Create a new session directory tree seeded with samples and register it as current."""

    _session_root().mkdir(parents=True, exist_ok=True)
    candidates = [_validate_id(session_id)] if session_id else [str(uuid.uuid4()) for _ in range(8)]
    for candidate in candidates:
        base = session_dir(candidate)
        try:
            base.mkdir(mode=0o755, exist_ok=False)
        except FileExistsError:
            if session_id:
                raise HTTPException(status_code=409, detail="session already exists")
            continue
        except OSError as exc:
            raise HTTPException(status_code=500, detail=f"unable to create session directory: {exc}") from exc

        try:
            _seed_session_with_samples(candidate)
            ensure_session_files(candidate)
        except Exception:
            shutil.rmtree(base, ignore_errors=True)
            raise

        set_current_session(candidate)
        logger.info("started session %s", candidate)
        return {"session_id": candidate}

    raise HTTPException(status_code=500, detail="unable to allocate unique session id")


def delete_session(session_id: str) -> dict[str, Any]:
    """Delete all artifacts for the specified session."""

    session_id = _validate_id(session_id)
    target = session_dir(session_id)
    if not target.exists():
        available = [item["session_id"] for item in list_sessions()["sessions"]]
        raise HTTPException(status_code=404, detail={"error": "session not found", "available_sessions": available})

    try:
        shutil.rmtree(target)
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"unable to delete session: {exc}") from exc

    if get_current_session() == session_id:
        set_current_session(None)
    return {"status": "deleted", "session_id": session_id}


def _validate_collection(kind: str, payload: Any) -> Any:
    if kind == "people":
        return _PEOPLE.validate_python(payload if isinstance(payload, list) else [payload])
    if kind == "plans":
        return _PLANS.validate_python(payload if isinstance(payload, list) else [payload])
    if kind == "cost_settings":
        return CostSettings.model_validate(payload if isinstance(payload, dict) else {})
    if kind == "scenarios":
        return Scenarios.model_validate(payload if isinstance(payload, dict) else {})
    raise KeyError(f"unknown collection '{kind}'")


def _dump(kind: str, value: Any) -> Any:
    if kind in ("people", "plans"):
        return [item.model_dump(by_alias=True) for item in value]
    return value.model_dump(by_alias=True)


def save_collection(session_id: str, kind: str, payload: Any) -> Any:
    """Normalize and persist one collection; returns the stored JSON payload."""

    if kind not in COLLECTION_FILES:
        raise KeyError(f"unknown collection '{kind}'")
    base = ensure_session_files(session_id)
    try:
        value = _validate_collection(kind, payload)
    except ValidationError as exc:
        raise ValueError(f"invalid {kind}: {exc.error_count()} validation error(s)") from exc
    stored = _dump(kind, value)
    _write_json(base / COLLECTION_FILES[kind], stored)
    return stored


def load_collection(session_id: str, kind: str) -> Any:
    """Load one collection as models; unreadable or invalid files yield the default."""

    if kind not in COLLECTION_FILES:
        raise KeyError(f"unknown collection '{kind}'")
    base = ensure_session_files(session_id)
    raw = _read_json(base / COLLECTION_FILES[kind], None)
    empty: Any = [] if kind in ("people", "plans") else {}
    try:
        return _validate_collection(kind, raw if raw is not None else empty)
    except ValidationError as exc:
        logger.warning("ignoring invalid %s for session %s: %s", kind, session_id, exc.error_count())
        return _validate_collection(kind, empty)


def clear_all_data(session_id: str) -> dict[str, Any]:
    """Remove the household, plans and scenarios; cost settings are kept."""

    base = ensure_session_files(session_id)
    removed: list[str] = []
    for kind in ("people", "plans", "scenarios"):
        target = base / COLLECTION_FILES[kind]
        if target.exists():
            target.unlink()
            removed.append(kind)
    ensure_session_files(session_id)
    return {"status": "cleared", "session_id": session_id, "removed": removed}


def export_json(data: Any, filename: str) -> tuple[bytes, str]:
    """Pretty-print data for download; returns (body, filename)."""

    name = filename if filename.endswith(".json") else f"{filename}.json"
    return json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8"), name
