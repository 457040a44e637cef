"""
CWC Web: Session-State Key Store
==================================

Raw 256-bit keys kept entirely in ``st.session_state``. Nothing is
persisted to disk; closing the browser tab drops every key.
"""

from __future__ import annotations

import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import streamlit as st

# -- make project root importable so ``import cwc`` works uninstalled ------
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import cwc  # noqa: E402


@dataclass
class KeyEntry:
    """A raw token key stored in the session."""
    key_id: str
    name: str
    key_b64: str
    mode: str  # "system" | "custom"
    created: str


_STATE_KEY = "cwc_keys"


def _init_state() -> None:
    if _STATE_KEY not in st.session_state:
        st.session_state[_STATE_KEY] = {}


def _store(name: str, raw: bytes, mode: str) -> KeyEntry:
    _init_state()
    entry = KeyEntry(
        key_id=uuid.uuid4().hex[:12],
        name=name.strip() or "Untitled Key",
        key_b64=cwc.key_to_base64(raw),
        mode=mode,
        created=datetime.now(timezone.utc).isoformat(),
    )
    st.session_state[_STATE_KEY][entry.key_id] = entry
    return entry


def generate_system_key(name: str) -> KeyEntry:
    """Generate a random 256-bit key and store it."""
    return _store(name, cwc.generate_key(), "system")


def import_custom_key(name: str, value: str, fmt: str = "base64") -> KeyEntry:
    """
    Import a user-supplied key given as ``"base64"`` (URL-safe) or
    ``"hex"``. Raises :class:`cwc.InvalidKeyError` on bad input.
    """
    if fmt == "hex":
        raw = cwc.key_from_hex(value.strip())
    else:
        raw = cwc.key_from_base64(value.strip())
    return _store(name or "Imported Key", raw, "custom")


def list_keys() -> List[KeyEntry]:
    """All keys in the session, newest first."""
    _init_state()
    keys = list(st.session_state[_STATE_KEY].values())
    keys.sort(key=lambda k: k.created, reverse=True)
    return keys


def get_key(key_id: str) -> Optional[KeyEntry]:
    _init_state()
    return st.session_state[_STATE_KEY].get(key_id)


def get_key_bytes(key_id: str) -> bytes:
    entry = get_key(key_id)
    if entry is None:
        raise cwc.InvalidKeyError(f"Key '{key_id}' not found in session.")
    return cwc.key_from_base64(entry.key_b64)


def delete_key(key_id: str) -> bool:
    _init_state()
    return st.session_state[_STATE_KEY].pop(key_id, None) is not None


def rename_key(key_id: str, new_name: str) -> bool:
    _init_state()
    entry = st.session_state[_STATE_KEY].get(key_id)
    if entry is None:
        return False
    entry.name = new_name.strip() or entry.name
    return True
