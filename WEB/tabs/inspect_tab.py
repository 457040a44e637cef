"""
CWC Web: Inspect Tab
======================

Read a token's clear header without any secret: structure check,
metadata and expiry status. Nothing is decrypted or authenticated here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

_root = str(Path(__file__).resolve().parent.parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

import cwc  # noqa: E402

from utils import format_duration, metadata_rows  # noqa: E402


def render() -> None:
    """Render the Inspect tab."""
    token = st.text_input("Token", placeholder="Paste a token…", key="inspect_token").strip()
    if not token:
        st.caption("The header is stored in clear; inspecting needs no key.")
        return

    if not cwc.validate_token(token):
        st.error("Not a structurally valid token.")
        return

    try:
        metadata = cwc.extract_metadata(token)
    except cwc.FormatError as e:
        st.error(f"Format error: {e}")
        return

    st.table({label: [value] for label, value in metadata_rows(metadata)})

    info = cwc.get_version_info(metadata.version)
    if not info["is_supported"]:
        st.warning(f"Version {metadata.version} is not supported by this build.")

    if metadata.expires_at is None:
        st.info("This token does not expire.")
        return

    if cwc.is_expired(token):
        st.error("Expired.")
        return

    elapsed = cwc.get_ttl_percentage_elapsed(token) or 0.0
    st.progress(elapsed / 100)
    st.caption(f"Expires in {format_duration(cwc.get_remaining_time(token))}")
    if cwc.will_expire_soon(token, 60):
        st.warning("Expires within a minute.")

    st.caption("Header is unauthenticated until the token is decoded with its key.")
