"""
CWC Web: Keys Tab
===================

Manage raw 256-bit keys for the session and rotate tokens between
secrets:
  • Generate random keys / import Base64 or Hex keys
  • Rename, export, delete
  • Dry-run a rotation, then rotate one or many tokens
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import streamlit as st

_root = str(Path(__file__).resolve().parent.parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

import cwc  # noqa: E402

from key_store import (  # noqa: E402
    delete_key,
    generate_system_key,
    import_custom_key,
    list_keys,
    rename_key,
)
from tabs.token_tab import select_secret  # noqa: E402


def render() -> None:
    """Render the Keys management and rotation tab."""

    keys_col, rotate_col = st.columns(2)

    with keys_col:
        st.subheader("🔑 Session Keys")

        with st.expander("Generate New Key", expanded=False):
            gen_name = st.text_input("Key Name", placeholder="e.g. Signing key 2024-06", key="key_gen_name")
            if st.button("Generate", key="key_gen_btn", use_container_width=True):
                if not gen_name.strip():
                    st.error("Please enter a name for the key.")
                else:
                    entry = generate_system_key(gen_name)
                    st.success(f"Key **{entry.name}** generated!")
                    st.rerun()

        with st.expander("Import Existing Key", expanded=False):
            imp_name = st.text_input("Key Name", placeholder="e.g. Shared Key", key="key_imp_name")
            imp_fmt = st.radio("Format", ["Base64", "Hex"], horizontal=True, key="key_imp_fmt")
            imp_val = st.text_input("Key Value", placeholder="Paste your Base64 or Hex key…", key="key_imp_val")
            if st.button("Import", key="key_imp_btn", use_container_width=True):
                if not imp_val.strip():
                    st.error("Please enter a key value.")
                else:
                    try:
                        entry = import_custom_key(imp_name, imp_val, fmt=imp_fmt.lower())
                        st.success(f"Key **{entry.name}** imported!")
                        st.rerun()
                    except cwc.InvalidKeyError as e:
                        st.error(f"Invalid key: {e}")

        st.markdown("---")
        keys = list_keys()
        if not keys:
            st.info("No keys yet. Generate or import one above.")
        else:
            st.caption(f"{len(keys)} key(s) stored in this session")
            for entry in keys:
                _render_key_card(entry)

    with rotate_col:
        st.subheader("🔄 Rotation")
        _render_rotation()


def _render_key_card(entry) -> None:
    with st.container(border=True):
        st.markdown(f"**{entry.name}**")
        st.caption(f"{entry.mode} key  •  {_format_time(entry.created)}")
        st.code(entry.key_b64, language=None)

        action_cols = st.columns(3)
        with action_cols[0]:
            st.download_button(
                "📥 Export .key",
                data=f"# CWC key\n# Name: {entry.name}\n# Created: {entry.created}\n{entry.key_b64}\n",
                file_name=f"{entry.name.replace(' ', '_')}.key",
                mime="text/plain",
                key=f"key_export_{entry.key_id}",
                use_container_width=True,
            )
        with action_cols[1]:
            new_name = st.text_input(
                "Rename",
                value=entry.name,
                key=f"key_rename_{entry.key_id}",
                label_visibility="collapsed",
            )
            if new_name != entry.name:
                rename_key(entry.key_id, new_name)
                st.rerun()
        with action_cols[2]:
            if st.button("🗑️ Delete", key=f"key_del_{entry.key_id}", use_container_width=True):
                delete_key(entry.key_id)
                st.rerun()


def _render_rotation() -> None:
    old_secret = select_secret("rotate_old", label="Old secret")
    new_secret = select_secret("rotate_new", label="New secret")
    tokens_text = st.text_area(
        "Tokens (one per line)",
        height=150,
        key="rotate_tokens",
    )
    tokens = [line.strip() for line in tokens_text.splitlines() if line.strip()]

    cols = st.columns(2)
    with cols[0]:
        dry_run = st.button("Dry run", key="rotate_dry_btn", use_container_width=True)
    with cols[1]:
        rotate = st.button("Rotate", type="primary", key="rotate_btn", use_container_width=True)

    if not (dry_run or rotate):
        return
    if not tokens:
        st.error("Please paste at least one token.")
        return
    if old_secret is None or new_secret is None:
        st.error("Both secrets are required.")
        return

    if dry_run:
        for i, token in enumerate(tokens, start=1):
            check = cwc.check_key_rotation(token, old_secret, new_secret)
            if check.ok:
                st.success(f"Token {i}: OK")
            else:
                st.error(f"Token {i}: failed at {check.stage}: {check.error or 'value mismatch'}")
        return

    try:
        rotated = cwc.rotate_keys(tokens, old_secret, new_secret)
    except cwc.CWCError as e:
        st.error(f"Rotation aborted, no tokens were rotated: {e}")
        return
    st.success(f"Rotated {len(rotated)} token(s).")
    st.code("\n".join(rotated), language=None)


def _format_time(iso_str: str) -> str:
    try:
        return datetime.fromisoformat(iso_str).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso_str
