"""
CWC Web: Token Tab
====================

Encode a JSON value (or plain text) into a token, or decode a token back,
using either a passphrase or a raw key from the session store.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import streamlit as st

# -- project-root import ---------------------------------------------------
_root = str(Path(__file__).resolve().parent.parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

import cwc  # noqa: E402

from key_store import get_key_bytes, list_keys  # noqa: E402
from utils import (  # noqa: E402
    parse_payload,
    passphrase_strength,
    pretty_payload,
    size_summary,
)

_COMPRESSIONS = [c.value for c in cwc.CompressionAlgorithm]


# ---------------------------------------------------------------------------
# Shared secret selector
# ---------------------------------------------------------------------------

def select_secret(prefix: str, label: str = "Secret") -> Optional[cwc.crypto.Secret]:
    """
    Render a passphrase / stored-key picker and return the chosen secret,
    or ``None`` when nothing usable has been entered yet.
    """
    mode = st.radio(
        label,
        ["Passphrase", "Stored Key"],
        horizontal=True,
        key=f"{prefix}_secret_mode",
    )

    if mode == "Passphrase":
        passphrase = st.text_input(
            "Passphrase",
            type="password",
            placeholder="Enter your passphrase…",
            key=f"{prefix}_passphrase",
        )
        if passphrase:
            score, strength, color = passphrase_strength(passphrase)
            cols = st.columns([4, 1])
            with cols[0]:
                st.progress(score / 100)
            with cols[1]:
                st.markdown(
                    f"<span style='color:{color}; font-weight:600;'>{strength}</span>",
                    unsafe_allow_html=True,
                )
        return passphrase or None

    keys = list_keys()
    if not keys:
        st.info("No keys stored yet. Generate or import one in the **Keys** tab.")
        return None
    options = {k.key_id: f"{k.name}  ({k.mode})" for k in keys}
    key_id = st.selectbox(
        "Select Key",
        options.keys(),
        format_func=lambda kid: options[kid],
        key=f"{prefix}_key_id",
    )
    return get_key_bytes(key_id) if key_id else None


# ---------------------------------------------------------------------------
# Public render function
# ---------------------------------------------------------------------------

def render() -> None:
    """Render the Token encode / decode tab."""

    operation = st.radio(
        "Operation",
        ["Encode", "Decode"],
        horizontal=True,
        key="token_operation",
    )
    secret = select_secret("token")

    st.markdown("---")

    if operation == "Encode":
        _render_encode(secret)
    else:
        _render_decode(secret)


def _render_encode(secret) -> None:
    cols = st.columns(3)
    with cols[0]:
        default = cwc.get_default_compression().value
        compression = st.selectbox(
            "Compression",
            _COMPRESSIONS,
            index=_COMPRESSIONS.index(default),
            key="token_compression",
        )
    with cols[1]:
        include_timestamp = st.checkbox("Include timestamp", value=False, key="token_ts")
    with cols[2]:
        ttl = st.number_input(
            "TTL (seconds, 0 = none)",
            min_value=0,
            value=0,
            step=60,
            disabled=not include_timestamp,
            key="token_ttl",
        )

    as_json = st.checkbox("Input is JSON", value=True, key="token_as_json")
    input_text = st.text_area(
        "Payload",
        height=200,
        placeholder='{"user": "alice", "role": "admin"}',
        key="token_input_encode",
    )

    if not st.button("🔒 Encode", type="primary", use_container_width=True, key="token_encode_btn"):
        return
    if not input_text:
        st.error("Please enter a payload first.")
        return
    if secret is None:
        st.error("Please provide a passphrase or select a key.")
        return

    try:
        value = parse_payload(input_text, as_json=as_json)
        options = cwc.EncodeOptions(
            compression=cwc.CompressionAlgorithm(compression),
            include_timestamp=include_timestamp,
            ttl=int(ttl) if include_timestamp and ttl else None,
        )
        token = cwc.encode(value, secret, options)
    except ValueError as e:
        st.error(str(e))
        return
    except cwc.SerializationError as e:
        st.error(f"Cannot serialize payload: {e}")
        return
    except cwc.InvalidKeyError as e:
        st.error(f"Invalid key: {e}")
        return
    except cwc.CWCError as e:
        st.error(f"Error: {e}")
        return

    st.success("Token created!")
    st.code(token, language=None)
    st.caption(size_summary(value, token))


def _render_decode(secret) -> None:
    token = st.text_area(
        "Token",
        height=150,
        placeholder="Paste a token…",
        key="token_input_decode",
    ).strip()

    if not st.button("🔓 Decode", type="primary", use_container_width=True, key="token_decode_btn"):
        return
    if not token:
        st.error("Please paste a token first.")
        return
    if secret is None:
        st.error("Please provide a passphrase or select a key.")
        return

    try:
        result = cwc.decode_with_metadata(token, secret)
    except cwc.ExpiredTokenError:
        st.error("Token has expired.")
        return
    except cwc.DecryptionError as e:
        st.error(f"Decryption failed: {e}")
        return
    except cwc.InvalidKeyError as e:
        st.error(f"Invalid key: {e}")
        return
    except cwc.FormatError as e:
        st.error(f"Format error: {e}")
        return
    except cwc.CWCError as e:
        st.error(f"Error: {e}")
        return

    st.success(f"Decoded (v{result.metadata.version}, {result.metadata.compression.value})")
    st.text_area(
        "Decoded Payload",
        value=pretty_payload(result.data),
        height=200,
        key="token_output_display",
    )
