"""
CWC Token Workbench
====================

Streamlit application entry point.

Launch:
    streamlit run WEB/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# -- Ensure project root is importable ------------------------------------
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

# -- Ensure WEB/ directory is importable ----------------------------------
_web_root = str(Path(__file__).resolve().parent)
if _web_root not in sys.path:
    sys.path.insert(0, _web_root)

import streamlit as st  # noqa: E402

import cwc  # noqa: E402

st.set_page_config(
    page_title="CWC Tokens",
    page_icon="🎟️",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
    <style>
    .stButton > button[kind="primary"] {
        background-color: #e94560;
        border-color: #e94560;
    }
    .stButton > button[kind="primary"]:hover {
        background-color: #d63a54;
        border-color: #d63a54;
    }
    .stTabs [data-baseweb="tab-panel"] {
        padding-top: 1rem;
    }
    .cwc-header {
        text-align: center;
        padding: 1rem 0 0.5rem 0;
    }
    .cwc-header p {
        color: #a0a0b8;
        font-size: 0.95rem;
    }
    </style>
    <div class="cwc-header">
        <h1>🎟️ CWC Tokens</h1>
        <p>Compressed, encrypted, URL-safe tokens for JSON payloads</p>
    </div>
    """,
    unsafe_allow_html=True,
)

with st.sidebar:
    st.markdown("### About")
    st.markdown(
        "Values are serialized to JSON, compressed, sealed with "
        "AES-256-GCM and packed into a Base64URL token with a small "
        "self-describing header."
    )
    st.markdown("---")
    st.markdown("#### Security Notice")
    st.markdown(
        "• Keys exist **only** in your browser session.  \n"
        "• The token header (version, compression, timestamp, TTL) is readable without a key.  \n"
        "• Any change to the header or payload makes decoding fail."
    )
    st.markdown("---")
    backend = "available" if cwc.compression.is_available("brotli") else "missing, using LZ-String"
    st.caption(f"cwc {cwc.__version__}  •  brotli {backend}")

from tabs.token_tab import render as render_token  # noqa: E402
from tabs.inspect_tab import render as render_inspect  # noqa: E402
from tabs.keys_tab import render as render_keys  # noqa: E402

tab_token, tab_inspect, tab_keys = st.tabs(["🎟️ Token", "🔍 Inspect", "🔑 Keys"])

with tab_token:
    render_token()

with tab_inspect:
    render_inspect()

with tab_keys:
    render_keys()
