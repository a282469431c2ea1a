"""
QRShield Streamlit UI
A demo interface for checking QR codes before you scan them with your phone.
"""

import io
import os
from datetime import datetime
from typing import Optional, Dict, Any

import requests
import streamlit as st
from streamlit_paste_button import paste_image_button

from qrshield.config import settings


st.set_page_config(
    page_title="QRShield Demo",
    page_icon="🛡️",
    layout="centered",
)


# ---------- Helpers ----------


def _headers(api_key: Optional[str]) -> Optional[Dict[str, str]]:
    return {settings.api_token_header: api_key} if api_key else None


def call_scan(
    base_url: str,
    api_key: Optional[str],
    source: Optional[str] = None,
    file_bytes: Optional[bytes] = None,
    file_name: Optional[str] = None,
    file_type: Optional[str] = None,
    simulate: bool = False,
) -> Dict[str, Any]:
    """Call QRShield /scan endpoint with multipart/form-data."""

    endpoint = base_url.rstrip("/") + "/scan"

    data = {"simulate": str(simulate).lower()}
    if source:
        data["source"] = source

    files = {}
    if file_bytes is not None and file_name is not None:
        files["file"] = (file_name, file_bytes, file_type or "application/octet-stream")

    resp = requests.post(endpoint, data=data, files=files or None, headers=_headers(api_key), timeout=60)
    resp.raise_for_status()
    return resp.json()


def call_analyze(base_url: str, api_key: Optional[str], url: str) -> Dict[str, Any]:
    """Call QRShield /analyze endpoint for an already-decoded URL."""
    endpoint = base_url.rstrip("/") + "/analyze"
    resp = requests.post(endpoint, data={"url": url}, headers=_headers(api_key), timeout=30)
    resp.raise_for_status()
    return resp.json()


RISK_BADGES = {
    "safe": ("🛡️", "Safe", "green"),
    "suspicious": ("⚠️", "Suspicious", "orange"),
    "dangerous": ("⛔", "Dangerous", "red"),
}

STATUS_ICONS = {"positive": "✅", "warning": "⚠️", "negative": "❌"}

CATEGORY_ICONS = {"lock": "🔒", "alert-octagon": "🛑", "hash": "#️⃣", "timer": "⏱️"}


def render_result(result: Dict[str, Any], decoded: Optional[str] = None):
    """Render an AnalysisResult: badge, score bar, detected URL and findings."""
    st.subheader("🔎 URL Analysis Result")

    level = result.get("risk_level", "safe")
    icon, label, color = RISK_BADGES.get(level, ("❔", level.title(), "gray"))
    score = int(result.get("risk_score", 0))

    scanned_at = result.get("scanned_at")
    if scanned_at:
        try:
            scanned_at = datetime.fromisoformat(scanned_at.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S %Z")
        except ValueError:
            pass
        st.caption(f"Scanned {scanned_at}")

    col1, col2 = st.columns([1, 2])
    with col1:
        st.markdown(f"### {icon} :{color}[{label}]")
    with col2:
        st.write(f"**Risk Score** {score}/100")
        st.progress(score / 100)

    st.markdown("**Detected URL**")
    st.code(result.get("url") or decoded or "", language=None)

    findings = result.get("findings") or []
    if findings:
        st.markdown("**Findings**")
        for finding in findings:
            status_icon = STATUS_ICONS.get(finding.get("status"), "•")
            category_icon = CATEGORY_ICONS.get(finding.get("icon") or "", "")
            st.markdown(f"{status_icon} {category_icon} **{finding.get('title')}**")
            st.caption(finding.get("description", ""))

    if level == "dangerous":
        st.error("Do not open this link. It shows several signs of a phishing attempt.")
    elif level == "suspicious":
        st.warning("Be careful with this link and verify where it really leads before opening it.")
    else:
        st.success("No major red flags found. Still, only open links from sources you trust.")

    with st.expander("🔧 Raw JSON response"):
        st.json(result)


def run_scan(**kwargs):
    with st.spinner("Scanning QR code..."):
        try:
            response = call_scan(base_url=base_url, api_key=api_key, **kwargs)
            render_result(response["result"], decoded=response.get("decoded"))
        except requests.exceptions.HTTPError as e:
            detail = e.response.text
            try:
                detail = e.response.json().get("detail", detail)
            except ValueError:
                pass
            st.toast("Failed to scan QR code", icon="🚫")
            st.error(f"{detail}")
        except requests.exceptions.RequestException as e:
            st.error(f"Error calling backend: {e}")


# ---------- Sidebar ----------


with st.sidebar:
    st.header("🛡️ Backend")

    base_url = st.text_input(
        "API address",
        value=os.environ.get("QRSHIELD_API_URL", "http://127.0.0.1:8000"),
        help="Where the QRShield FastAPI server is running.",
    )
    api_key = st.text_input(
        settings.api_token_header,
        type="password",
        help="Only needed when the server sets API_TOKEN.",
    )

    if st.button("Ping backend"):
        try:
            info = requests.get(base_url.rstrip("/") + "/status", timeout=5)
            info.raise_for_status()
            data = info.json()
            st.success(f"Connected to QRShield {data.get('version')} ({data.get('environment')})")
            if data.get("auth_enabled"):
                st.info("This server requires an API key.")
        except requests.exceptions.RequestException as e:
            st.error(f"Backend unreachable: {e}")


# ---------- Main UI ----------


st.title("🛡️ QRShield")
st.markdown("**Check a QR code before you scan it with your phone**")
st.markdown("---")

tabs = st.tabs(["📤 Upload", "📋 Paste", "📷 Camera", "🔗 Enter URL"])


# --- UPLOAD TAB ---
with tabs[0]:
    image_file = st.file_uploader(
        "Upload an image containing a QR code (PNG, JPG or GIF, max 5MB)",
        type=["png", "jpg", "jpeg", "gif", "webp"],
    )

    if image_file is not None:
        st.image(image_file, caption="QR Code", use_container_width=True)

    if st.button("🔍 Scan QR Code", key="scan_upload", type="primary"):
        if image_file is None:
            st.warning("Please upload an image.")
        else:
            run_scan(
                source="upload",
                file_bytes=image_file.getvalue(),
                file_name=image_file.name,
                file_type=image_file.type,
            )


# --- PASTE TAB ---
with tabs[1]:
    st.caption("Copy an image of a QR code, then press the button to paste it from your clipboard.")
    pasted = paste_image_button("📋 Paste image", key="paste_qr")

    if pasted.image_data is None:
        st.info("No image pasted yet. Your browser may ask for clipboard access.")
    else:
        st.image(pasted.image_data, caption="Pasted image", use_container_width=True)
        buf = io.BytesIO()
        pasted.image_data.save(buf, format="PNG")
        run_scan(
            source="paste",
            file_bytes=buf.getvalue(),
            file_name="clipboard.png",
            file_type="image/png",
        )



# --- CAMERA TAB ---
with tabs[2]:
    photo = st.camera_input("Point your camera at a QR code")

    if photo is not None:
        run_scan(
            source="camera",
            file_bytes=photo.getvalue(),
            file_name="camera.jpg",
            file_type=photo.type or "image/jpeg",
        )


# --- URL TAB ---
with tabs[3]:
    url_val = st.text_input(
        "Paste the URL a QR code decoded to",
        placeholder="https://amaz0n.phishing-site.com/login?account=verify",
    )

    if st.button("🔍 Analyze URL", key="analyze_url", type="primary"):
        if not url_val.strip():
            st.warning("Please enter a URL.")
        else:
            with st.spinner("Analyzing..."):
                try:
                    render_result(call_analyze(base_url, api_key, url_val))
                except requests.exceptions.HTTPError as e:
                    st.error(f"API Error: {e.response.status_code} - {e.response.text}")
                except requests.exceptions.RequestException as e:
                    st.error(f"Error calling backend: {e}")


st.markdown("---")

if st.button("🎲 Try a demo QR code"):
    run_scan(simulate=True)


# --- Footer ---
st.markdown("---")
st.markdown(
    "<div style='text-align: center; color: gray;'>"
    "QRShield v0.1.0 • Static URL heuristics, no data leaves the server"
    "</div>",
    unsafe_allow_html=True,
)
