"""Streamlit panel for seeding the Cosmos DB vector container.

- Sidebar controls (API URL, seed file, batch size, delay, clear log)
- Runs POST /seed/stream on the backend and renders progress lines as they arrive
- Shows a progress bar driven by the "Progress: n/total" lines and the final summary
"""
import os
import re

import requests
import streamlit as st

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
PROGRESS_RE = re.compile(r"^Progress: (\d+)/(\d+)")

st.set_page_config(page_title="Cosmos DB Seeder", page_icon="🌱", layout="wide")

if "log" not in st.session_state:
    st.session_state.log = []

st.title("Cosmos DB Vector Data Seeder")
st.caption(
    "Uploads the pre-embedded sample documents into the vector container. "
    "Existing documents are skipped, so seeding again is safe."
)

with st.sidebar:
    st.subheader("Settings")
    api_url = st.text_input("API Base URL", value=API_BASE_URL, help="Backend FastAPI base URL")
    seed_file = st.text_input("Seed file", value="", help="Leave empty to use the server default")
    batch_size = st.slider("Batch size", min_value=1, max_value=50, value=5, help="Concurrent writes per batch")
    delay = st.number_input("Delay between batches (s)", min_value=0.0, max_value=10.0, value=0.2, step=0.1)
    if st.button("Clear log"):
        st.session_state.log = []
        st.rerun()


def health_check(url: str) -> bool:
    """Return True if the backend health endpoint responds OK."""
    try:
        r = requests.get(f"{url}/health", timeout=5)
        return r.ok
    except requests.RequestException as e:
        st.info(e)
        return False


ok = health_check(api_url)
if not ok:
    st.warning(f"Backend health check failed at {api_url}/health. Start the API and try again.")

if st.button("Seed sample data", disabled=not ok, type="primary"):
    st.session_state.log = []
    bar = st.progress(0.0, text="Starting...")
    log_box = st.empty()
    payload = {"batch_size": int(batch_size), "batch_delay_seconds": float(delay)}
    if seed_file.strip():
        payload["seed_file"] = seed_file.strip()
    try:
        with requests.post(f"{api_url}/seed/stream", json=payload, stream=True, timeout=600) as resp:
            if not resp.ok:
                st.error(f"Request failed: {resp.status_code} {resp.text}")
            else:
                for line in resp.iter_lines(decode_unicode=True):
                    if line is None:
                        continue
                    st.session_state.log.append(line)
                    m = PROGRESS_RE.match(line)
                    if m and int(m.group(2)):
                        done, total = int(m.group(1)), int(m.group(2))
                        bar.progress(done / total, text=f"{done}/{total} documents processed")
                    log_box.code("\n".join(st.session_state.log))
        last = st.session_state.log[-1] if st.session_state.log else ""
        if last.startswith("ERROR:"):
            st.error(last)
        elif st.session_state.log:
            st.success("Seeding finished. You can now test the RAG chat.")
    except requests.RequestException as e:
        st.error(f"Error calling API: {e}")
elif st.session_state.log:
    st.code("\n".join(st.session_state.log))
