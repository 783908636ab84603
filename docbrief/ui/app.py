# docbrief/ui/app.py
import streamlit as st
import requests

from docbrief.config import API_BASE
from docbrief.prompts.system_prompts import QUICK_PROMPTS

PAGES = ["Dashboard", "Upload", "Ask AI", "Brief Generator", "Settings"]

STATUS_LABELS = {
    "processed": "Completed",
    "processing": "Processing",
    "pending": "Pending",
    "failed": "Failed",
}

st.set_page_config(page_title="docbrief", layout="wide")


# ============================================================
# API HELPERS
# ============================================================

def api(method: str, path: str, **kwargs):
    """Call the backend; returns (json_or_None, error_message_or_None)."""
    try:
        response = requests.request(method, f"{API_BASE}{path}", timeout=120, **kwargs)
    except requests.RequestException as e:
        return None, f"Cannot connect to API: {e}"

    if response.ok:
        return response.json(), None

    try:
        detail = response.json().get("detail", response.text)
    except ValueError:
        detail = response.text

    return None, f"{response.status_code}: {detail}"


def fetch_documents():
    data, error = api("GET", "/documents")
    if error:
        st.error(error)
        return []
    return data["documents"]


def document_picker(label: str, key: str, processed_only: bool = True):
    documents = fetch_documents()
    if processed_only:
        documents = [d for d in documents if d["status"] == "processed"]

    if not documents:
        st.info("Upload and process a document first")
        return []

    options = {f"{d['filename']} ({d['document_id']})": d["document_id"] for d in documents}
    chosen = st.multiselect(label, options=list(options.keys()), key=key)
    return [options[c] for c in chosen]


# ============================================================
# PAGES
# ============================================================

def dashboard_page():
    st.title("Dashboard")

    data, error = api("GET", "/dashboard")
    if error:
        st.error(error)
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Documents", data["total_documents"])
    col2.metric("Processed", data["documents_by_status"].get("processed", 0))
    col3.metric("Chunks", data["total_chunks"])
    col4.metric("Briefs", data["total_briefs"])

    left, right = st.columns(2)

    with left:
        st.subheader("Recent Documents")
        if not data["recent_documents"]:
            st.caption("No documents yet")
        for doc in data["recent_documents"]:
            st.write(
                f"**{doc['filename']}** · {STATUS_LABELS.get(doc['status'], doc['status'])}"
                f" · {doc['file_size'] / 1024 / 1024:.1f} MB · {doc['created_at'][:10]}"
            )

    with right:
        st.subheader("Recent Briefs")
        if not data["recent_briefs"]:
            st.caption("No briefs yet")
        for brief in data["recent_briefs"]:
            st.write(f"**{brief['title']}** · {brief['brief_type']} · {brief['created_at'][:10]}")


def upload_page():
    st.title("Upload Documents")

    uploaded_files = st.file_uploader(
        "Drop files here",
        type=["pdf", "docx", "txt", "md"],
        accept_multiple_files=True,
    )

    if uploaded_files and st.button("Upload", type="primary"):
        for uploaded in uploaded_files:
            with st.spinner(f"Uploading {uploaded.name}..."):
                files = {"file": (uploaded.name, uploaded.getvalue(), uploaded.type)}
                result, error = api("POST", "/upload", files=files)
            if error:
                st.error(f"{uploaded.name}: {error}")
            elif result["status"] == "failed":
                st.warning(f"{uploaded.name}: {result['message']}")
            else:
                st.success(f"{uploaded.name}: {result['chunks_created']} chunks")

    st.divider()
    st.subheader("Your Documents")

    for doc in fetch_documents():
        with st.expander(f"{doc['filename']} · {STATUS_LABELS.get(doc['status'], doc['status'])}"):
            st.write(f"ID: {doc['document_id']}")
            st.write(f"Type: {doc['file_type']}")
            st.write(f"Chunks: {doc['chunks_count']}")
            st.write(f"Uploaded: {doc['created_at'][:19]}")
            if doc.get("error_message"):
                st.error(doc["error_message"])

            col1, col2 = st.columns(2)
            if col1.button("Reprocess", key=f"process_{doc['document_id']}"):
                _, error = api("POST", f"/documents/{doc['document_id']}/process")
                if error:
                    st.error(error)
                else:
                    st.rerun()
            if col2.button("Delete", key=f"delete_{doc['document_id']}"):
                _, error = api("DELETE", f"/documents/{doc['document_id']}")
                if error:
                    st.error(error)
                else:
                    st.rerun()


def ask_page():
    st.title("Ask AI")

    if "chat_history" not in st.session_state:
        st.session_state.chat_history = []

    document_ids = document_picker("Select documents to query", key="ask_docs")

    cols = st.columns(len(QUICK_PROMPTS))
    for col, (label, prompt) in zip(cols, QUICK_PROMPTS):
        if col.button(label, key=f"quick_{label}"):
            st.session_state.pending_question = prompt

    for turn in st.session_state.chat_history:
        with st.chat_message(turn["role"]):
            st.markdown(turn["content"])
            if turn.get("sources"):
                st.caption("Sources: " + ", ".join(turn["sources"]))

    question = st.chat_input("Ask about your documents")
    question = question or st.session_state.pop("pending_question", None)

    if not question:
        return

    if not document_ids:
        st.warning("Select at least one document")
        return

    st.session_state.chat_history.append({"role": "user", "content": question})

    with st.spinner("Thinking..."):
        result, error = api(
            "POST", "/ask", json={"question": question, "document_ids": document_ids}
        )

    if error:
        st.session_state.chat_history.append({"role": "assistant", "content": f"Error: {error}"})
    else:
        st.session_state.chat_history.append({
            "role": "assistant",
            "content": result["answer"],
            "sources": result["sources"],
        })

    st.rerun()


def _brief_editor(cards):
    """Cards with a per-card editing flag kept in session state."""
    editing = st.session_state.setdefault("editing_cards", set())

    for card in cards:
        with st.container(border=True):
            st.subheader(card["title"])
            if card["id"] in editing:
                card["title"] = st.text_input("Title", card["title"], key=f"title_{card['id']}")
                card["content"] = st.text_area(
                    "Content", card["content"], height=160, key=f"content_{card['id']}"
                )
                if st.button("Done", key=f"done_{card['id']}"):
                    editing.discard(card["id"])
                    st.rerun()
            else:
                st.markdown(card["content"].replace("\n", "  \n"))
                if st.button("Edit", key=f"edit_{card['id']}"):
                    editing.add(card["id"])
                    st.rerun()


def brief_page():
    st.title("Brief Generator")

    title = st.text_input("Brief title", value=st.session_state.get("brief_title", "Weekly Brief"))
    brief_type = st.selectbox("Brief type", ["executive", "meeting", "project", "research"])
    document_ids = document_picker("Source documents", key="brief_docs")

    if st.button("Generate Brief", type="primary", disabled=not document_ids):
        with st.spinner("Generating brief..."):
            result, error = api("POST", "/briefs/generate", json={
                "document_ids": document_ids,
                "title": title,
                "brief_type": brief_type,
            })
        if error:
            st.error(error)
        else:
            st.session_state.brief_cards = result["brief"]
            st.session_state.brief_title = title
            names = {d["document_id"]: d["filename"] for d in fetch_documents()}
            st.session_state.brief_sources = [names.get(d, d) for d in document_ids]
            st.session_state.brief_id = None
            if result.get("used_template"):
                st.warning("The AI response could not be parsed; a template was created instead.")

    cards = st.session_state.get("brief_cards")

    if cards:
        st.divider()
        _brief_editor(cards)

        if st.button("Save Brief"):
            brief_id = st.session_state.get("brief_id")
            if brief_id:
                saved, error = api("PUT", f"/briefs/{brief_id}", json={"title": title, "cards": cards})
            else:
                saved, error = api("POST", "/briefs", json={
                    "title": title,
                    "brief_type": brief_type,
                    "cards": cards,
                    "source_documents": st.session_state.get("brief_sources", []),
                })
            if error:
                st.error(error)
            else:
                st.session_state.brief_id = saved["brief_id"]
                st.success("Brief saved")

    st.divider()
    st.subheader("Saved Briefs")

    data, error = api("GET", "/briefs")
    if error:
        st.error(error)
        return

    for brief in data["briefs"]:
        with st.expander(f"{brief['title']} · {brief['created_at'][:10]}"):
            col1, col2, col3, col4, col5 = st.columns(5)
            if col1.button("Open", key=f"open_{brief['brief_id']}"):
                st.session_state.brief_cards = brief["cards"]
                st.session_state.brief_title = brief["title"]
                st.session_state.brief_sources = brief["source_documents"]
                st.session_state.brief_id = brief["brief_id"]
                st.rerun()
            for col, fmt, label in (
                (col2, "markdown", "Markdown"),
                (col3, "docx", "DOCX"),
                (col4, "json", "JSON"),
            ):
                response = requests.get(
                    f"{API_BASE}/briefs/{brief['brief_id']}/export",
                    params={"format": fmt},
                    timeout=60,
                )
                if response.ok:
                    col.download_button(
                        label,
                        data=response.content,
                        file_name=response.headers.get("content-disposition", "")
                        .split("filename=")[-1].strip('"') or f"brief.{fmt}",
                        key=f"export_{fmt}_{brief['brief_id']}",
                    )
            if col5.button("Delete", key=f"delete_brief_{brief['brief_id']}"):
                _, error = api("DELETE", f"/briefs/{brief['brief_id']}")
                if error:
                    st.error(error)
                else:
                    st.rerun()


def settings_page():
    st.title("Settings")

    data, error = api("GET", "/settings")
    if error:
        st.error(error)
        return

    notifications_tab, integrations_tab = st.tabs(["Notifications", "Integrations"])

    with notifications_tab:
        labels = {
            "upload_complete": "Upload complete",
            "brief_generated": "Brief generated",
            "weekly_digest": "Weekly digest",
            "system_updates": "System updates",
        }
        for key, label in labels.items():
            value = st.toggle(label, value=data["notifications"][key], key=f"notify_{key}")
            if value != data["notifications"][key]:
                _, error = api("PUT", "/settings/notifications", json={key: value})
                if error:
                    st.error(error)
                else:
                    st.toast("Your notification preferences have been saved.")

    with integrations_tab:
        for name, state in data["integrations"].items():
            col1, col2 = st.columns([3, 1])
            col1.write(f"**{name.capitalize()}** · {state['status']}")
            action = "disconnect" if state["connected"] else "connect"
            if col2.button(action.capitalize(), key=f"{action}_{name}"):
                _, error = api("POST", f"/settings/integrations/{name}/{action}")
                if error:
                    st.error(error)
                else:
                    st.rerun()


# ============================================================
# NAVIGATION
# ============================================================

page = st.sidebar.radio("Navigation", PAGES)

{
    "Dashboard": dashboard_page,
    "Upload": upload_page,
    "Ask AI": ask_page,
    "Brief Generator": brief_page,
    "Settings": settings_page,
}[page]()
