"""
Streamlit Frontend for Finance Grid

Editable tables for the projects, subscription revenue and financial
summary datasets.

DESIGN PRINCIPLES:
1. The table always shows the Record Store's current collection
2. One cell is edited at a time
3. Removing a row always asks for confirmation
4. The surfaced error is always visible until cleared
5. Offline work carries on; Reconnect is one click away

The UI holds no data of its own: every action goes through the
GridSession for the selected dataset.
"""

import asyncio

import streamlit as st

from finance_grid.audit import SyncEventLogger
from finance_grid.config import get_settings, validate_all_settings
from finance_grid.editing import CommitResult, CommitTrigger
from finance_grid.models import (
    DATASETS,
    FieldKind,
    ProjectStatus,
    RemovalResponse,
    SubmitStatus,
    SyncOperation,
)
from finance_grid.session import GridSession, create_grid_session


# Page configuration
st.set_page_config(
    page_title="Finance Grid",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_event_loop():
    """One loop for the whole app, so pooled HTTP connections stay usable."""
    return asyncio.new_event_loop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = get_event_loop()
    asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@st.cache_resource
def get_event_logger() -> SyncEventLogger:
    """Event history shared by every dataset (cached)."""
    return SyncEventLogger(get_settings().app.event_history_size)


def get_session(dataset_name: str) -> GridSession:
    """Get or create the GridSession for a dataset, loading it on first use."""
    if "grid_sessions" not in st.session_state:
        st.session_state.grid_sessions = {}
    sessions = st.session_state.grid_sessions
    if dataset_name not in sessions:
        session = create_grid_session(dataset_name, event_logger=get_event_logger())
        run_async(session.load())
        sessions[dataset_name] = session
    return sessions[dataset_name]


def main():
    """Main application entry point."""
    settings = get_settings()

    # Sidebar navigation
    st.sidebar.title("📊 Finance Grid")
    st.sidebar.markdown("---")

    names = list(DATASETS)
    default = settings.app.default_dataset
    page = st.sidebar.radio(
        "Navigate to:",
        names + ["⚙️ Settings"],
        index=names.index(default) if default in names else 0,
        format_func=lambda x: x.replace("-", " ").title() if x in DATASETS else x,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Pick a row and a column to edit
        2. Type the new value and press Enter (or Tab)
        3. Submit to replace the remote copy with yours
        """
    )

    if page == "⚙️ Settings":
        render_settings_page()
    else:
        render_dataset_page(get_session(page))


def render_error(session: GridSession):
    """Show the surfaced error, if any, with a way to dismiss it."""
    error = session.error
    if error is None:
        return
    st.markdown(f"""
    <div class="error-box">
        <h4>❌ {error.kind.value.replace("_", " ").title()} error</h4>
        <p>{error.message}</p>
    </div>
    """, unsafe_allow_html=True)
    if st.button("Dismiss error"):
        session.clear_error()
        st.rerun()


def render_dataset_page(session: GridSession):
    """Render the table, totals and actions for one dataset."""
    dataset = session.dataset
    st.title(dataset.name.replace("-", " ").title())

    render_error(session)

    # Table
    rows = [record.to_wire(include_identity=False) for record in session.records]
    st.dataframe(rows, use_container_width=True, hide_index=True)

    totals = session.totals
    if totals and dataset.row_level:
        cols = st.columns(len(totals))
        for col, (field, total) in zip(cols, totals.items()):
            col.metric(f"Total {field.replace('_', ' ')}", f"{total:,.2f}")

    st.markdown("---")
    render_editor(session)

    st.markdown("---")
    render_row_actions(session)

    st.markdown("---")
    render_sync_actions(session)

    with st.expander("🧾 Recent sync events"):
        for event in session.events.recent_events(limit=20, dataset=dataset.name):
            st.markdown(
                f"`{event.timestamp:%H:%M:%S}` **{event.event_type.value}** {event.description}"
            )


def render_editor(session: GridSession):
    """Single-cell editor: select a cell, type, commit or cancel."""
    st.subheader("✏️ Edit a cell")
    records = session.records
    if not records:
        st.info("No rows yet. Add one below.")
        return

    col1, col2 = st.columns(2)
    with col1:
        index = st.selectbox(
            "Row",
            options=list(range(len(records))),
            format_func=lambda i: f"{records[i].sr_no}",
        )
    with col2:
        field = st.selectbox(
            "Column",
            options=session.dataset.editable_fields,
            format_func=lambda f: f.replace("_", " ").title(),
        )

    if session.editor.editing_cell != (index, field):
        if not run_async(session.start_edit(index, field)):
            st.warning(session.editor.validation_error or "This cell can't be edited right now")
            return

    key = f"draft-{session.dataset.name}-{index}-{field}"
    if session.dataset.field_kinds.get(field) == FieldKind.STATUS:
        choices = ProjectStatus.choices(session.editor.original_value)
        current = session.editor.draft or ""
        draft = st.selectbox(
            "Value",
            options=choices,
            index=choices.index(current) if current in choices else 0,
            key=key,
        )
    else:
        draft = st.text_input("Value", value=session.editor.draft or "", key=key)
    error = session.input(draft)
    if error:
        st.markdown(f"""
        <div class="warning-box"><p>{error}</p></div>
        """, unsafe_allow_html=True)

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("↵ Enter", type="primary"):
            finish_edit(session, CommitTrigger.ENTER)
    with col2:
        if st.button("⇥ Tab"):
            finish_edit(session, CommitTrigger.TAB)
    with col3:
        if st.button("✖ Cancel"):
            session.cancel_edit()
            st.rerun()


def finish_edit(session: GridSession, trigger: CommitTrigger):
    result = run_async(session.commit_edit(trigger))
    if result == CommitResult.REFUSED:
        st.warning(session.editor.validation_error or "Invalid value")
        return
    if result == CommitResult.FAILED:
        st.error(session.editor.last_error or "Failed to update cell value")
        return
    st.rerun()


def render_row_actions(session: GridSession):
    """Add a row, or remove one after confirmation."""
    st.subheader("➕ Rows")
    col1, col2 = st.columns(2)

    with col1:
        if st.button("Add row", disabled=SyncOperation.CREATE in session.in_flight):
            outcome = run_async(session.add_row())
            if outcome.succeeded:
                st.rerun()

    with col2:
        records = session.records
        if records:
            index = st.selectbox(
                "Row to remove",
                options=list(range(len(records))),
                format_func=lambda i: f"{records[i].sr_no}",
                key="remove-index",
            )
            if st.button("Remove row"):
                st.session_state.pending_removal = session.request_removal(index)

    request = st.session_state.get("pending_removal")
    if request is not None:
        st.warning(request.prompt)
        yes, no = st.columns(2)
        with yes:
            if st.button("Yes, remove it"):
                run_async(session.remove_row(RemovalResponse(request=request, confirmed=True)))
                st.session_state.pending_removal = None
                st.rerun()
        with no:
            if st.button("No, keep it"):
                run_async(session.remove_row(RemovalResponse(request=request, confirmed=False)))
                st.session_state.pending_removal = None
                st.rerun()


def render_sync_actions(session: GridSession):
    """Submit the whole dataset, or reconnect after going offline."""
    st.subheader("🔄 Sync")
    col1, col2 = st.columns(2)

    with col1:
        busy = session.submit_status == SubmitStatus.LOADING
        if st.button("📤 Submit", type="primary", disabled=busy):
            with st.spinner("Saving..."):
                run_async(session.submit())

        if session.submit_status == SubmitStatus.SUCCESS:
            st.success("Data saved successfully!")
            session.flow.reset_submit_status()
        elif session.submit_status == SubmitStatus.ERROR:
            st.error("Failed to save data. Please try again.")
            session.flow.reset_submit_status()

    with col2:
        if st.button("🔌 Reconnect"):
            if run_async(session.reconnect()):
                st.success("Connected to backend")
                st.rerun()
            else:
                st.warning("Backend is still unreachable. Changes are kept locally.")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Remote store", "remote"),
        ("Cache mirror", "cache"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    settings = get_settings()
    st.markdown("---")
    st.markdown(f"**Remote store:** `{settings.remote.base_url}`")
    cache = settings.cache
    st.markdown(
        f"**Cache:** `{cache.directory}`" if cache.enabled else "**Cache:** in memory only"
    )
    st.markdown(
        "To configure the application, set `FINANCE_GRID_*` environment "
        "variables or create a `.env` file."
    )


if __name__ == "__main__":
    main()
