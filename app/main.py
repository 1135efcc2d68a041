"""
Streamlit Frontend for Expense Splitter

This is the user interface a group of friends uses to keep a shared tab.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No calculation in the UI: everything goes through SplitterFlow

Run with:
    streamlit run app/main.py
"""

import asyncio

import streamlit as st

from expense_splitter.audit import configure_logging, create_correlation_id
from expense_splitter.config import get_settings, validate_all_settings
from expense_splitter.models.expense import Language, SplitterState, Theme
from expense_splitter.orchestrator import (
    ExpenseRejectedError,
    GroupRejectedError,
    ImportRejectedError,
    SplitterFlow,
    create_app_components,
)
from expense_splitter.reports import build_summary
from expense_splitter.services.sharing import ShareDecodeError
from expense_splitter.services.storage import NotFoundError, StorageError


TRANSLATIONS = {
    "es": {
        "title": "Amigastos",
        "description": "Divide gastos de manera justa entre amigos",
        "expenses": "Gastos",
        "groups": "Grupos",
        "payments": "Resumen de Pagos",
        "settings": "Opciones",
        "person": "Nombre de la Persona",
        "amount": "Cantidad ($)",
        "add_expense": "Agregar Gasto",
        "everyone": "Compartido (todos)",
        "group": "Grupo",
        "total": "Total",
        "pays": "paga a",
        "no_payments": "¡No se necesitan pagos!",
        "mark_paid": "Marcar como pagado",
        "mark_unpaid": "Marcar como pendiente",
        "settled": "Pagado",
        "pending": "Pendiente",
        "group_name": "Nombre del Grupo",
        "participants": "Participantes",
        "save_group": "Guardar",
        "delete_group": "Eliminar Grupo",
        "no_groups": "Sin grupos definidos. Los gastos se dividirán entre todos.",
        "share": "Compartir",
        "data_too_large": "Hay demasiados datos para compartir por enlace",
        "reset_all": "Reiniciar Todo",
        "language": "Idioma",
        "theme": "Tema",
        "show_rat_emoji": "Mostrar emoji de rata",
        "load_failed": "No se pudieron cargar los gastos guardados",
    },
    "en": {
        "title": "Expense Splitter",
        "description": "Split expenses fairly among friends",
        "expenses": "Expenses",
        "groups": "Groups",
        "payments": "Payment Summary",
        "settings": "Options",
        "person": "Person Name",
        "amount": "Amount ($)",
        "add_expense": "Add Expense",
        "everyone": "Shared (everyone)",
        "group": "Group",
        "total": "Total",
        "pays": "pays",
        "no_payments": "No payments needed!",
        "mark_paid": "Mark as paid",
        "mark_unpaid": "Mark as pending",
        "settled": "Paid",
        "pending": "Pending",
        "group_name": "Group Name",
        "participants": "Participants",
        "save_group": "Save",
        "delete_group": "Delete Group",
        "no_groups": "No groups defined. Expenses are split among everyone.",
        "share": "Share",
        "data_too_large": "Too much data to share as a link",
        "reset_all": "Reset All",
        "language": "Language",
        "theme": "Theme",
        "show_rat_emoji": "Show rat emoji",
        "load_failed": "Could not load the saved expenses",
    },
}


st.set_page_config(
    page_title="Expense Splitter",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.log_level)
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


THEME_CSS = {
    Theme.DARK: "background-color: #0e1117; color: #fafafa;",
    Theme.LIGHT: "background-color: #ffffff; color: #31333f;",
}


def apply_theme(theme: Theme):
    """Apply the stored theme on top of Streamlit's own."""
    st.markdown(
        f"<style>.stApp {{ {THEME_CSS[theme]} }}</style>",
        unsafe_allow_html=True,
    )


def main():
    """Main application entry point."""
    flow, audit_logger = get_components()

    # Opening a share link imports its data once
    shared = st.query_params.get("data")
    if shared and not st.session_state.get("shared_imported"):
        try:
            run_async(flow.import_shared_state(shared))
            st.session_state.shared_imported = True
        except (ShareDecodeError, ImportRejectedError) as e:
            st.session_state.shared_imported = True
            st.error(str(e))

    try:
        state = run_async(flow.get_state())
    except StorageError as e:
        run_async(audit_logger.log_error(
            error_type="state_load_failed",
            error_message=str(e),
        ))
        st.error(f"{TRANSLATIONS['en']['load_failed']}: {e}")
        # The options page can't render without a state
        if st.button(f"🗑️ {TRANSLATIONS['en']['reset_all']}"):
            run_async(flow.reset_state())
            st.rerun()
        st.stop()

    apply_theme(state.theme)

    t = TRANSLATIONS[state.language.value]

    st.sidebar.title(f"💸 {t['title']}")
    st.sidebar.markdown(t["description"])
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [t["expenses"], t["groups"], t["payments"], t["settings"]],
        index=0,
    )

    if page == t["expenses"]:
        render_expenses_page(flow, state, t)
    elif page == t["groups"]:
        render_groups_page(flow, state, t)
    elif page == t["payments"]:
        render_payments_page(flow, state, t)
    else:
        render_settings_page(flow, state, t)


def render_expenses_page(flow: SplitterFlow, state: SplitterState, t: dict):
    """Render the expense entry and list page."""
    st.title(f"🧾 {t['expenses']}")

    group_options = [None] + [g.id for g in state.groups]
    group_names = {g.id: g.name for g in state.groups}

    with st.form("add_expense", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            person = st.text_input(t["person"])
        with col2:
            amount = st.text_input(t["amount"], placeholder="0.00")
        with col3:
            group_id = st.selectbox(
                t["group"],
                options=group_options,
                format_func=lambda gid: t["everyone"] if gid is None else group_names[gid],
            )
        submitted = st.form_submit_button(t["add_expense"], type="primary")

    if submitted:
        try:
            run_async(flow.add_expense(
                person=person,
                amount=amount,
                group_id=group_id,
                correlation_id=create_correlation_id(),
            ))
            st.rerun()
        except ExpenseRejectedError as e:
            st.error(str(e))

    summary = build_summary(state)

    if state.expenses:
        st.markdown("---")
        for expense in state.expenses:
            col1, col2 = st.columns([5, 1])
            label = group_names.get(expense.group_id, t["everyone"])
            with col1:
                show_rat = st.session_state.get("show_rat_emoji", True)
                rat = " 🐀" if show_rat and expense.amount == 0 else ""
                st.markdown(f"**{expense.person}**: {expense.amount:,.2f}{rat} · _{label}_")
            with col2:
                if st.button("🗑️", key=f"remove_{expense.id}"):
                    run_async(flow.remove_expense(expense.id))
                    st.rerun()

        st.markdown(f"**{t['total']}: {summary.total_spent:,.2f}**")


def render_groups_page(flow: SplitterFlow, state: SplitterState, t: dict):
    """Render group management."""
    st.title(f"👥 {t['groups']}")

    people = build_summary(state).people

    if not state.groups:
        st.info(t["no_groups"])

    for group in state.groups:
        with st.expander(f"{group.name} ({len(group.participants)})"):
            with st.form(f"edit_{group.id}"):
                name = st.text_input(t["group_name"], value=group.name)
                participants = st.multiselect(
                    t["participants"],
                    options=sorted(set(people) | set(group.participants)),
                    default=group.participants,
                )
                if st.form_submit_button(t["save_group"]):
                    try:
                        run_async(flow.save_group(name, participants, group_id=group.id))
                        st.rerun()
                    except (GroupRejectedError, NotFoundError) as e:
                        st.error(str(e))
            if st.button(t["delete_group"], key=f"delete_{group.id}"):
                run_async(flow.delete_group(group.id))
                st.rerun()

    st.markdown("---")
    with st.form("new_group", clear_on_submit=True):
        name = st.text_input(t["group_name"], placeholder="Kayak, Veggie food...")
        participants = st.multiselect(t["participants"], options=people)
        extra = st.text_input("+", placeholder="Ana, Luis")
        if st.form_submit_button(t["save_group"], type="primary"):
            names = participants + [p.strip() for p in extra.split(",") if p.strip()]
            try:
                run_async(flow.save_group(name, names))
                st.rerun()
            except GroupRejectedError as e:
                st.error(str(e))


def render_payments_page(flow: SplitterFlow, state: SplitterState, t: dict):
    """Render the settlement plan with paid/pending toggles."""
    st.title(f"💰 {t['payments']}")

    debts = state.debts or []
    if not debts:
        st.success(t["no_payments"])
        return

    for index, debt in enumerate(debts):
        col1, col2 = st.columns([4, 1])
        with col1:
            status = f"✅ {t['settled']}" if debt.settled else f"⏳ {t['pending']}"
            line = f"**{debt.person}** {t['pays']} **{debt.amount:,.2f}** → **{debt.creditor}** · {status}"
            if debt.settled_at:
                line += f" ({debt.settled_at:%d/%m/%Y %H:%M})"
            st.markdown(line)
        with col2:
            if debt.settled:
                if st.button(t["mark_unpaid"], key=f"unsettle_{index}"):
                    run_async(flow.unsettle_debt(index))
                    st.rerun()
            elif st.button(t["mark_paid"], key=f"settle_{index}"):
                run_async(flow.settle_debt(index))
                st.rerun()

    summary = build_summary(state)
    st.markdown("---")
    st.metric(t["pending"], f"{summary.pending_amount:,.2f}", f"{summary.pending_debts}")


def render_settings_page(flow: SplitterFlow, state: SplitterState, t: dict):
    """Render preferences, sharing and reset."""
    st.title(f"⚙️ {t['settings']}")

    col1, col2 = st.columns(2)
    with col1:
        language = st.selectbox(
            t["language"],
            options=list(Language),
            index=list(Language).index(state.language),
            format_func=lambda lang: lang.value.upper(),
        )
    with col2:
        theme = st.selectbox(
            t["theme"],
            options=list(Theme),
            index=list(Theme).index(state.theme),
            format_func=lambda th: th.value.title(),
        )
    if language != state.language or theme != state.theme:
        run_async(flow.set_preferences(language=language, theme=theme))
        st.rerun()

    # Display-only option, kept per browser session like the other UI state
    st.session_state.show_rat_emoji = st.checkbox(
        t["show_rat_emoji"],
        value=st.session_state.get("show_rat_emoji", True),
    )

    st.markdown("---")
    st.markdown(f"### 🔗 {t['share']}")
    url = run_async(flow.share_url())
    if url:
        st.code(url, language=None)
    else:
        st.warning(t["data_too_large"])

    st.markdown("---")
    if st.button(f"🗑️ {t['reset_all']}"):
        run_async(flow.reset_state())
        st.rerun()

    st.markdown("---")
    st.markdown("### Configuration")
    for name, ok in validate_all_settings().items():
        if name.endswith("_error"):
            continue
        if ok:
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name}")


if __name__ == "__main__":
    main()
