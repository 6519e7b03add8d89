import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import logging
from dataclasses import replace
from datetime import date

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from tracker.allocation import analyze, default_contribution_type, get_policy, POLICIES
from tracker.api import ApiClient
from tracker.assets import HOLDINGS, HOLDING_TYPES, GROUPS_BY_KEY
from tracker.auth import LoginFlow, SessionStore, back_to_email, new_token, submit_email, submit_pin
from tracker.categories import CategoryForm, filter_by_type as filter_categories, group_by_type
from tracker.config import configure_logging, load_settings
from tracker.domain import PlanConfig
from tracker.errors import TrackerError
from tracker.events import EventBus, RefreshTracker, register_refresh_handlers
from tracker.fetching import RequestSequencer, load_dashboard, load_investments
from tracker.formatting import (
    default_date_range,
    format_compact,
    format_currency,
    format_date,
    format_drift,
    format_percent,
    format_signed_currency,
)
from tracker.ledger import TYPE_FILTERS, TransactionForm, categories_for_type, count_referencing, filter_by_type
from tracker.reports import breakdown_data, color_map, summary_chart_data, top_n, with_percentages
from tracker.services import InvestmentService, LedgerService

st.set_page_config(page_title="Finance Tracker", page_icon="💰", layout="wide")

settings = load_settings()
configure_logging(settings)
logger = logging.getLogger("tracker.app")


@st.cache_resource
def get_client() -> ApiClient:
    return ApiClient(settings.api_url, settings.request_timeout)


client = get_client()


def browser_store():
    """The session store of this browser, keyed by the ``sid`` it carries."""
    token = st.query_params.get("sid")
    if not token:
        return None
    try:
        return SessionStore(settings.state_dir, token, settings.session_ttl_days)
    except ValueError:
        logger.warning("ignoring malformed session token")
        return None


store = browser_store()

if "bus" not in st.session_state:
    st.session_state.bus = EventBus()
    st.session_state.refresh = RefreshTracker()
    register_refresh_handlers(st.session_state.bus, st.session_state.refresh)
    st.session_state.sequencer = RequestSequencer()
if "login" not in st.session_state:
    st.session_state.login = LoginFlow()
if "auth" not in st.session_state:
    st.session_state.auth = store.load() if store else None

bus = st.session_state.bus
refresh = st.session_state.refresh
ledger_service = LedgerService(client, bus)
investment_service = InvestmentService(client, bus)


def render_login():
    flow = st.session_state.login
    _, mid, _ = st.columns([1, 2, 1])
    with mid:
        st.markdown("<div style='text-align:center;font-size:3rem'>💰</div>", unsafe_allow_html=True)
        st.title("Expense Tracker")
        if flow.step == "email":
            st.caption("Enter your email to continue")
            with st.form("email_form"):
                email = st.text_input("Email Address", value=flow.email, placeholder="you@example.com")
                submitted = st.form_submit_button("Continue", use_container_width=True)
            if flow.error:
                st.error(flow.error)
            if submitted:
                with st.spinner("Verifying..."):
                    st.session_state.login = submit_email(flow, email, client)
                st.rerun()
        else:
            st.caption("Enter your PIN")
            with st.form("pin_form"):
                pin = st.text_input("PIN Code", type="password", max_chars=10, placeholder="••••••")
                st.caption("Send `/pin` to WhatsApp bot to get your PIN")
                submitted = st.form_submit_button("Login", use_container_width=True)
            if flow.error:
                st.error(flow.error)
            if submitted:
                fresh = SessionStore(settings.state_dir, new_token(), settings.session_ttl_days)
                with st.spinner("Verifying..."):
                    flow = submit_pin(flow, pin, client, fresh)
                st.session_state.login = flow
                if flow.authenticated:
                    st.query_params["sid"] = fresh.token
                    st.session_state.auth = fresh.load()
                st.rerun()
            if st.button("← Back to email", use_container_width=True):
                st.session_state.login = back_to_email(flow)
                st.rerun()


if not st.session_state.auth:
    render_login()
    st.stop()


# ---------------------------------------------------------------- sidebar

st.sidebar.markdown("### 💰 Finance Tracker")
st.sidebar.caption(st.session_state.auth.get("email", ""))
if st.sidebar.button("🚪 Logout"):
    if store is not None:
        store.clear()
    st.query_params.pop("sid", None)
    for key in ("auth", "login", "dashboard", "dashboard_error", "investments", "investments_error"):
        st.session_state.pop(key, None)
    refresh.mark("dashboard")
    refresh.mark("investments")
    st.rerun()

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🧾 Transactions", "🗂 Categories", "📈 Investments"]
)

if "date_range" not in st.session_state:
    st.session_state.date_range = default_date_range(date.today())

if menu != "📈 Investments":
    picked = st.sidebar.date_input("📅 Date range", value=st.session_state.date_range, key="date_range_input")
    if isinstance(picked, (tuple, list)) and len(picked) == 2 and tuple(picked) != st.session_state.date_range:
        st.session_state.date_range = tuple(picked)
        refresh.mark("dashboard")


def run_batch(name: str, batch):
    """Run a fetch batch through the sequencer and store the result atomically."""
    try:
        with st.spinner("Loading..."):
            result = asyncio.run(st.session_state.sequencer.run(batch))
    except TrackerError as e:
        logger.warning("%s batch failed: %s", name, e.message)
        st.session_state[name] = None
        st.session_state[f"{name}_error"] = e.message
        return
    if result is not None:
        st.session_state[name] = result
        st.session_state[f"{name}_error"] = None
        refresh.fresh(name)


def show_error(e: TrackerError):
    st.error(e.message)


def dashboard_data():
    if refresh.is_stale("dashboard") or "dashboard" not in st.session_state:
        start, end = st.session_state.date_range
        run_batch("dashboard", load_dashboard(client, start, end))
    data = st.session_state.get("dashboard")
    if data is None:
        st.error(st.session_state.get("dashboard_error") or "Failed to load data")
        st.stop()
    return data


def pie(rows, title, hole=0.0, label="percent"):
    df = pd.DataFrame(rows)
    fig = px.pie(
        df,
        values="value",
        names="name",
        color="name",
        color_discrete_map=color_map(rows),
        title=title,
        hole=hole,
    )
    fig.update_traces(textinfo=label)
    fig.update_layout(height=320, margin=dict(t=40, b=10, l=10, r=10))
    return fig


def hbar(rows, title):
    df = pd.DataFrame(rows)
    fig = px.bar(
        df, x="value", y="name", orientation="h", title=title,
        color="name", color_discrete_map=color_map(rows),
    )
    fig.update_layout(showlegend=False, height=320, yaxis=dict(autorange="reversed"),
                      margin=dict(t=40, b=10, l=10, r=10))
    fig.update_traces(text=[format_compact(r["value"]) for r in rows], textposition="outside")
    fig.update_xaxes(tickformat=".2s")
    return fig


# ---------------------------------------------------------------- dashboard

if menu == "🏠 Dashboard":
    data = dashboard_data()
    stats = data.stats
    st.title("🏠 Dashboard")

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("📈 Income", format_currency(stats.income))
    with k2:
        st.metric("📉 Expenses", format_currency(stats.expenses))
    with k3:
        st.metric("👛 Net Balance", format_currency(stats.net))
    with k4:
        st.metric("🏷 Transactions", stats.count)

    st.subheader("Income vs Expenses")
    overview = summary_chart_data(stats)
    if overview:
        c1, c2 = st.columns(2)
        with c1:
            st.plotly_chart(pie(overview, ""), use_container_width=True)
        with c2:
            fig = px.bar(pd.DataFrame(overview), x="name", y="value", color="name",
                         color_discrete_map=color_map(overview))
            fig.update_layout(showlegend=False, height=320, margin=dict(t=20, b=10, l=10, r=10))
            fig.update_yaxes(tickformat=".2s")
            st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No data for this period")

    expense_rows = breakdown_data(stats, "expense")
    income_rows = breakdown_data(stats, "income")

    c1, c2 = st.columns(2)
    with c1:
        if expense_rows:
            st.plotly_chart(pie(expense_rows, "🔻 Expense Breakdown"), use_container_width=True)
        else:
            st.info("No expense data")
    with c2:
        if income_rows:
            st.plotly_chart(pie(income_rows, "🔺 Income Breakdown"), use_container_width=True)
        else:
            st.info("No income data")

    c1, c2 = st.columns(2)
    with c1:
        if expense_rows:
            st.plotly_chart(hbar(top_n(expense_rows), "Top Expense Categories"), use_container_width=True)
    with c2:
        if income_rows:
            st.plotly_chart(hbar(top_n(income_rows), "Top Income Sources"), use_container_width=True)

    if expense_rows or income_rows:
        table = pd.DataFrame(with_percentages(expense_rows) + with_percentages(income_rows))
        table["type"] = ["expense"] * len(expense_rows) + ["income"] * len(income_rows)
        table["value"] = table["value"].map(format_currency)
        table["percentage"] = table["percentage"].map(format_percent)
        st.table(table[["type", "name", "value", "percentage"]].rename(columns=str.capitalize))

# ---------------------------------------------------------------- transactions

elif menu == "🧾 Transactions":
    data = dashboard_data()
    categories = data.categories
    st.title("🧾 Transactions")

    if "tx_form" not in st.session_state:
        st.session_state.tx_form = None

    col_filter, col_inc, col_exp = st.columns([3, 1, 1])
    with col_filter:
        type_filter = st.radio("Show", TYPE_FILTERS, horizontal=True, format_func=str.capitalize, key="tx_filter")
    with col_inc:
        if st.button("⬆ Add Income", use_container_width=True):
            st.session_state.tx_form = TransactionForm.blank("income", date.today())
    with col_exp:
        if st.button("⬇ Add Expense", use_container_width=True):
            st.session_state.tx_form = TransactionForm.blank("expense", date.today())

    form = st.session_state.tx_form
    if form is not None:
        kind = "Income" if form.type == "income" else "Expense"
        st.subheader(f"{'Edit' if form.editing_id is not None else 'Add'} {kind}")
        picked_type = st.radio(
            "Type", ["expense", "income"], index=0 if form.type == "expense" else 1,
            horizontal=True, format_func=str.capitalize, key=f"tx_type_{form.editing_id}",
        )
        if picked_type != form.type:
            st.session_state.tx_form = form.with_type(picked_type)
            st.rerun()

        choices = categories_for_type(categories, form.type)
        options = [None] + [c.id for c in choices]
        labels = {c.id: f"{c.icon} {c.name}".strip() for c in choices}
        with st.form("tx_form"):
            c1, c2 = st.columns(2)
            with c1:
                amount = st.text_input("Amount *", value=form.amount, placeholder="50000")
                description = st.text_input(
                    "Description", value=form.description,
                    placeholder="Salary payment" if form.type == "income" else "Lunch",
                )
                category_id = st.selectbox(
                    "Category", options,
                    index=options.index(form.category_id) if form.category_id in options else 0,
                    format_func=lambda cid: "Select category" if cid is None else labels[cid],
                )
            with c2:
                tx_date = st.date_input("Date *", value=form.date or date.today())
                vendor = st.text_input(
                    "Source" if form.type == "income" else "Vendor", value=form.vendor,
                    placeholder="Company name" if form.type == "income" else "Restaurant name",
                )
            b1, b2 = st.columns([1, 6])
            with b1:
                save = st.form_submit_button("Update" if form.editing_id is not None else "Save")
            with b2:
                cancel = st.form_submit_button("Cancel")

        if cancel:
            st.session_state.tx_form = None
            st.rerun()
        if save:
            filled = replace(form, amount=amount, date=tx_date, description=description,
                             vendor=vendor, category_id=category_id)
            try:
                result = ledger_service.save_transaction(filled, categories)
            except TrackerError as e:
                show_error(e)
            else:
                if result.is_left():
                    st.error(result.get_error()["message"])
                else:
                    st.session_state.tx_form = None
                    st.rerun()

    st.divider()
    visible = filter_by_type(data.transactions, type_filter)
    if not visible:
        st.info("No transactions found")
    else:
        header = st.columns([2, 2, 4, 3, 3, 2])
        for col, title in zip(header, ["Date", "Type", "Description", "Category", "Amount", "Actions"]):
            col.markdown(f"**{title}**")
        for t in visible:
            row = st.columns([2, 2, 4, 3, 3, 2])
            row[0].write(format_date(t.date))
            row[1].write("🟢 Income" if t.type == "income" else "🔴 Expense")
            row[2].write(t.description or "-")
            if t.vendor:
                row[2].caption(t.vendor)
            row[3].write(f"{t.category_icon or ''} {t.category_name}".strip() if t.category_name else "-")
            color = "green" if t.type == "income" else "red"
            row[4].markdown(f":{color}[{format_signed_currency(t.amount, t.type)}]")
            with row[5]:
                a1, a2 = st.columns(2)
                if a1.button("✏️", key=f"edit_tx_{t.id}"):
                    st.session_state.tx_form = TransactionForm.for_edit(t)
                    st.rerun()
                if a2.button("🗑", key=f"del_tx_{t.id}"):
                    st.session_state.confirm_tx = t.id

            if st.session_state.get("confirm_tx") == t.id:
                st.warning("Delete this transaction?")
                y, n, _ = st.columns([1, 1, 6])
                if y.button("Delete", key=f"yes_tx_{t.id}"):
                    st.session_state.confirm_tx = None
                    try:
                        ledger_service.delete_transaction(t.id)
                    except TrackerError as e:
                        show_error(e)
                    else:
                        st.rerun()
                if n.button("Cancel", key=f"no_tx_{t.id}"):
                    st.session_state.confirm_tx = None
                    st.rerun()

        export = pd.DataFrame([{
            "date": format_date(t.date),
            "type": t.type,
            "description": t.description,
            "vendor": t.vendor,
            "category": t.category_name or "",
            "amount": t.amount,
        } for t in visible])
        st.download_button("⬇ Download CSV", export.to_csv(index=False), file_name="transactions.csv")

# ---------------------------------------------------------------- categories

elif menu == "🗂 Categories":
    data = dashboard_data()
    st.title("🗂 Categories")

    if "cat_form" not in st.session_state:
        st.session_state.cat_form = None

    col_filter, col_inc, col_exp = st.columns([3, 1, 1])
    with col_filter:
        cat_filter = st.radio("Show", TYPE_FILTERS, horizontal=True, format_func=str.capitalize, key="cat_filter")
    with col_inc:
        if st.button("➕ Add Income Category", use_container_width=True):
            st.session_state.cat_form = CategoryForm.for_type("income")
    with col_exp:
        if st.button("➕ Add Expense Category", use_container_width=True):
            st.session_state.cat_form = CategoryForm.for_type("expense")

    form = st.session_state.cat_form
    if form is not None:
        kind = "Income" if form.type == "income" else "Expense"
        st.subheader(f"{'Edit' if form.editing_id is not None else 'Add'} {kind} Category")
        picked_type = st.radio(
            "Type", ["expense", "income"], index=0 if form.type == "expense" else 1,
            horizontal=True, format_func=str.capitalize, key=f"cat_type_{form.editing_id}",
        )
        if picked_type != form.type:
            st.session_state.cat_form = form.with_type(picked_type)
            st.rerun()
        with st.form("cat_form"):
            c1, c2, c3 = st.columns(3)
            name = c1.text_input("Name *", value=form.name, placeholder="Category name")
            icon = c2.text_input("Icon", value=form.icon, placeholder="💰" if form.type == "income" else "🍔")
            color = c3.color_picker("Color", value=form.color)
            b1, b2 = st.columns([1, 6])
            save = b1.form_submit_button("Update" if form.editing_id is not None else "Save")
            cancel = b2.form_submit_button("Cancel")
        if cancel:
            st.session_state.cat_form = None
            st.rerun()
        if save:
            try:
                result = ledger_service.save_category(replace(form, name=name, icon=icon, color=color))
            except TrackerError as e:
                show_error(e)
            else:
                if result.is_left():
                    st.error(result.get_error()["message"])
                else:
                    st.session_state.cat_form = None
                    st.rerun()

    def category_card(c):
        row = st.columns([1, 5, 1, 1])
        row[0].markdown(
            f"<div style='background:{c.color}33;color:{c.color};border-radius:8px;"
            f"text-align:center;font-size:1.5rem'>{c.icon or '🏷'}</div>",
            unsafe_allow_html=True,
        )
        row[1].markdown(f"**{c.name}**  \n:{'green' if c.type == 'income' else 'red'}[{c.type}]")
        if row[2].button("✏️", key=f"edit_cat_{c.id}"):
            st.session_state.cat_form = CategoryForm.for_edit(c)
            st.rerun()
        if row[3].button("🗑", key=f"del_cat_{c.id}"):
            st.session_state.confirm_cat = c.id
        if st.session_state.get("confirm_cat") == c.id:
            used = count_referencing(data.transactions, c.id)
            if used:
                st.warning(f"Delete category {c.name}? {used} transaction(s) in this period still use it.")
            else:
                st.warning(f"Delete category {c.name}?")
            y, n, _ = st.columns([1, 1, 6])
            if y.button("Delete", key=f"yes_cat_{c.id}"):
                st.session_state.confirm_cat = None
                try:
                    ledger_service.delete_category(c.id)
                except TrackerError as e:
                    # in-use categories are rejected by the backend, state stays as is
                    show_error(e)
                else:
                    st.rerun()
            if n.button("Cancel", key=f"no_cat_{c.id}"):
                st.session_state.confirm_cat = None
                st.rerun()

    if cat_filter == "all":
        grouped = group_by_type(data.categories)
        left, right = st.columns(2)
        for col, cat_type, title in ((left, "expense", "🔻 Expense Categories"), (right, "income", "🔺 Income Categories")):
            with col:
                st.subheader(f"{title} ({len(grouped[cat_type])})")
                for c in grouped[cat_type]:
                    category_card(c)
                if not grouped[cat_type]:
                    st.info(f"No {cat_type} categories yet")
    else:
        shown = filter_categories(data.categories, cat_filter)
        for c in shown:
            category_card(c)
        if not shown:
            st.info(f"No {cat_filter} categories yet")

# ---------------------------------------------------------------- investments

elif menu == "📈 Investments":
    if refresh.is_stale("investments") or "investments" not in st.session_state:
        run_batch("investments", load_investments(client))
    snapshot = st.session_state.get("investments")
    if snapshot is None:
        st.error("Failed to load investment data")
        st.stop()

    policy_names = list(POLICIES)
    policy_name = st.sidebar.selectbox(
        "Planning style", policy_names, index=policy_names.index(settings.allocation_policy),
        format_func=lambda n: {"drift": "Drift (catch-up / maintenance)", "timeline": "Timeline (3 phases)"}[n],
    )
    policy = get_policy(policy_name, settings.rebalance_threshold)
    view = analyze(snapshot, policy, date.today(), settings.rebalance_threshold)
    plan = view.plan

    head, b1, b2, b3, b4 = st.columns([4, 1, 1, 1, 1])
    head.title("📊 Investment Portfolio")
    if b1.button("🕘 History", use_container_width=True):
        st.session_state.show_history = not st.session_state.get("show_history", False)
    if b2.button("✏️ Update Values", use_container_width=True):
        st.session_state.inv_panel = "values"
    if b3.button("⚙️ Settings", use_container_width=True):
        st.session_state.inv_panel = "settings"
    if b4.button("➕ Log Contribution", use_container_width=True):
        st.session_state.inv_panel = "contribute"

    panel = st.session_state.get("inv_panel")
    if panel == "settings":
        with st.form("settings_form"):
            st.subheader("⚙️ Plan Settings")
            budget = st.number_input("Monthly budget", min_value=0.0, step=100000.0,
                                     value=float(snapshot.config.monthly_budget))
            has_start = st.checkbox("Plan start date set", value=snapshot.config.start_date is not None)
            start = st.date_input("Start date", value=snapshot.config.start_date or date.today())
            s1, s2 = st.columns([1, 6])
            save = s1.form_submit_button("Save")
            cancel = s2.form_submit_button("Cancel")
        if cancel:
            st.session_state.inv_panel = None
            st.rerun()
        if save:
            try:
                result = investment_service.save_config(
                    PlanConfig(monthly_budget=budget, start_date=start if has_start else None)
                )
            except TrackerError as e:
                show_error(e)
            else:
                if result.is_left():
                    st.error(result.get_error()["message"])
                else:
                    st.session_state.inv_panel = None
                    st.rerun()

    elif panel == "contribute":
        default_type = default_contribution_type(plan)
        with st.form("contribute_form"):
            st.subheader("➕ Log Contribution")
            holding_type = st.selectbox(
                "Holding", HOLDING_TYPES, index=HOLDING_TYPES.index(default_type),
                format_func=lambda t: f"{HOLDINGS[t].emoji} {HOLDINGS[t].name}",
            )
            c1, c2 = st.columns(2)
            amount = c1.text_input("Amount *", placeholder="5000000")
            when = c2.date_input("Date *", value=date.today())
            notes = st.text_input("Notes", placeholder="Monthly DCA")
            s1, s2 = st.columns([1, 6])
            save = s1.form_submit_button("Save")
            cancel = s2.form_submit_button("Cancel")
        if cancel:
            st.session_state.inv_panel = None
            st.rerun()
        if save:
            try:
                result = investment_service.log_contribution(
                    {"type": holding_type, "amount": amount, "date": when.isoformat(), "notes": notes}
                )
            except TrackerError as e:
                show_error(e)
            else:
                if result.is_left():
                    st.error(result.get_error()["message"])
                else:
                    st.session_state.inv_panel = None
                    st.rerun()

    elif panel == "values":
        with st.form("values_form"):
            st.subheader("✏️ Update Values")
            values = {}
            for h in view.holdings:
                meta = HOLDINGS.get(h.type)
                values[h.type] = st.number_input(
                    f"{meta.emoji if meta else ''} {h.name}".strip(), min_value=0.0, step=100000.0,
                    value=float(h.value), help=h.platform or None, key=f"value_{h.type}",
                )
            s1, s2 = st.columns([1, 6])
            save = s1.form_submit_button("Save")
            cancel = s2.form_submit_button("Cancel")
        if cancel:
            st.session_state.inv_panel = None
            st.rerun()
        if save:
            try:
                asyncio.run(investment_service.update_holding_values(values))
            except TrackerError as e:
                show_error(e)
            else:
                st.session_state.inv_panel = None
                st.rerun()

    if view.actions:
        st.subheader(f"⚠️ Action Items ({len(view.actions)})")
        for item in view.actions:
            icon = "⚙️" if item.category == "setup" else "📈"
            box = st.error if item.priority == "high" else st.warning
            c1, c2 = st.columns([6, 1])
            with c1:
                box(f"{icon} **{item.title}**  \n{item.description}")
            if item.action == "start_plan":
                if c2.button("▶ Start Plan", key=f"action_{item.id}"):
                    try:
                        investment_service.start_plan()
                    except TrackerError as e:
                        show_error(e)
                    else:
                        st.rerun()

    t1, t2 = st.columns([3, 2])
    with t1:
        st.metric("💼 Total Portfolio", format_currency(view.total_value))
    with t2:
        st.metric("Phase", plan.state.label)
        if plan.state.months_remaining:
            st.caption(f"🕒 {plan.state.months_remaining} months left")
        if not plan.state.started:
            st.caption("Plan not started")

    cards = st.columns(len(view.groups))
    for col, alloc in zip(cards, view.groups):
        group = GROUPS_BY_KEY[alloc.group]
        suggestion = plan.for_group(alloc.group)
        with col:
            st.markdown(f"#### {group.emoji} {alloc.name} · {alloc.target:.0f}%")
            st.markdown(f"**{format_currency(alloc.value)}**")
            st.progress(min(1.0, alloc.percentage / alloc.target) if alloc.target else 0.0)
            st.caption(f"Current {format_percent(alloc.percentage)} ({format_drift(alloc.drift)})")
            if suggestion and suggestion.suggested_amount > 0:
                st.success(f"Suggested: {format_currency(suggestion.suggested_amount)}  \n{suggestion.reason}")

    mode = st.radio("View", ["50/40/10 Allocation", "Detailed Holdings"], horizontal=True, key="inv_view")
    c1, c2 = st.columns(2)
    if mode == "50/40/10 Allocation":
        groups_with_value = [
            {"name": a.name, "value": a.value, "color": a.color} for a in view.groups if a.value > 0
        ]
        with c1:
            if groups_with_value:
                st.plotly_chart(pie(groups_with_value, "50/40/10 Allocation", hole=0.6, label="label+percent"),
                                use_container_width=True)
            else:
                st.info("No holdings yet")
        with c2:
            fig = go.Figure()
            names = [a.name for a in view.groups]
            fig.add_trace(go.Bar(y=names, x=[a.percentage for a in view.groups], name="Current",
                                 orientation="h", marker_color="#3B82F6"))
            fig.add_trace(go.Bar(y=names, x=[a.target for a in view.groups], name="Target",
                                 orientation="h", marker_color="#10B981"))
            fig.update_layout(title="Current vs Target", barmode="group", height=320,
                              xaxis=dict(range=[0, 60], ticksuffix="%"), margin=dict(t=40, b=10, l=10, r=10))
            st.plotly_chart(fig, use_container_width=True)
    else:
        holdings_with_value = [
            {"name": HOLDINGS[h.type].short_name if h.type in HOLDINGS else h.name, "value": h.value, "color": h.color}
            for h in view.holdings if h.value > 0
        ]
        with c1:
            if holdings_with_value:
                st.plotly_chart(pie(holdings_with_value, "Holdings Breakdown", hole=0.5), use_container_width=True)
            else:
                st.info("No holdings yet")
        with c2:
            st.markdown("**Holdings**")
            for h in view.holdings:
                meta = HOLDINGS.get(h.type)
                r1, r2 = st.columns([3, 2])
                r1.markdown(f"{meta.emoji if meta else '•'} **{h.name}**  \n{h.platform}")
                r2.markdown(f"**{format_currency(h.value)}**  \n{format_percent(h.percentage)}")

    st.subheader("🗓 Investment Timeline")
    phase_cols = st.columns(len(policy.phases()))
    for col, (number, label, span) in zip(phase_cols, policy.phases()):
        if number < plan.state.phase:
            marker = "✅"
        elif number == plan.state.phase:
            marker = "🔵"
        else:
            marker = "⚪"
        col.markdown(f"{marker} **{label}**  \n{span}")

    if st.session_state.get("show_history") and snapshot.contributions:
        st.subheader("🕘 Recent Contributions")
        history = pd.DataFrame([{
            "Date": format_date(c.date),
            "Holding": HOLDINGS[c.type].name if c.type in HOLDINGS else c.type,
            "Amount": "+" + format_currency(c.amount),
            "Notes": c.notes or "-",
        } for c in snapshot.contributions[:10]])
        st.table(history)
