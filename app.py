import streamlit as st
import datetime

from db import init_db, load_state, save_state
from logger import setup_logging
from logic import calculate_balances, calculate_settlement, simplify_debts
from models import ExpenseCategory
from share import (balances_frame, category_totals, format_currency, items_detail_frame,
                   settlement_frame, share_message, whatsapp_url)
from store import (StateImportError, add_expense, add_item, add_participant, export_data,
                   get_expense, import_data, new_expense, new_item, new_participant,
                   remove_expense, remove_item, remove_participant, set_currency,
                   set_date_range, set_item_payer, set_search_query, set_selected_category,
                   visible_expenses)

setup_logging()

st.set_page_config(page_title="Split App", layout="wide")
init_db()

if "app_state" not in st.session_state:
    st.session_state.app_state = load_state()


def commit(new_state):
    st.session_state.app_state = new_state
    save_state(new_state)
    st.rerun()


def _to_date(value):
    return datetime.date.fromisoformat(value) if value else None


state = st.session_state.app_state
currency = state.settings.currency

st.title("Split App: Split Bills in Seconds")

# --- Sidebar: Filters ---
st.sidebar.header("🔎 Filters")
query = st.sidebar.text_input("Search by title", value=state.search_query)
category_options = [None] + list(ExpenseCategory)
category = st.sidebar.selectbox(
    "Category",
    options=category_options,
    index=category_options.index(state.selected_category),
    format_func=lambda c: "All categories" if c is None else f"{c.icon} {c.label}",
)
col1, col2 = st.sidebar.columns(2)
start = col1.date_input("From", value=_to_date(state.date_range.start))
end = col2.date_input("To", value=_to_date(state.date_range.end))
start = start.isoformat() if start else None
end = end.isoformat() if end else None
if query != state.search_query:
    commit(set_search_query(state, query))
if category != state.selected_category:
    commit(set_selected_category(state, category))
if (start, end) != (state.date_range.start, state.date_range.end):
    commit(set_date_range(state, start, end))

expenses = visible_expenses(state)

# --- Sidebar: Expenses ---
st.sidebar.header("💬 Hangouts / Splits")
if "selected_expense" not in st.session_state:
    st.session_state.selected_expense = expenses[0].id if expenses else None
expense_ids = [e.id for e in expenses]
if expenses:
    titles = {e.id: f"{e.category.icon} {e.title}" for e in expenses}
    selected = st.sidebar.selectbox(
        "Select a hangout/split:",
        options=expense_ids,
        format_func=lambda eid: titles[eid],
        index=expense_ids.index(st.session_state.selected_expense) if st.session_state.selected_expense in expense_ids else 0
    )
    st.session_state.selected_expense = selected
else:
    st.sidebar.info("No hangouts match. Create one below!")

with st.sidebar.expander("➕ Create New Hangout/Split", expanded=not state.expenses):
    new_title = st.text_input("Hangout/Split Name", key="new_expense_title")
    new_category = st.selectbox("Category", options=list(ExpenseCategory),
                                format_func=lambda c: f"{c.icon} {c.label}", key="new_expense_category")
    new_date = st.date_input("Date of Hangout", value=datetime.date.today(), key="new_expense_date")
    if st.button("Create Hangout/Split"):
        if not new_title.strip():
            st.warning("Please enter a name for the hangout/split.")
        else:
            expense = new_expense(new_title, new_category, new_date.isoformat())
            st.session_state.selected_expense = expense.id
            commit(add_expense(state, expense))

with st.sidebar.expander("⚙️ Settings & Data"):
    new_currency = st.text_input("Currency", value=currency)
    if new_currency.strip() and new_currency.strip().upper() != currency:
        commit(set_currency(state, new_currency.strip().upper()))
    st.download_button("Export data", data=export_data(state), file_name="split_app.json",
                       mime="application/json")
    uploaded = st.file_uploader("Import data", type=["json"])
    if uploaded is not None and st.button("Replace current data"):
        try:
            imported = import_data(uploaded.getvalue().decode("utf-8"))
        except (StateImportError, UnicodeDecodeError) as e:
            st.error(f"Could not import: {e}")
        else:
            st.session_state.selected_expense = None
            commit(imported)

if state.expenses:
    st.sidebar.header("📊 Spending by Category")
    st.sidebar.bar_chart(category_totals(state.expenses), x="Category", y="Amount")

if not st.session_state.selected_expense or st.session_state.selected_expense not in expense_ids:
    st.warning("Please create or select a hangout/split to continue.")
    st.stop()

expense = get_expense(state, st.session_state.selected_expense)
st.header(f"{expense.category.icon} {expense.title}")
st.caption(expense.date)
if st.button("Delete this hangout/split"):
    st.session_state.selected_expense = None
    commit(remove_expense(state, expense.id))

# --- Participants ---
st.subheader("Who's joining the split?")
with st.form("add_participant_form", clear_on_submit=True):
    new_name = st.text_input("Enter a name (e.g., Sam)")
    if st.form_submit_button("Add"):
        if not new_name.strip():
            st.warning("Please enter a name.")
        else:
            commit(add_participant(state, expense.id, new_participant(new_name)))

participant_dict = {p.id: p.name for p in expense.participants}
for p in expense.participants:
    col1, col2 = st.columns([3, 1])
    col1.write(f"👤 {p.name}")
    if col2.button("Remove", key=f"remove_{p.id}"):
        commit(remove_participant(state, expense.id, p.id))

# --- Items ---
st.subheader("Add a Bill or Expense")
with st.expander("Add a Bill", expanded=True):
    desc = st.text_input("What was the bill for? (e.g., Pizza)")
    amt = st.number_input("How much was it?", min_value=0.01, step=0.01)
    payer_options = [None] + list(participant_dict.keys())
    payer = st.selectbox("Who paid?", options=payer_options,
                         format_func=lambda x: "Not set yet" if x is None else participant_dict[x])
    involved = st.multiselect("Who shared this? (leave empty for everyone)", options=participant_dict.keys(),
                              format_func=lambda x: participant_dict[x])
    if st.button("Split this bill"):
        try:
            item = new_item(desc, amt, payer, involved)
        except ValueError as e:
            st.error(str(e))
        else:
            commit(add_item(state, expense.id, item))

if expense.items:
    st.subheader("All Bills & Expenses")
    for item in expense.items:
        with st.expander(f"{item.description} ({format_currency(item.amount, currency)})"):
            if item.subgroup:
                names = [participant_dict.get(pid, f"{pid} (removed)") for pid in item.subgroup]
                st.write(f"**Shared By:** {', '.join(names)}")
            else:
                st.write("**Shared By:** everyone")
            payer_options = [None] + list(participant_dict.keys())
            current = item.payer_id if item.payer_id in participant_dict else None
            new_payer = st.selectbox(
                "Who paid?", options=payer_options, index=payer_options.index(current),
                format_func=lambda x: "Not set yet" if x is None else participant_dict[x],
                key=f"payer_{item.id}",
            )
            if new_payer != current:
                commit(set_item_payer(state, expense.id, item.id, new_payer))
            if st.button("Delete", key=f"delete_{item.id}"):
                commit(remove_item(state, expense.id, item.id))
else:
    st.info("No bills yet. Add your first one above!")

# --- Summary ---
st.header("Who Owes What? 🧾")
if not expense.participants:
    st.info("Add everyone and a bill to see who owes what.")
    st.stop()


def color_net(val):
    color = 'red' if val > 0.005 else 'green' if val < -0.005 else 'gray'
    return f'color: {color}'


bal_df = balances_frame(expense)
st.dataframe(
    bal_df.style
        .map(color_net, subset=["Net"])
        .format({"Paid": "{:.2f}", "Owes": "{:.2f}", "Net": "{:.2f}"}),
    use_container_width=True
)
st.write(f"**Total:** {format_currency(expense.total, currency)}")

with st.expander("Item breakdown per participant"):
    st.dataframe(items_detail_frame(expense).style.format({"Item amount": "{:.2f}", "Share": "{:.2f}"}),
                 use_container_width=True)

st.subheader("Settle Up")
simplified = st.toggle("Simplify debts across the whole group", value=False)
if simplified:
    payments = simplify_debts(calculate_balances(expense))
else:
    payments = calculate_settlement(expense)
if payments:
    st.dataframe(settlement_frame(expense, payments).style.format({"Amount": "{:.2f}"}),
                 use_container_width=True)
else:
    st.success("All settled!")

unpaid = [item for item in expense.items if item.payer_id not in participant_dict]
if unpaid:
    st.warning(f"{len(unpaid)} bill(s) have no payer yet and are left out of Settle Up.")

summary = share_message(expense, currency, payments)
st.code(summary, language="")
st.link_button("Share on WhatsApp", whatsapp_url(summary))
