"""Human-readable views of an expense: currency strings, the WhatsApp
summary and the pandas tables shown by the app.

Amounts are rounded to two decimals here and nowhere else.
"""
import datetime
from typing import Iterable, List
from urllib.parse import quote

import pandas as pd

import config
from logic import calculate_balances, calculate_items_detail, calculate_settlement
from models import Expense, SettlementPayment

CURRENCY_SYMBOLS = {
    "ARS": "$",
    "USD": "US$",
    "EUR": "€",
    "GBP": "£",
    "BRL": "R$",
}


def format_currency(amount: float, currency: str = config.DEFAULT_CURRENCY) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if round(amount, 2) < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_date(value: str) -> str:
    try:
        return datetime.date.fromisoformat(value).strftime("%B %d, %Y")
    except ValueError:
        return value


def balance_line(name: str, net: float, currency: str) -> str:
    net = round(net, 2)
    if net > 0:
        return f"• {name} owes {format_currency(net, currency)}"
    if net < 0:
        return f"• {name} is owed {format_currency(-net, currency)}"
    return f"• {name} is settled up"


def payment_line(expense: Expense, payment: SettlementPayment, currency: str) -> str:
    return (f"{expense.participant_name(payment.from_id)} ➔ "
            f"{expense.participant_name(payment.to_id)}: {format_currency(payment.amount, currency)}")


def share_message(expense: Expense, currency: str = config.DEFAULT_CURRENCY,
                  payments: List[SettlementPayment] = None) -> str:
    if payments is None:
        payments = calculate_settlement(expense)
    total = expense.total

    lines = [
        f"📋 *{expense.title}*",
        f"📅 Date: {format_date(expense.date)}",
        f"💶 Total: {format_currency(total, currency)}",
    ]
    if expense.participants:
        lines.append(f"👥 Per person: {format_currency(total / len(expense.participants), currency)}")

    lines += ["", "*Balances:*"]
    for pid, balance in calculate_balances(expense).items():
        lines.append(balance_line(expense.participant_name(pid), balance.net, currency))

    lines += ["", "*Expenses:*"]
    for item in expense.items:
        line = f"- {item.description}: {format_currency(item.amount, currency)}"
        if item.payer_id in expense.participant_ids:
            line += f" (paid by {expense.participant_name(item.payer_id)})"
        lines.append(line)
    if not expense.items:
        lines.append("No expenses recorded.")

    lines += ["", "*Settle Up:*"]
    lines += [payment_line(expense, p, currency) for p in payments] or ["All settled!"]
    return "\n".join(lines)


def whatsapp_url(message: str) -> str:
    return f"https://wa.me/?text={quote(message)}"


def balances_frame(expense: Expense) -> pd.DataFrame:
    rows = [
        {
            "Participant": expense.participant_name(pid),
            "Paid": b.paid,
            "Owes": b.owes,
            "Net": b.net,
        }
        for pid, b in calculate_balances(expense).items()
    ]
    return pd.DataFrame(rows, columns=["Participant", "Paid", "Owes", "Net"])


def settlement_frame(expense: Expense, payments: List[SettlementPayment]) -> pd.DataFrame:
    rows = [
        {
            "From": expense.participant_name(p.from_id),
            "To": expense.participant_name(p.to_id),
            "Amount": p.amount,
            "Items": ", ".join(dict.fromkeys(d.description for d in p.debts)),
        }
        for p in payments
    ]
    return pd.DataFrame(rows, columns=["From", "To", "Amount", "Items"])


def items_detail_frame(expense: Expense) -> pd.DataFrame:
    rows = [
        {
            "Participant": expense.participant_name(pid),
            "Item": share.description,
            "Item amount": share.item_amount,
            "Share": share.share,
            "Included": share.included,
        }
        for pid, shares in calculate_items_detail(expense).items()
        for share in shares
    ]
    return pd.DataFrame(rows, columns=["Participant", "Item", "Item amount", "Share", "Included"])


def category_totals(expenses: Iterable[Expense]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"Category": f"{e.category.icon} {e.category.label}", "Amount": e.total} for e in expenses],
        columns=["Category", "Amount"],
    )
    if df.empty:
        return df
    return (df.groupby("Category", as_index=False)["Amount"].sum()
              .sort_values("Amount", ascending=False)
              .reset_index(drop=True))
