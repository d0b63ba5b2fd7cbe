from typing import Dict, List, Optional, Tuple

from logger import get_logger
from models import Balance, DebtEdge, Expense, ExpenseItem, ItemShare, SettlementPayment

logger = get_logger(__name__)

# Anything that rounds to 0.00 counts as settled
SETTLED_EPSILON = 0.005


def sharing_set(expense: Expense, item: ExpenseItem) -> List[str]:
    # The subgroup may hold ids of participants removed after the item was
    # created. They still count towards the divisor, so their share is lost
    # rather than redistributed among the remaining members.
    if item.subgroup:
        return list(dict.fromkeys(item.subgroup))
    return expense.participant_ids


def _resolved_payer(expense: Expense, item: ExpenseItem) -> Optional[str]:
    if item.payer_id and item.payer_id in expense.participant_ids:
        return item.payer_id
    return None


def calculate_balances(expense: Expense) -> Dict[str, Balance]:
    # Returns {participant_id: Balance} in participant order
    paid = {pid: 0.0 for pid in expense.participant_ids}
    owes = {pid: 0.0 for pid in expense.participant_ids}
    for item in expense.items:
        payer_id = _resolved_payer(expense, item)
        if payer_id is not None:
            paid[payer_id] += item.amount
        members = sharing_set(expense, item)
        if not members:
            continue
        split = item.amount / len(members)
        for pid in members:
            if pid in owes:
                owes[pid] += split
    return {pid: Balance(pid, paid[pid], owes[pid]) for pid in expense.participant_ids}


def debt_edges(expense: Expense) -> List[DebtEdge]:
    edges = []
    participant_ids = set(expense.participant_ids)
    for item in expense.items:
        payer_id = _resolved_payer(expense, item)
        if payer_id is None:
            continue
        members = sharing_set(expense, item)
        if not members:
            continue
        split = item.amount / len(members)
        for pid in members:
            if pid == payer_id or pid not in participant_ids:
                continue
            edges.append(DebtEdge(pid, payer_id, split, item.id, item.description, item.amount))
    return edges


def calculate_settlement(expense: Expense) -> List[SettlementPayment]:
    """Net the per-item debts between every pair of participants.

    Each unordered pair yields at most one payment, pointing from the side
    that owes more. Debts are not chained across three or more people, so
    A -> B -> C -> A stays as three payments.
    """
    pairs: Dict[Tuple[str, str], List[DebtEdge]] = {}
    for edge in debt_edges(expense):
        key = tuple(sorted((edge.debtor_id, edge.creditor_id)))
        pairs.setdefault(key, []).append(edge)

    payments = []
    for (a, b), edges in pairs.items():
        sum_ab = sum(e.amount for e in edges if e.debtor_id == a)
        sum_ba = sum(e.amount for e in edges if e.debtor_id == b)
        if sum_ab > sum_ba:
            from_id, to_id, amount = a, b, sum_ab - sum_ba
        else:
            from_id, to_id, amount = b, a, sum_ba - sum_ab
        if amount < SETTLED_EPSILON:
            continue
        payments.append(SettlementPayment(from_id, to_id, amount, tuple(edges)))
    logger.debug("Expense %s: %d debt pairs, %d payments", expense.id, len(pairs), len(payments))
    return payments


def calculate_items_detail(expense: Expense) -> Dict[str, List[ItemShare]]:
    # Returns {participant_id: [ItemShare per item]}; shares sum to Balance.owes
    detail = {pid: [] for pid in expense.participant_ids}
    for item in expense.items:
        members = sharing_set(expense, item)
        split = item.amount / len(members) if members else 0.0
        for pid, shares in detail.items():
            included = pid in members
            shares.append(ItemShare(item.id, item.description, item.amount,
                                    split if included else 0.0, included))
    return detail


def simplify_debts(balances: Dict[str, Balance]) -> List[SettlementPayment]:
    # Greedy matching of the largest debtor with the largest creditor.
    # Usually fewer payments than calculate_settlement, but the payments no
    # longer map back to individual items.
    debtors = [(pid, b.net) for pid, b in balances.items() if b.net >= SETTLED_EPSILON]
    creditors = [(pid, -b.net) for pid, b in balances.items() if b.net <= -SETTLED_EPSILON]
    debtors.sort(key=lambda x: -x[1])
    creditors.sort(key=lambda x: -x[1])
    transfers = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        d_id, d_amt = debtors[i]
        c_id, c_amt = creditors[j]
        amt = min(d_amt, c_amt)
        transfers.append(SettlementPayment(d_id, c_id, amt))
        debtors[i] = (d_id, d_amt - amt)
        creditors[j] = (c_id, c_amt - amt)
        if debtors[i][1] < SETTLED_EPSILON:
            i += 1
        if creditors[j][1] < SETTLED_EPSILON:
            j += 1
    return transfers

