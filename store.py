import json
import math
import uuid
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

import config
from logger import get_logger
from models import (AppSettings, AppState, DateRange, Expense, ExpenseCategory,
                    ExpenseItem, Participant)

logger = get_logger(__name__)

class InvalidItemError(ValueError):
    pass


class ExpenseNotFoundError(KeyError):
    pass


class StateImportError(ValueError):
    pass


def _new_id() -> str:
    return uuid.uuid4().hex


def initial_state() -> AppState:
    return AppState(settings=AppSettings(config.DEFAULT_THEME, config.DEFAULT_CURRENCY))


# --- Constructors ---
def new_expense(title: str, category: ExpenseCategory, date: str) -> Expense:
    if not title or not title.strip():
        raise ValueError("Expense title cannot be empty.")
    return Expense(_new_id(), title.strip(), category, date)


def new_participant(name: str) -> Participant:
    if not name or not name.strip():
        raise ValueError("Participant name cannot be empty.")
    return Participant(_new_id(), name.strip())


def valid_amount(amount) -> float:
    if isinstance(amount, bool):
        raise InvalidItemError(f"Amount must be a number, got {amount!r}.")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidItemError(f"Amount must be a number, got {amount!r}.")
    if not (math.isfinite(value) and value > 0):
        raise InvalidItemError("Amount must be greater than zero.")
    return value


def unique_ids(subgroup: Iterable[str]) -> Tuple[str, ...]:
    # Keeps first-seen order; a repeated id would be charged twice
    if isinstance(subgroup, str):
        raise InvalidItemError(f"Subgroup must be a list of participant ids, got {subgroup!r}.")
    return tuple(dict.fromkeys(subgroup))


def new_item(description: str, amount, payer_id: Optional[str] = None,
             subgroup: Iterable[str] = ()) -> ExpenseItem:
    if not description or not description.strip():
        raise InvalidItemError("Please describe the item (e.g., 'Pizza').")
    return ExpenseItem(_new_id(), description.strip(), valid_amount(amount), payer_id or None,
                       unique_ids(subgroup))


# --- State transitions ---
def get_expense(state: AppState, expense_id: str) -> Expense:
    for expense in state.expenses:
        if expense.id == expense_id:
            return expense
    raise ExpenseNotFoundError(expense_id)


def _update_expense(state: AppState, expense_id: str, fn) -> AppState:
    get_expense(state, expense_id)
    return replace(state, expenses=tuple(
        fn(expense) if expense.id == expense_id else expense for expense in state.expenses
    ))


def add_expense(state: AppState, expense: Expense) -> AppState:
    logger.info("Adding expense %s (%s)", expense.id, expense.title)
    return replace(state, expenses=state.expenses + (expense,))


def remove_expense(state: AppState, expense_id: str) -> AppState:
    logger.info("Removing expense %s", expense_id)
    return replace(state, expenses=tuple(e for e in state.expenses if e.id != expense_id))


def add_participant(state: AppState, expense_id: str, participant: Participant) -> AppState:
    logger.info("Adding participant %s to expense %s", participant.name, expense_id)
    return _update_expense(state, expense_id, lambda e: replace(
        e, participants=e.participants + (participant,)))


def remove_participant(state: AppState, expense_id: str, participant_id: str,
                       prune_subgroups: bool = False) -> AppState:
    """Drop a participant and clear them as payer of any item.

    Subgroups keep the stale id, so the removed participant's share of those
    items is dropped from the totals. With ``prune_subgroups`` the id is
    removed from subgroups too and the remaining members absorb the share.
    """
    logger.info("Removing participant %s from expense %s", participant_id, expense_id)

    def clean(item: ExpenseItem) -> ExpenseItem:
        if item.payer_id == participant_id:
            item = replace(item, payer_id=None)
        if prune_subgroups and participant_id in item.subgroup:
            item = replace(item, subgroup=tuple(pid for pid in item.subgroup if pid != participant_id))
        return item

    return _update_expense(state, expense_id, lambda e: replace(
        e,
        participants=tuple(p for p in e.participants if p.id != participant_id),
        items=tuple(clean(item) for item in e.items),
    ))


def add_item(state: AppState, expense_id: str, item: ExpenseItem) -> AppState:
    item = replace(item, amount=valid_amount(item.amount), subgroup=unique_ids(item.subgroup))
    logger.info("Adding item %s (%.2f) to expense %s", item.description, item.amount, expense_id)
    return _update_expense(state, expense_id, lambda e: replace(e, items=e.items + (item,)))


def remove_item(state: AppState, expense_id: str, item_id: str) -> AppState:
    logger.info("Removing item %s from expense %s", item_id, expense_id)
    return _update_expense(state, expense_id, lambda e: replace(
        e, items=tuple(item for item in e.items if item.id != item_id)))


def set_item_payer(state: AppState, expense_id: str, item_id: str,
                   payer_id: Optional[str]) -> AppState:
    logger.debug("Item %s of expense %s now paid by %s", item_id, expense_id, payer_id)
    return _update_expense(state, expense_id, lambda e: replace(e, items=tuple(
        replace(item, payer_id=payer_id or None) if item.id == item_id else item
        for item in e.items
    )))


def set_currency(state: AppState, currency: str) -> AppState:
    return replace(state, settings=replace(state.settings, currency=currency))


def set_search_query(state: AppState, query: str) -> AppState:
    return replace(state, search_query=query)


def set_date_range(state: AppState, start: Optional[str], end: Optional[str]) -> AppState:
    return replace(state, date_range=DateRange(start or None, end or None))


def set_selected_category(state: AppState, category: Optional[ExpenseCategory]) -> AppState:
    return replace(state, selected_category=category)


def visible_expenses(state: AppState) -> List[Expense]:
    query = state.search_query.lower()
    start, end = state.date_range.start, state.date_range.end
    return [
        e for e in state.expenses
        if query in e.title.lower()
        and (state.selected_category is None or e.category == state.selected_category)
        # ISO dates compare correctly as strings
        and (not start or e.date >= start)
        and (not end or e.date <= end)
    ]


# --- Export / import ---
def state_to_dict(state: AppState) -> dict:
    return {
        "expenses": [
            {
                "id": e.id,
                "category": e.category.category_id,
                "date": e.date,
                "title": e.title,
                "participants": [{"id": p.id, "name": p.name} for p in e.participants],
                "items": [
                    {
                        "id": item.id,
                        "participantId": item.payer_id or "",
                        "description": item.description,
                        "amount": item.amount,
                        "subgroup": list(item.subgroup),
                    }
                    for item in e.items
                ],
            }
            for e in state.expenses
        ],
        "settings": {"theme": state.settings.theme, "currency": state.settings.currency},
        "searchQuery": state.search_query,
        "dateRange": {"start": state.date_range.start, "end": state.date_range.end},
        "selectedCategory": state.selected_category.category_id if state.selected_category else None,
    }


def _subgroup_from_dict(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Subgroup must be a list, got {value!r}")
    return unique_ids(value)


def _expense_from_dict(data: dict) -> Expense:
    return Expense(
        id=data["id"],
        title=data["title"],
        category=ExpenseCategory.from_id(data["category"]),
        date=data["date"],
        participants=tuple(Participant(p["id"], p["name"]) for p in data.get("participants", [])),
        items=tuple(
            ExpenseItem(
                id=item["id"],
                description=item["description"],
                amount=valid_amount(item["amount"]),
                payer_id=item.get("participantId") or None,
                subgroup=_subgroup_from_dict(item.get("subgroup")),
            )
            for item in data.get("items", [])
        ),
    )


def state_from_dict(data: dict) -> AppState:
    settings = data.get("settings") or {}
    date_range = data.get("dateRange") or {}
    selected = data.get("selectedCategory")
    return AppState(
        expenses=tuple(_expense_from_dict(e) for e in data.get("expenses", [])),
        settings=AppSettings(settings.get("theme", config.DEFAULT_THEME),
                             settings.get("currency", config.DEFAULT_CURRENCY)),
        search_query=data.get("searchQuery", ""),
        date_range=DateRange(date_range.get("start"), date_range.get("end")),
        selected_category=ExpenseCategory.from_id(selected) if selected else None,
    )


def export_data(state: AppState) -> str:
    return json.dumps(state_to_dict(state), ensure_ascii=False)


def import_data(data: str) -> AppState:
    try:
        state = state_from_dict(json.loads(data))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.error("Failed to import data: %s", e)
        raise StateImportError(f"Could not import data: {e}") from e
    logger.info("Imported %d expenses", len(state.expenses))
    return state
