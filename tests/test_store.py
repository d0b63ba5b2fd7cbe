import json

import pytest

from logic import calculate_balances, calculate_items_detail
from models import AppState, ExpenseCategory, ExpenseItem
from store import (ExpenseNotFoundError, InvalidItemError, StateImportError, add_expense,
                   add_item, add_participant, export_data, get_expense, import_data,
                   initial_state, new_expense, new_item, new_participant, remove_expense,
                   remove_item, remove_participant, set_date_range, set_item_payer,
                   set_search_query, set_selected_category, visible_expenses)


@pytest.fixture
def trip():
    state = initial_state()
    expense = new_expense("Beach trip", ExpenseCategory.VIAJES, "2024-02-10")
    state = add_expense(state, expense)
    alice, bob = new_participant("Alice"), new_participant("Bob")
    state = add_participant(state, expense.id, alice)
    state = add_participant(state, expense.id, bob)
    return state, expense.id, alice, bob


def test_mutations_return_new_state(trip):
    state, eid, alice, bob = trip

    updated = add_item(state, eid, new_item("Fuel", 60, alice.id))

    assert get_expense(state, eid).items == ()
    assert len(get_expense(updated, eid).items) == 1
    assert get_expense(updated, eid).participants == (alice, bob)


def test_new_item_rejects_bad_amounts():
    with pytest.raises(InvalidItemError):
        new_item("Fuel", 0)
    with pytest.raises(InvalidItemError):
        new_item("Fuel", -5)
    with pytest.raises(InvalidItemError):
        new_item("Fuel", "lots")
    with pytest.raises(InvalidItemError):
        new_item("Fuel", "inf")
    with pytest.raises(InvalidItemError):
        new_item("Fuel", float("nan"))
    with pytest.raises(InvalidItemError):
        new_item("   ", 10)


def test_new_item_normalises_fields():
    item = new_item(" Snacks ", "12.5", "", ["a", "b"])

    assert item.description == "Snacks"
    assert item.amount == 12.5
    assert item.payer_id is None
    assert item.subgroup == ("a", "b")


def test_unknown_expense_raises(trip):
    state, _, alice, _ = trip

    with pytest.raises(ExpenseNotFoundError):
        add_participant(state, "missing", alice)


def test_remove_participant_clears_payer_keeps_subgroup(trip):
    state, eid, alice, bob = trip
    carol = new_participant("Carol")
    state = add_participant(state, eid, carol)
    state = add_item(state, eid, new_item("Hotel", 90, carol.id))
    state = add_item(state, eid, new_item("Dinner", 30, alice.id, [alice.id, carol.id]))

    state = remove_participant(state, eid, carol.id)
    expense = get_expense(state, eid)

    assert expense.participants == (alice, bob)
    assert expense.items[0].payer_id is None
    assert expense.items[1].subgroup == (alice.id, carol.id)
    balances = calculate_balances(expense)
    # Carol's half of the dinner is dropped rather than moved to Alice
    assert balances[alice.id].owes == pytest.approx(45 + 15)
    assert balances[bob.id].owes == pytest.approx(45)


def test_remove_participant_can_prune_subgroups(trip):
    state, eid, alice, bob = trip
    state = add_item(state, eid, new_item("Dinner", 30, alice.id, [alice.id, bob.id]))

    state = remove_participant(state, eid, bob.id, prune_subgroups=True)

    assert get_expense(state, eid).items[0].subgroup == (alice.id,)


def test_set_item_payer_and_remove_item(trip):
    state, eid, alice, bob = trip
    item = new_item("Fuel", 60)
    state = add_item(state, eid, item)

    state = set_item_payer(state, eid, item.id, bob.id)
    assert get_expense(state, eid).items[0].payer_id == bob.id

    state = remove_item(state, eid, item.id)
    assert get_expense(state, eid).items == ()


def test_remove_expense(trip):
    state, eid, _, _ = trip

    assert remove_expense(state, eid).expenses == ()


def test_visible_expenses_filters():
    state = AppState()
    lunch = new_expense("Team lunch", ExpenseCategory.COMIDA, "2024-03-01")
    flight = new_expense("Flight to Lima", ExpenseCategory.VIAJES, "2024-04-15")
    state = add_expense(add_expense(state, lunch), flight)

    assert visible_expenses(state) == [lunch, flight]
    assert visible_expenses(set_search_query(state, "LUNCH")) == [lunch]
    assert visible_expenses(set_selected_category(state, ExpenseCategory.VIAJES)) == [flight]
    assert visible_expenses(set_date_range(state, "2024-03-02", None)) == [flight]
    assert visible_expenses(set_date_range(state, "2024-03-01", "2024-03-01")) == [lunch]


def test_export_uses_app_state_shape(trip):
    state, eid, alice, _ = trip
    state = add_item(state, eid, new_item("Fuel", 60))

    data = json.loads(export_data(state))

    assert set(data) == {"expenses", "settings", "searchQuery", "dateRange", "selectedCategory"}
    exported = data["expenses"][0]
    assert exported["category"] == "viajes"
    assert exported["items"][0]["participantId"] == ""
    assert exported["participants"][0] == {"id": alice.id, "name": "Alice"}


def test_import_restores_exported_state(trip):
    state, eid, alice, bob = trip
    state = add_item(state, eid, new_item("Fuel", 60, alice.id, [alice.id, bob.id]))
    state = set_selected_category(state, ExpenseCategory.VIAJES)

    assert import_data(export_data(state)) == state


def test_import_accepts_missing_subgroup():
    payload = {
        "expenses": [{
            "id": "e1", "category": "super", "date": "2024-01-01", "title": "Groceries",
            "participants": [{"id": "p1", "name": "Ana"}],
            "items": [{"id": "i1", "participantId": "p1", "description": "Milk", "amount": 3}],
        }],
        "settings": {"theme": "dark", "currency": "USD"},
        "searchQuery": "",
        "dateRange": {"start": None, "end": None},
        "selectedCategory": None,
    }

    state = import_data(json.dumps(payload))

    assert state.settings.theme == "dark"
    assert state.settings.currency == "USD"
    assert get_expense(state, "e1").items[0].subgroup == ()


@pytest.mark.parametrize("payload", [
    "not json",
    "[]",
    json.dumps({"expenses": [{"id": "e1"}]}),
    json.dumps({"expenses": [{"id": "e1", "category": "unknown", "date": "", "title": "x"}]}),
])
def test_import_rejects_malformed_data(payload):
    with pytest.raises(StateImportError):
        import_data(payload)


def test_add_item_rejects_infinite_amount(trip):
    state, eid, alice, _ = trip

    with pytest.raises(InvalidItemError):
        add_item(state, eid, ExpenseItem("i1", "Fuel", float("inf"), alice.id))


def test_duplicate_subgroup_ids_are_charged_once(trip):
    state, eid, alice, bob = trip
    item = new_item("Dinner", 30, alice.id, [bob.id, bob.id, alice.id])
    state = add_item(state, eid, item)
    expense = get_expense(state, eid)

    balances = calculate_balances(expense)
    detail = calculate_items_detail(expense)

    assert item.subgroup == (bob.id, alice.id)
    assert balances[bob.id].owes == pytest.approx(15)
    for pid, shares in detail.items():
        assert sum(s.share for s in shares) == pytest.approx(balances[pid].owes)


def test_new_item_rejects_string_subgroup():
    with pytest.raises(InvalidItemError):
        new_item("Dinner", 30, "a", "ab")


def _payload_with_item(**overrides):
    item = {"id": "i1", "participantId": "a", "description": "Fuel", "amount": 40}
    item.update(overrides)
    return json.dumps({"expenses": [{
        "id": "e1", "category": "transporte", "date": "2024-01-01", "title": "Road trip",
        "participants": [{"id": "a", "name": "Ana"}, {"id": "b", "name": "Ben"}],
        "items": [item],
    }]})


@pytest.mark.parametrize("amount", [-40, 0, "NaN", "inf", "forty", None])
def test_import_rejects_invalid_amounts(amount):
    with pytest.raises(StateImportError):
        import_data(_payload_with_item(amount=amount))


def test_import_rejects_string_subgroup():
    with pytest.raises(StateImportError):
        import_data(_payload_with_item(subgroup="ab"))


def test_import_drops_duplicate_subgroup_ids():
    state = import_data(_payload_with_item(subgroup=["b", "a", "b"]))

    assert get_expense(state, "e1").items[0].subgroup == ("b", "a")
