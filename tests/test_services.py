from decimal import Decimal

import pytest

from tracker.exceptions import ImportFormatError, PersistenceError, RecordNotFoundError, ValidationError
from tracker.services import ExpenseService, merge_changes
from tracker.storage import ExpenseStore

VALID = {"description": "Groceries", "amount": "42.50", "category": "Food", "date": "2024-03-15"}


class CountingStore(ExpenseStore):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.saves = 0

    def save(self, records):
        self.saves += 1
        super().save(records)


@pytest.fixture
def counting(storage):
    return CountingStore(storage)


@pytest.fixture
def counted_service(storage, counting):
    return ExpenseService(storage, store=counting)


def test_add_assigns_fresh_id_and_persists(service, storage):
    before = {expense.id for expense in service.list()}
    expense = service.add(VALID)

    assert expense.id not in before
    assert len(service.list()) == len(before) + 1
    assert expense.description == "Groceries"
    assert expense.amount == Decimal("42.50")
    assert ExpenseService(storage).list() == [expense]


def test_add_trims_text_fields(service):
    expense = service.add({**VALID, "description": "  Coffee ", "category": " Food  "})
    assert expense.description == "Coffee"
    assert expense.category == "Food"


def test_add_accepts_wire_name_desc(service):
    payload = {key: value for key, value in VALID.items() if key != "description"}
    expense = service.add({**payload, "desc": "Taxi"})
    assert expense.description == "Taxi"


def test_add_ignores_supplied_id(service):
    expense = service.add({**VALID, "id": "chosen"})
    assert expense.id != "chosen"


@pytest.mark.parametrize(
    "field, value",
    [
        ("description", ""),
        ("description", "   "),
        ("description", None),
        ("category", ""),
        ("amount", 0),
        ("amount", -5),
        ("amount", "abc"),
        ("amount", "NaN"),
        ("amount", float("inf")),
        ("amount", None),
        ("date", ""),
        ("date", "2024-13-01"),
        ("date", None),
    ],
)
def test_add_rejects_invalid_field(service, field, value):
    with pytest.raises(ValidationError) as excinfo:
        service.add({**VALID, field: value})
    assert field in str(excinfo.value)
    assert service.list() == []


def test_add_rejects_missing_field(service):
    payload = {key: value for key, value in VALID.items() if key != "category"}
    with pytest.raises(ValidationError):
        service.add(payload)


def test_update_replaces_in_place(service):
    first = service.add(VALID)
    second = service.add({**VALID, "description": "Rent"})
    third = service.add({**VALID, "description": "Bus"})

    updated = service.update(second.id, {"description": "Mortgage", "amount": 900, "category": "Home", "date": "2024-04-01"})

    assert updated.id == second.id
    assert [expense.id for expense in service.list()] == [first.id, second.id, third.id]
    assert service.get(second.id).description == "Mortgage"
    assert service.get(second.id).amount == Decimal("900")


def test_update_requires_every_field(service):
    expense = service.add(VALID)
    with pytest.raises(ValidationError) as excinfo:
        service.update(expense.id, {"amount": "10"})
    assert "description" in str(excinfo.value)
    assert service.get(expense.id) == expense


def test_merge_changes_lays_changes_over_existing(service):
    expense = service.add(VALID)
    updated = service.update(expense.id, merge_changes(expense, {"amount": "10", "desc": "Market"}))
    assert updated.description == "Market"
    assert updated.category == "Food"
    assert updated.amount == Decimal("10")


def test_update_unknown_id(service):
    with pytest.raises(RecordNotFoundError):
        service.update("missing", VALID)


def test_update_validation_failure_leaves_record(service, storage):
    expense = service.add(VALID)
    with pytest.raises(ValidationError):
        service.update(expense.id, {**VALID, "description": "Changed", "amount": -1})
    assert service.get(expense.id) == expense
    assert ExpenseService(storage).list() == [expense]


def test_remove_is_idempotent(service):
    keep = service.add(VALID)
    gone = service.add({**VALID, "description": "Bus"})

    service.remove(gone.id)
    once = service.list()
    service.remove(gone.id)

    assert service.list() == once == [keep]


def test_remove_unknown_id_does_not_write(counted_service, counting):
    counted_service.remove("missing")
    assert counting.saves == 0


def test_each_mutation_writes_once(counted_service, counting):
    expense = counted_service.add(VALID)
    counted_service.update(expense.id, {**VALID, "amount": 3})
    counted_service.remove(expense.id)
    counted_service.clear()
    counted_service.replace_all([])
    assert counting.saves == 5


def test_clear_persists_empty_collection(service, storage):
    service.add(VALID)
    service.clear()
    assert service.list() == []
    assert ExpenseService(storage).list() == []


def test_failed_write_keeps_memory_consistent(counted_service, counting, monkeypatch):
    existing = counted_service.add(VALID)

    def boom(records):
        raise PersistenceError("disk full")

    monkeypatch.setattr(counting, "save", boom)
    with pytest.raises(PersistenceError):
        counted_service.add({**VALID, "description": "Lost"})
    with pytest.raises(PersistenceError):
        counted_service.clear()
    assert counted_service.list() == [existing]


def test_long_fraction_rounds_to_cents_and_survives_reload(service, storage):
    expense = service.add({**VALID, "amount": "0.12345678901234567890"})
    assert expense.amount == Decimal("0.12")
    assert ExpenseService(storage).list() == [expense]


def test_largest_amount_survives_reload(service, storage):
    expense = service.add({**VALID, "amount": "9999999999999.99"})
    assert ExpenseService(storage).get(expense.id).amount == Decimal("9999999999999.99")


@pytest.mark.parametrize("amount", ["1e-400", "0.004", "10000000000000", "1e999"])
def test_amounts_lost_in_storage_are_rejected(service, amount):
    with pytest.raises(ValidationError):
        service.add({**VALID, "amount": amount})
    assert service.list() == []


def test_replace_all_keeps_only_valid_candidates(service):
    report = service.replace_all(
        [
            {"desc": "No amount", "category": "Food", "date": "2024-01-01"},
            {"desc": "Lunch", "amount": "12.5", "category": "Food", "date": "2024-01-02"},
        ]
    )

    records = service.list()
    assert len(records) == 1
    assert records[0].description == "Lunch"
    assert records[0].amount == Decimal("12.5")
    assert records[0].id
    assert [index for index, _ in report.rejected] == [0]


def test_replace_all_preserves_existing_ids(service):
    service.replace_all([{"id": "keep-me", "desc": "Lunch", "amount": 12, "category": "Food", "date": "2024-01-02"}])
    assert service.get("keep-me").description == "Lunch"


def test_replace_all_rejects_non_sequence(service):
    service.add(VALID)
    with pytest.raises(ImportFormatError):
        service.replace_all({"desc": "Lunch"})
    assert len(service.list()) == 1


def test_import_json_rejects_malformed_text(service):
    existing = service.add(VALID)
    with pytest.raises(ImportFormatError):
        service.import_json("{broken")
    with pytest.raises(ImportFormatError):
        service.import_json('{"desc": "Lunch"}')
    assert service.list() == [existing]


def test_export_then_import_restores_collection(service, coffee_and_bus):
    exported = service.export_json()
    service.clear()
    service.import_json(exported)
    assert service.list() == list(coffee_and_bus)


def test_reload_reads_external_changes(service, storage):
    other = ExpenseService(storage)
    expense = other.add(VALID)
    assert service.list() == []
    service.reload()
    assert service.list() == [expense]


def test_compute_view_delegates(service, coffee_and_bus):
    view = service.compute_view("", "2024-01")
    assert view.rows == [coffee_and_bus[0]]
