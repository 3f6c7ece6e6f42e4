from __future__ import annotations

import pytest

from dbrecords.catalog import Disc
from dbrecords.errors import UniqueCodeExhaustedError
from dbrecords.fields.codes import DEFAULT_CODE_CHARS
from dbrecords.quantities import JulianDay
from dbrecords.record import Record
from dbrecords.table import Table

EPOCH = JulianDay.parse("2020-01-01").value


class Ticket(Record):
    field_specs = [
        {"name": "id", "field_type": "number"},
        {"name": "code", "field_type": "unique_code", "length": 4, "chars": "XY", "max_attempts": 3},
        {"name": "stub", "field_type": "unique_code", "dated": EPOCH},
    ]


@pytest.fixture
def tickets(memory_datasource):
    table = Table("ticket", memory_datasource)
    table.table_create(Ticket.field_columns())
    Ticket.bind_table(table)
    yield table
    Ticket.bind_table(None)


class TestGeneration:
    def test_codes_are_assigned_on_insert(self, catalog) -> None:
        discs = [Disc.new_and_save(name=f"Disc {n}") for n in range(25)]
        codes = [disc.catalog_code for disc in discs]
        assert len(set(codes)) == len(codes)
        for code in codes:
            assert len(code) == 6
            assert not code.isdigit()
            assert set(code) <= set(DEFAULT_CODE_CHARS)

    def test_code_is_read_only(self, catalog) -> None:
        disc = Disc(name="x")
        with pytest.raises(AttributeError):
            disc.catalog_code = "ABCDEF"

    def test_generate_does_not_store(self, catalog) -> None:
        disc = Disc(name="x")
        assert len(disc.generate_catalog_code()) == 6
        assert disc.catalog_code is None

    def test_fetch_by_code(self, catalog) -> None:
        disc = Disc.new_and_save(name="Findable")
        assert Disc.fetch_catalog_code(disc.catalog_code).id == disc.id
        assert Disc.fetch_catalog_code("") is None
        assert Disc.fetch_catalog_code("ZZZZZZ") is None

    def test_column_length_follows_code_length(self) -> None:
        assert Disc.field("catalog_code").column(Disc).length == 6
        assert Ticket.field("stub").column(Ticket).length is None


class TestDatedCodes:
    def test_prefix_encodes_days_since_epoch(self) -> None:
        field = Ticket.field("stub")
        assert field.date_prefix(today=EPOCH) == ""
        assert field.date_prefix(today=EPOCH + 1) == "BBC-"
        assert field.date_prefix(today=EPOCH + 22) == "BCC-"

    def test_dated_code_shape(self, tickets) -> None:
        ticket = Ticket.new_and_save()
        prefix, _, body = ticket.stub.partition("-")
        assert len(prefix) == 3
        assert len(body) == 6


class TestExhaustion:
    def test_gives_up_after_max_attempts(self, tickets, monkeypatch: pytest.MonkeyPatch) -> None:
        tickets.insert_row({"code": "XXXX", "stub": "taken"})
        field = Ticket.field("code")
        attempts = []

        def always_taken(record=None):
            attempts.append(1)
            return "XXXX"

        monkeypatch.setattr(field, "generate", always_taken)
        with pytest.raises(UniqueCodeExhaustedError, match="in 3 attempts"):
            Ticket.new_and_save()
        assert len(attempts) == 3
        assert tickets.count_rows() == 1

    def test_settings_bound_applies_without_field_limit(
        self, tickets, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("UNIQUE_CODE_MAX_ATTEMPTS", "2")
        tickets.insert_row({"code": "YYYY", "stub": "BBB-XXXXXX"})
        field = Ticket.field("stub")
        monkeypatch.setattr(field, "generate", lambda record=None: "BBB-XXXXXX")
        with pytest.raises(UniqueCodeExhaustedError, match="in 2 attempts"):
            field.assign(Ticket())


class PinCode(Record):
    field_specs = [
        {"name": "id", "field_type": "number"},
        {"name": "pin", "field_type": "unique_code", "chars": "0123456789", "max_attempts": 5},
    ]


class TestNumericAlphabet:
    def test_generate_gives_up_on_all_digit_codes(self) -> None:
        with pytest.raises(UniqueCodeExhaustedError, match="non-numeric pin .* in 5 attempts"):
            PinCode().generate_pin()

    def test_save_fails_instead_of_looping(self, memory_datasource) -> None:
        table = Table("pin_code", memory_datasource)
        table.table_create(PinCode.field_columns())
        PinCode.bind_table(table)
        try:
            with pytest.raises(UniqueCodeExhaustedError):
                PinCode.new_and_save()
            assert table.count_rows() == 0
        finally:
            PinCode.bind_table(None)
