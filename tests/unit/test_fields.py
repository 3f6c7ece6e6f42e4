"""
Behavior of the scalar, temporal, currency, saved-total and alias field kinds.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime

import pytest

from dbrecords.errors import ConfigurationError
from dbrecords.quantities import JulianDay, Timestamp
from dbrecords.record import Record
from dbrecords.schema import Column
from dbrecords.table import Table


class Item(Record):
    field_specs = [
        {"name": "id", "field_type": "number"},
        {"name": "name", "field_type": "string", "length": 8, "required": True},
        {"name": "quantity", "field_type": "number", "required": True},
        {"name": "sku", "field_type": "string", "interface": "read_only"},
        {"name": "slug", "field_type": "string", "interface": "init_and_get"},
        {"name": "created", "field_type": "timestamp", "interface": "created"},
        {"name": "modified", "field_type": "timestamp", "interface": "modified"},
        {"name": "due", "field_type": "julian_day", "default_readable_format": "%Y-%m-%d"},
        {"name": "price", "field_type": "currency_uspennies"},
        {"name": "label", "field_type": "alias", "target": "name"},
    ]

    def init_slug(self):
        return (self.name or "").lower()


class Order(Record):
    field_specs = [
        {"name": "status", "field_type": "string"},
        {"name": "lines", "field_type": "generic"},
        {"name": "total", "field_type": "saved_total_uspennies"},
        {"name": "weight", "field_type": "saved_total", "init_method": "weigh", "reset_checker": "is_open"},
    ]

    def status_is_cart(self):
        return self.status == "cart"

    def is_open(self):
        return self.status != "closed"

    def init_total(self):
        return sum(self.lines or [])

    def weigh(self):
        return len(self.lines or []) * 2


class TestStringField:
    def test_non_text_is_stored_as_text_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        item = Item()
        with caplog.at_level(logging.WARNING):
            item.name = 42
        assert item.name == "42"
        assert "non-text value" in caplog.text

    def test_required_and_length(self) -> None:
        assert Item(quantity=1).name_invalid() == ("name", "This field can not be left empty.")
        item = Item(name="far too long", quantity=1)
        assert item.name_invalid() == ("name", "This field can not hold more than 8 characters.")
        assert Item(name="ok", quantity=1).name_invalid() is None


class TestNumberField:
    def test_numeric_text_is_converted(self) -> None:
        item = Item(quantity="2001")
        assert item.quantity == 2001
        assert item["quantity"] == 2001

    def test_non_numeric_kept_and_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            item = Item(name="x", quantity="abc")
        assert item.quantity == "abc"
        assert item.quantity_invalid() == ("quantity", "This field can only contain numeric values.")
        assert "non-numeric value" in caplog.text

    def test_required(self) -> None:
        assert Item(name="x").quantity_invalid() == ("quantity", "This field is required.")

    def test_readable_reads_and_writes_grouped_digits(self) -> None:
        item = Item(quantity=1234567)
        assert item.quantity_readable() == "1,234,567"
        item.quantity_readable("7,654,321")
        assert item.quantity == 7654321

    def test_invalid_fields_collects_every_problem(self) -> None:
        names = [name for name, _ in Item(quantity="abc").invalid_fields()]
        assert names == ["name", "quantity"]


class TestInterfaces:
    def test_read_only_has_no_setter_or_validator(self) -> None:
        item = Item(sku="ABC")
        assert item.sku == "ABC"
        with pytest.raises(AttributeError):
            item.sku = "DEF"
        assert not hasattr(Item, "sku_invalid")

    def test_init_and_get_computes_once(self) -> None:
        item = Item(name="Blue")
        assert item.slug == "blue"
        item.name = "Green"
        assert item.slug == "blue"

    def test_init_and_get_requires_the_init_method(self) -> None:
        class Bare(Record):
            field_specs = [{"name": "code", "field_type": "string", "interface": "init_and_get"}]

        with pytest.raises(ConfigurationError, match="init_code"):
            Bare().code


class TestColumnDetection:
    @staticmethod
    def _album_class() -> type:
        class Album(Record):
            field_specs = [
                {"name": "id", "field_type": "number"},
                {"name": "title", "field_type": "string"},
                {"name": "year", "field_type": "number"},
                {"name": "notes", "field_type": "string", "length": 3},
            ]

        return Album

    @staticmethod
    def _album_table(memory_datasource) -> Table:
        table = Table("album", memory_datasource)
        table.table_create(
            [
                Column(name="id", type="int", required=True),
                Column(name="title", type="text", length=5, required=True),
                Column(name="year", type="int", required=True),
                Column(name="notes", type="text", length=64),
            ]
        )
        return table

    def test_unspecified_attributes_come_from_the_column(self, memory_datasource) -> None:
        Album = self._album_class()
        Album.bind_table(self._album_table(memory_datasource))

        assert Album(year=1).title_invalid() == ("title", "This field can not be left empty.")
        assert Album(title="Giant Steps", year=1).title_invalid() == (
            "title",
            "This field can not hold more than 5 characters.",
        )
        assert Album(title="Blue").year_invalid() == ("year", "This field is required.")
        assert Album.field("title").column(Album).length == 5

    def test_declared_attributes_win_over_the_column(self, memory_datasource) -> None:
        Album = self._album_class()
        Album.bind_table(self._album_table(memory_datasource))

        assert Album(notes="long").notes_invalid() == ("notes", "This field can not hold more than 3 characters.")
        assert Album.field("notes").column(Album).length == 3

    def test_detection_runs_once(self, memory_datasource) -> None:
        Album = self._album_class()
        table = self._album_table(memory_datasource)
        Album.bind_table(table)
        assert Album(title="Giant Steps").title_invalid() is not None

        table.set_column_set([Column(name="id", type="int"), Column(name="title", type="text", length=50)])
        assert Album(title="Giant Steps").title_invalid() == (
            "title",
            "This field can not hold more than 5 characters.",
        )
        assert Album().title_invalid() == ("title", "This field can not be left empty.")

    def test_defaults_are_kept_when_no_table_was_bound(self, memory_datasource) -> None:
        Album = self._album_class()
        assert Album().title_invalid() is None

        Album.bind_table(self._album_table(memory_datasource))
        assert Album().title_invalid() is None
        assert Album(title="Giant Steps").title_invalid() is None


class TestTimeFields:
    def test_created_is_stamped_on_construction(self) -> None:
        before = int(time.time())
        item = Item()
        assert before <= item.created <= int(time.time())

    def test_created_keeps_a_given_value(self) -> None:
        assert Item(created=100).created == 100

    def test_modified_touches_before_save(self, memory_datasource) -> None:
        Item.bind_table(Table("item", memory_datasource))
        try:
            Item.table().table_create(Item.field_columns())
            item = Item(name="x", quantity=1)
            assert item.modified is None
            item.save_record()
            first = item.modified
            assert first is not None
            item.modified = 1
            item.save_record()
            assert item.modified >= first
        finally:
            Item.bind_table(None)

    def test_timestamp_parses_text(self) -> None:
        item = Item(created="2001-05-06 07:08:09")
        assert item.created == int(datetime(2001, 5, 6, 7, 8, 9).timestamp())
        assert item.created_readable() == "2001-05-06 07:08:09"
        assert item.created_readable("%Y") == "2001"
        assert item.created_obj() == Timestamp(item.created)

    def test_unrecognized_time_is_kept(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            item = Item(created="someday")
        assert item.created == "someday"
        assert "unrecognized timestamp" in caplog.text

    def test_julian_day(self) -> None:
        item = Item(due="01/01/2000")
        assert item.due == 2451545
        assert item.due_readable() == "2000-01-01"
        assert item.due_readable("%m/%d/%Y") == "01/01/2000"
        assert item.due_obj() == JulianDay(2451545)
        item.touch_due()
        assert item.due_obj().to_date() == date.today()


class TestCurrency:
    def test_pennies_and_symbol_text(self) -> None:
        assert Item(price=1299).price == 1299
        assert Item(price="$12.99").price == 1299

    def test_readable_reads_and_writes_dollars(self) -> None:
        item = Item(price=123456)
        assert item.price_readable() == "$1,234.56"
        item.price_readable("12.50")
        assert item.price == 1250
        item.price_readable("")
        assert item.price is None


class TestSavedTotals:
    def test_recomputes_while_reset_checker_is_true(self) -> None:
        order = Order(status="cart", lines=[100, 250])
        assert order.total == 350
        order.lines = [100, 250, 50]
        assert order.total == 400

    def test_frozen_once_checker_is_false(self) -> None:
        order = Order(status="cart", lines=[100])
        assert order.total == 100
        order.status = "paid"
        order.lines = [100, 900]
        assert order.total == 100
        assert order.total_difference() == 900
        assert order.reset_total() == 1000
        assert order.total_readable() == "$10.00"

    def test_pennies_total_recomputes_when_empty(self) -> None:
        order = Order(status="paid", lines=[5])
        assert order.total == 5

    def test_pennies_total_can_be_set(self) -> None:
        order = Order(status="paid", lines=[5])
        order.set_total(70)
        assert order.total == 70
        order.total = 80
        assert order["total"] == 80

    def test_custom_companion_methods(self) -> None:
        order = Order(status="open", lines=[1, 2, 3])
        assert order.weight == 6
        order.status = "closed"
        order.lines = []
        assert order.weight == 6
        assert order.weight_difference() == -6

    def test_missing_companion_method(self) -> None:
        class NoInit(Record):
            field_specs = [{"name": "total", "field_type": "saved_total"}]

            def status_is_cart(self):
                return True

        with pytest.raises(ConfigurationError, match="init_total"):
            NoInit().total


class TestAlias:
    def test_alias_reads_and_writes_the_target(self) -> None:
        item = Item(name="Blue")
        assert item.label == "Blue"
        item.label = "Green"
        assert item.name == "Green"

    def test_alias_to_method(self) -> None:
        class Greeter(Record):
            field_specs = [{"name": "hi", "field_type": "alias", "target": "hello"}]

            def hello(self):
                return "hello"

        assert Greeter().hi() == "hello"

    def test_alias_to_method_is_not_assignable(self) -> None:
        class Renamer(Record):
            field_specs = [
                {"name": "title", "field_type": "string"},
                {"name": "retitle", "field_type": "alias", "target": "rename"},
            ]

            def rename(self, value):
                self.title = value.title()

        record = Renamer()
        with pytest.raises(AttributeError, match="'rename' has no setter"):
            record.retitle = "x"
        record.call_methods(retitle="blue train")
        assert record.title == "Blue Train"
        record.rename("giant steps")
        assert record.title == "Giant Steps"

    def test_missing_target(self) -> None:
        class Broken(Record):
            field_specs = [{"name": "other", "field_type": "alias", "target": "nothing"}]

        with pytest.raises(ConfigurationError, match="missing attribute 'nothing'"):
            Broken().other

    def test_alias_needs_a_target(self) -> None:
        with pytest.raises(ConfigurationError, match="needs a target"):

            class NoTarget(Record):
                field_specs = [{"name": "other", "field_type": "alias"}]
