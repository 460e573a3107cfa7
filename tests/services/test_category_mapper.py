from unittest.mock import patch

import pytest

from rentledger.models.transaction import Category, LedgerItem
from rentledger.services.category_mapper import (
    map_payment,
    resolve_bill_category,
    scale_items,
    split_by_service_type,
    to_ledger_items,
)
from rentledger.settings import settings

CATEGORIES = [
    Category(id="luong", name="Lương", type="expense"),
    Category(id="khac", name="Thu khác", type="income"),
    Category(id="tien-hoa-don", name="Tiền hóa đơn", type="income"),
]


class TestResolveBillCategory:
    def test_named_category_wins(self):
        assert resolve_bill_category(CATEGORIES) == "tien-hoa-don"

    def test_first_income_category(self):
        assert resolve_bill_category(CATEGORIES[:2]) == "khac"

    def test_default_when_no_income(self):
        assert resolve_bill_category(CATEGORIES[:1]) == settings.default_category_id
        assert resolve_bill_category([]) == settings.default_category_id


class TestMappers:
    def test_single_item(self, sample_bill):
        items = to_ledger_items(sample_bill(), CATEGORIES)
        assert items == [LedgerItem(name="Tiền hóa đơn", amount=3275000, category_id="tien-hoa-don")]

    def test_split_by_service_type(self, sample_bill):
        items = split_by_service_type(sample_bill(), CATEGORIES)

        assert [item.amount for item in items] == [3100000, 175000]
        assert items[0].category_id == "tien-hoa-don"
        assert items[1].name == "Tiền điện (Điện)"
        assert items[1].category_id == "tien-dien"
        assert sum(item.amount for item in items) == 3275000


class TestScaleItems:
    def test_full_amount_unchanged(self):
        items = [LedgerItem(name="a", amount=700, category_id="x"), LedgerItem(name="b", amount=300, category_id="y")]
        assert scale_items(items, 1000, 1000) == items

    def test_proportional(self):
        items = [LedgerItem(name="a", amount=700, category_id="x"), LedgerItem(name="b", amount=300, category_id="y")]
        assert [item.amount for item in scale_items(items, 500, 1000)] == [350, 150]

    def test_remainder_goes_to_first_item(self):
        items = [LedgerItem(name=n, amount=1, category_id="x") for n in "abc"]
        scaled = scale_items(items, 2, 3)
        assert sum(item.amount for item in scaled) == 2
        assert [item.amount for item in scaled] == [0, 1, 1]

    def test_zero_total(self):
        with pytest.raises(ValueError):
            scale_items([LedgerItem(name="a", amount=0, category_id="x")], 100, 0)

    def test_empty(self):
        assert scale_items([], 100, 0) == []


class TestMapPayment:
    def test_partial_single(self, sample_bill):
        items = map_payment(sample_bill(), CATEGORIES, 400000)
        assert items == [LedgerItem(name="Tiền hóa đơn", amount=400000, category_id="tien-hoa-don")]

    def test_partial_by_service(self, sample_bill):
        with patch.object(settings, "category_mapping", "by_service"):
            items = map_payment(sample_bill(), CATEGORIES, 1000000)
        assert [item.amount for item in items] == [946565, 53435]

    def test_unknown_mapping(self, sample_bill):
        with patch.object(settings, "category_mapping", "nope"):
            with pytest.raises(ValueError, match="nope"):
                map_payment(sample_bill(), CATEGORIES, 1000)
