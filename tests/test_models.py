"""Model validation, factories and JSON shape."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from scan_hub.models import (
    ParseField, ParseFieldRole, ParseType, ProductAlias, ScanAggregate, strip_trailing_zeros,
)
from scan_hub.repositories import ParseTypeRepository, ProductRepository, ScanListRepository


class TestParseType:
    def test_new_parse_type_has_single_group_field(self):
        pt = ParseTypeRepository.new_parse_type("Cheese")
        assert pt.name == "Cheese"
        assert pt.prefixes == []
        assert [f.role for f in pt.fields] == [ParseFieldRole.GROUP]
        assert pt.group_field.id == "article"

    def test_requires_exactly_one_group(self):
        group = dict(title="g", start=1, length=1, role=ParseFieldRole.GROUP)
        with pytest.raises(ValidationError):
            ParseType(id="x", name="x", fields=[])
        with pytest.raises(ValidationError):
            ParseType(id="x", name="x", fields=[ParseField(id="a", **group), ParseField(id="b", **group)])

    @pytest.mark.parametrize("kwargs", [dict(start=0), dict(length=0), dict(divisor=0)])
    def test_field_bounds(self, kwargs):
        base = dict(id="a", title="a", start=1, length=1, role=ParseFieldRole.SUM)
        base.update(kwargs)
        with pytest.raises(ValidationError):
            ParseField(**base)

    def test_blank_prefix_rejected(self):
        with pytest.raises(ValidationError):
            ParseType(id="x", name="x", prefixes=[" "],
                      fields=[ParseField(id="a", title="a", start=1, length=1, role=ParseFieldRole.GROUP)])

    def test_camel_case_json(self):
        pt = ParseTypeRepository.new_parse_type("Cheese")
        data = pt.model_dump(mode="json", by_alias=True)
        assert "createdAt" in data and "trimLeadingZeros" in data["fields"][0]
        assert ParseType.model_validate(data) == pt


class TestDecimals:
    def test_plain_string_serialization(self):
        agg = ScanAggregate(group_key="15", count=2, sum_values={"kg": Decimal("2.000"), "g": Decimal("100")})
        data = agg.model_dump(mode="json", by_alias=True)
        assert data["sumValues"] == {"kg": "2", "g": "100"}
        assert data["groupKey"] == "15"

    def test_strip_trailing_zeros(self):
        assert str(strip_trailing_zeros(Decimal("1.500000"))) == "1.5"
        assert str(strip_trailing_zeros(Decimal("1000"))) == "1000"


class TestFactories:
    def test_product_alias_prefixes(self):
        alias = ProductAlias(parse_type_id="default", group_key="15", prefixes=["21"])
        assert alias.matches("default", "15", "2150000019002")
        assert not alias.matches("default", "15", "2250000019002")
        assert not alias.matches("other", "15")

    def test_new_product_and_list_ids_are_unique(self):
        assert ProductRepository.new_product("a").id != ProductRepository.new_product("a").id
        sl = ScanListRepository.new_list("Morning", "default")
        assert sl.total_count == 0 and sl.aggregates == [] and sl.parse_type_id == "default"
