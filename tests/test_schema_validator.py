"""Schema range / overlap validation tests."""
import pytest

from scan_hub.errors import SchemaInvalidError
from scan_hub.models import ParseField, ParseFieldRole, ParseType, ParserConfig
from scan_hub.services.schema_validator import (
    is_parser_config_valid,
    is_range_valid,
    is_schema_valid,
    validate_parse_type,
)


def _field(fid, start, length, role=ParseFieldRole.SUM):
    return ParseField(id=fid, title=fid, start=start, length=length, role=role)


class TestRange:
    @pytest.mark.parametrize("start,length", [(1, 1), (1, 13), (13, 1), (10, 3)])
    def test_valid(self, start, length):
        assert is_range_valid(start, length)

    @pytest.mark.parametrize("start,length", [(0, 1), (14, 1), (1, 0), (12, 3), (13, 2)])
    def test_invalid(self, start, length):
        assert not is_range_valid(start, length)


class TestSchema:
    def test_overlapping_fields(self):
        """1+5 covers positions 1-5, 4+3 covers 4-6: they share 4 and 5."""
        fields = [_field("a", 1, 5, ParseFieldRole.GROUP), _field("b", 4, 3)]
        assert not is_schema_valid(fields)

    def test_adjacent_fields(self):
        fields = [_field("a", 1, 5, ParseFieldRole.GROUP), _field("b", 6, 3)]
        assert is_schema_valid(fields)

    def test_out_of_range_field(self):
        fields = [_field("a", 1, 2, ParseFieldRole.GROUP), _field("b", 12, 3)]
        assert not is_schema_valid(fields)

    def test_validate_parse_type_raises_with_reason(self):
        pt = ParseType(id="x", name="x", fields=[_field("a", 1, 5, ParseFieldRole.GROUP), _field("b", 4, 3)])
        with pytest.raises(SchemaInvalidError) as exc:
            validate_parse_type(pt)
        assert "overlap" in exc.value.reason


class TestParserConfig:
    def test_default_is_valid(self):
        assert is_parser_config_valid(ParserConfig())

    def test_overlapping_kg_and_g(self):
        assert not is_parser_config_valid(ParserConfig(kg_start=9, kg_length=2, g_start=10, g_length=3))
