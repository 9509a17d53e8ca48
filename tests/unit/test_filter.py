"""Unit tests for route search filters."""

import pytest

from langroute.core.filter import Filter, coerce


class TestCoerce:
    """Tests for filter value conversion."""

    def test_bool(self):
        """Test boolean conversion of strings and scalars."""
        assert coerce("true", "bool") is True
        assert coerce("On", "boolean") is True
        assert coerce("0", "bool") is False
        assert coerce("", "bool") is False
        assert coerce(1, "bool") is True
        with pytest.raises(ValueError):
            coerce("maybe", "bool")

    def test_numbers(self):
        """Test integer and float conversion."""
        assert coerce("12", "int") == 12
        assert coerce("12.9", "integer") == 12
        assert coerce(True, "int") == 1
        assert coerce("1.5", "float") == 1.5
        assert coerce(2, "double") == 2.0

    def test_string(self):
        """Test string conversion, booleans rendered as '1' or ''."""
        assert coerce(12, "string") == "12"
        assert coerce(True, "string") == "1"
        assert coerce(False, "string") == ""


class TestFilter:
    """Tests for Filter."""

    def test_export(self):
        """Test the exported criteria."""
        criteria = Filter().methods(["get", "POST", "GET"]).options("sitemap", "yes", "bool").lang("EN")

        assert criteria.export() == {
            "methods": ["GET", "POST"],
            "options": [{"label": "sitemap", "value": True, "type": "bool"}],
            "lang": "EN",
        }

    def test_unknown_type(self):
        """Test an unknown type is rejected."""
        with pytest.raises(ValueError, match='type "date" must be in'):
            Filter().options("published", "2024-01-01", "date")

    def test_match_options(self):
        """Test every option criterion must match."""
        criteria = Filter().options("priority", "0.8", "float").options("sitemap", True, "bool")

        assert criteria.match_options({"priority": 0.8, "sitemap": "1"})
        assert not criteria.match_options({"priority": 0.5, "sitemap": True})
        assert not criteria.match_options({"priority": 0.8})

    def test_container_options_never_match(self):
        """Test list and mapping option values are not compared."""
        criteria = Filter().options("tags", "news")

        assert not criteria.match_options({"tags": ["news"]})
        assert not criteria.match_options({"tags": {"news": True}})

    def test_unconvertible_option_does_not_match(self):
        """Test a route option that cannot be converted is skipped."""
        criteria = Filter().options("weight", "3", "int")

        assert not criteria.match_options({"weight": "heavy"})

    def test_match_methods(self):
        """Test method intersection, empty sets accepting everything."""
        criteria = Filter().methods(["POST", "PUT"])

        assert criteria.match_methods(["GET", "POST"])
        assert not criteria.match_methods(["GET"])
        assert criteria.match_methods([])
        assert Filter().match_methods(["GET"])
