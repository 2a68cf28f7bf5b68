"""
Unit tests for attribute reshaping.
"""

from tbproxy.transform import attributes_to_map


class TestAttributesToMap:
    """Tests for attributes_to_map()."""

    def test_two_keys(self):
        """Test the basic list-to-mapping conversion."""
        records = [
            {"key": "latitude", "value": 1, "lastUpdateTs": 10},
            {"key": "longitude", "value": 2, "lastUpdateTs": 20},
        ]

        assert attributes_to_map(records) == {
            "latitude": {"value": 1, "ts": 10},
            "longitude": {"value": 2, "ts": 20},
        }

    def test_duplicate_key_last_wins(self):
        """Test that a later record overwrites an earlier one."""
        records = [
            {"key": "latitude", "value": 1, "lastUpdateTs": 10},
            {"key": "latitude", "value": 9, "lastUpdateTs": 99},
        ]

        assert attributes_to_map(records) == {"latitude": {"value": 9, "ts": 99}}

    def test_last_wins_even_if_older(self):
        """Test that order, not timestamp, decides between duplicates."""
        records = [
            {"key": "latitude", "value": 9, "lastUpdateTs": 99},
            {"key": "latitude", "value": 1, "lastUpdateTs": 10},
        ]

        assert attributes_to_map(records) == {"latitude": {"value": 1, "ts": 10}}

    def test_empty(self):
        """Test that no records yield an empty mapping."""
        assert attributes_to_map([]) == {}

    def test_extra_fields_ignored(self):
        """Test that unrelated record fields are dropped."""
        records = [
            {"key": "latitude", "value": "52.23", "lastUpdateTs": 5, "scope": "x"}
        ]

        assert attributes_to_map(records) == {"latitude": {"value": "52.23", "ts": 5}}

    def test_input_not_modified(self):
        """Test that the function has no side effects on its input."""
        records = [{"key": "latitude", "value": 1, "lastUpdateTs": 10}]
        snapshot = [dict(r) for r in records]

        attributes_to_map(records)

        assert records == snapshot

    def test_accepts_generator(self):
        """Test that any iterable of records is accepted."""
        records = (
            {"key": k, "value": i, "lastUpdateTs": i}
            for i, k in enumerate(["latitude", "longitude"])
        )

        assert list(attributes_to_map(records)) == ["latitude", "longitude"]
