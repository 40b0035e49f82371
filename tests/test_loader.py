"""
Test suite for seed file discovery and parsing.
"""

import pytest

from cosmos_seeder.errors import InputMalformedError, InputNotFoundError
from cosmos_seeder.loader import load_source_records, locate_seed_file


class TestLoadSourceRecords:
    """Test suite for load_source_records()."""

    def test_load_should_return_records_in_file_order(self, write_seed, abc_docs) -> None:
        records = load_source_records(write_seed(abc_docs))

        assert [r.id for r in records] == ["a", "b", "c"]
        assert records[0].titleVector == [0.1, 0.2]
        assert records[0].contentVector == [0.3, 0.4]

    def test_load_should_default_missing_vectors_to_empty(self, write_seed, abc_docs) -> None:
        records = load_source_records(write_seed(abc_docs))

        assert records[1].contentVector == []
        assert records[2].titleVector == []
        assert records[2].contentVector == []

    def test_load_should_treat_null_vectors_as_empty(self, write_seed) -> None:
        records = load_source_records(write_seed([{"id": "x", "titleVector": None, "category": None}]))

        assert records[0].titleVector == []
        assert records[0].category == ""

    def test_load_should_match_field_names_case_insensitively(self, write_seed) -> None:
        docs = [{"ID": "x", "Title": "T", "CONTENT": "C", "Category": "K", "TITLEVECTOR": [1.0], "contentvector": [2.0]}]

        record = load_source_records(write_seed(docs))[0]

        assert (record.id, record.title, record.content, record.category) == ("x", "T", "C", "K")
        assert record.titleVector == [1.0]
        assert record.contentVector == [2.0]

    def test_load_should_ignore_unknown_fields(self, write_seed) -> None:
        record = load_source_records(write_seed([{"id": "x", "extra": {"nested": True}}]))[0]

        assert record.id == "x"
        assert not hasattr(record, "extra")

    def test_load_should_accept_empty_array(self, write_seed) -> None:
        assert load_source_records(write_seed([])) == []

    def test_load_should_treat_null_document_as_empty(self, write_seed) -> None:
        assert load_source_records(write_seed("null")) == []

    def test_load_should_accept_utf8_byte_order_mark(self, tmp_path) -> None:
        path = tmp_path / "seed-data.json"
        path.write_bytes(b"\xef\xbb\xbf" + b'[{"id": "a", "titleVector": [0.5]}]')

        records = load_source_records(path)

        assert [r.id for r in records] == ["a"]
        assert records[0].titleVector == [0.5]

    def test_load_should_raise_not_found_for_missing_file(self, tmp_path) -> None:
        with pytest.raises(InputNotFoundError) as exc_info:
            load_source_records(tmp_path / "missing.json")

        assert "missing.json" in str(exc_info.value)

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            '{"id": "a"}',
            '["a", "b"]',
            '[{"id": "a", "titleVector": ["x", "y"]}]',
            '[{"id": "a", "titleVector": [NaN]}]',
            '[{"id": "a", "contentVector": [0.1, Infinity]}]',
            '[{"id": "a", "titleVector": [-Infinity]}]',
            '[{"id": "a", "titleVector": [1e400]}]',
        ],
    )
    def test_load_should_raise_malformed_for_bad_content(self, write_seed, content) -> None:
        with pytest.raises(InputMalformedError):
            load_source_records(write_seed(content))


class TestLocateSeedFile:
    """Test suite for locate_seed_file()."""

    def test_locate_should_return_first_existing_candidate(self, tmp_path) -> None:
        first, second = tmp_path / "one", tmp_path / "two"
        first.mkdir()
        second.mkdir()
        (second / "seed-data.json").write_text("[]")

        assert locate_seed_file("seed-data.json", [first, second]) == second / "seed-data.json"

    def test_locate_should_use_absolute_path_as_is(self, write_seed, tmp_path) -> None:
        path = write_seed([])

        assert locate_seed_file(str(path), [tmp_path / "elsewhere"]) == path

    def test_locate_should_list_every_location_when_missing(self, tmp_path) -> None:
        first, second = tmp_path / "one", tmp_path / "two"

        with pytest.raises(InputNotFoundError) as exc_info:
            locate_seed_file("seed-data.json", [first, second])

        message = str(exc_info.value)
        assert str(first / "seed-data.json") in message
        assert str(second / "seed-data.json") in message
