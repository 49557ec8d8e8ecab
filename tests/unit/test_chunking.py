"""
Unit tests for fixed-size chunking
"""

import pytest

from core.exceptions import PreconditionError
from harvest.chunking import chunkify


class TestChunkify:
    """Test chunk boundaries and preconditions"""

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 20, 50])
    def test_concatenation_restores_input(self, size):
        items = [f"id-{i % 9}" for i in range(23)]  # includes repeated ids

        chunks = chunkify(items, size)

        assert [x for chunk in chunks for x in chunk] == items
        assert all(len(chunk) == size for chunk in chunks[:-1])
        assert 1 <= len(chunks[-1]) <= size

    def test_exact_multiple_has_full_last_chunk(self):
        chunks = chunkify(list("abcdef"), 3)

        assert chunks == [["a", "b", "c"], ["d", "e", "f"]]

    def test_remainder_goes_to_last_chunk(self):
        assert chunkify(["1", "2", "3"], 2) == [["1", "2"], ["3"]]

    def test_empty_input_yields_no_chunks(self):
        assert chunkify([], 20) == []

    def test_default_size_is_twenty(self):
        chunks = chunkify(list(range(45)))

        assert [len(c) for c in chunks] == [20, 20, 5]

    @pytest.mark.parametrize("size", [0, -1, True, 2.5])
    def test_rejects_invalid_size(self, size):
        with pytest.raises(PreconditionError):
            chunkify(["a"], size)
