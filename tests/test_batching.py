"""Unit tests for snapshot batching."""

import math

import pytest

from hookrelay.exceptions import DispatchEngineError
from hookrelay.webhooks import DEFAULT_BATCH_SIZE, batched


class TestBatched:
    """Tests for batched()."""

    @pytest.mark.parametrize(
        ("count", "size"),
        [(0, 10), (1, 10), (4, 10), (10, 10), (12, 10), (25, 7), (5, 1), (3, 5)],
    )
    def test_partition_properties(self, count, size):
        """ceil(N/B) batches, each <= B, concatenating to the input order."""
        items = list(range(count))
        batches = list(batched(items, size))

        assert len(batches) == math.ceil(count / size)
        assert all(1 <= len(b) <= size for b in batches)
        assert [x for b in batches for x in b] == items

    def test_twelve_targets_make_ten_plus_two(self):
        """12 items with batch size 10 split into 10 + 2."""
        batches = list(batched(range(12), 10))
        assert [len(b) for b in batches] == [10, 2]

    def test_default_batch_size(self):
        """Default batch size is 10."""
        assert DEFAULT_BATCH_SIZE == 10
        assert [len(b) for b in batched(range(21))] == [10, 10, 1]

    def test_is_lazy(self):
        """Batches are produced on demand from the source iterator."""
        consumed = []

        def source():
            for i in range(100):
                consumed.append(i)
                yield i

        batches = batched(source(), 10)
        first = next(batches)

        assert first == list(range(10))
        assert len(consumed) <= 11

    @pytest.mark.parametrize("size", [0, -1, -10])
    def test_rejects_batch_size_below_one(self, size):
        """batch_size < 1 is rejected at call time, before any iteration."""
        with pytest.raises(DispatchEngineError, match="batch_size"):
            batched([1, 2, 3], size)

    @pytest.mark.parametrize("size", [2.5, "3", True])
    def test_rejects_non_integer_batch_size(self, size):
        """Only real integers are accepted."""
        with pytest.raises(DispatchEngineError):
            batched([1, 2, 3], size)
