import pytest

from core.utils.chunking import chunked


def test_chunks_preserve_order_and_remainder() -> None:
    assert list(chunked(list(range(7)), 3)) == [[0, 1, 2], [3, 4, 5], [6]]


def test_empty_input_yields_nothing() -> None:
    assert list(chunked([], 5)) == []


def test_invalid_size() -> None:
    with pytest.raises(ValueError):
        list(chunked([1], 0))
