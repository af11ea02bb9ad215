"""Tests for BatchResult skip-and-continue folding."""

import pytest

from univsrg.core.batch import BatchResult


def _half(value):
    if value % 2:
        raise ValueError("odd: {}".format(value))
    return value // 2


def test_run_collects_successes_and_failures_in_order():
    result = BatchResult.run([2, 3, 4, 5], _half, (ValueError,))
    assert result.succeeded == [1, 2]
    assert [item for item, _ in result.failed] == [3, 5]
    assert isinstance(result.failed[0][1], ValueError)
    assert not result.ok


def test_unlisted_errors_propagate():
    with pytest.raises(ValueError):
        BatchResult.run([1], _half, (OSError,))


def test_empty_input_is_ok():
    assert BatchResult.run([], _half, (ValueError,)).ok
