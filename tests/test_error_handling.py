"""Tests for retry and error description helpers."""

import pytest
from sqlalchemy.exc import OperationalError

from eventlog.core.error_handling import describe_error, with_retry


@pytest.mark.asyncio
async def test_transient_database_errors_are_retried():
    calls = []

    @with_retry(max_attempts=2, min_wait=0, max_wait=1)
    async def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise OperationalError("INSERT", {}, Exception("connection reset"))
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    calls = []

    @with_retry(max_attempts=3)
    async def broken():
        calls.append(1)
        raise ValueError("bad payload")

    with pytest.raises(ValueError):
        await broken()

    assert len(calls) == 1


def test_describe_error():
    assert describe_error(RuntimeError("disk full")) == "disk full"
    assert describe_error(RuntimeError()) == "Unknown error"
