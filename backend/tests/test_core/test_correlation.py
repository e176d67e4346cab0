"""Tests for correlation ID generation and context management."""

import re

import pytest

from core.correlation import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id function."""

    def test_returns_8_hex_characters(self) -> None:
        assert re.match(r"^[0-9a-f]{8}$", generate_correlation_id())

    def test_generates_unique_ids(self) -> None:
        """Each call should generate a unique ID."""
        ids = {generate_correlation_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestResolveCorrelationId:
    """Tests for reuse of caller-supplied IDs."""

    @pytest.mark.parametrize("incoming", ["abc12345", "req-42", "A_b-C", "x" * 64])
    def test_well_formed_id_reused(self, incoming: str) -> None:
        assert resolve_correlation_id(incoming) == incoming

    @pytest.mark.parametrize(
        "incoming",
        [None, "", "has space", "line\r\nbreak", "x" * 65, "<script>", "a;b"],
    )
    def test_unsafe_id_replaced(self, incoming) -> None:
        """IDs are echoed into a response header, so odd values are dropped."""
        resolved = resolve_correlation_id(incoming)
        assert resolved != incoming
        assert len(resolved) == 8


class TestCorrelationIdContext:
    """Tests for correlation ID context management."""

    def test_set_and_get_correlation_id(self) -> None:
        set_correlation_id("abc12345")
        assert get_correlation_id() == "abc12345"

    def test_get_returns_empty_string_when_not_set(self) -> None:
        correlation_id_var.set("")
        assert get_correlation_id() == ""

    def test_correlation_id_can_be_overwritten(self) -> None:
        set_correlation_id("first_id")
        set_correlation_id("second_id")
        assert get_correlation_id() == "second_id"
