"""Tests for swaggen.projections -- tag/path filters, schema filters, grouping."""

from __future__ import annotations

import pytest

from swaggen.models import GroupBy, HTTPMethod, Operation
from swaggen.projections import (
    filter_operations_by_path_prefix,
    filter_operations_by_tag,
    filter_operations_by_tags,
    filter_schemas,
    group_operations,
)


def _op(operation_id: str, path: str, tags: list[str] | None = None) -> Operation:
    return Operation(operation_id=operation_id, method=HTTPMethod.GET, path=path, tags=tags or [])


@pytest.fixture
def operations() -> list[Operation]:
    return [
        _op("listPets", "/pets", ["pets"]),
        _op("deletePet", "/pets/{petId}", ["pets", "admin"]),
        _op("listOrders", "/store/orders", ["store"]),
        _op("health", "/health"),
        _op("root", "/"),
    ]


def _ids(operations: list[Operation]) -> list[str]:
    return [op.operation_id for op in operations]


class TestTagFilters:
    def test_include_keeps_any_matching_tag(self, operations) -> None:
        assert _ids(filter_operations_by_tags(operations, include_tags=["admin", "store"])) == [
            "deletePet",
            "listOrders",
        ]

    def test_exclude_drops_any_matching_tag(self, operations) -> None:
        assert _ids(filter_operations_by_tags(operations, exclude_tags=["pets"])) == [
            "listOrders",
            "health",
            "root",
        ]

    def test_include_wins_over_exclude(self, operations) -> None:
        result = filter_operations_by_tags(operations, include_tags=["pets"], exclude_tags=["pets"])
        assert _ids(result) == ["listPets", "deletePet"]

    def test_no_lists_returns_everything(self, operations) -> None:
        assert len(filter_operations_by_tags(operations, [], [])) == len(operations)

    def test_single_tag(self, operations) -> None:
        assert _ids(filter_operations_by_tag(operations, "admin")) == ["deletePet"]


class TestPathPrefix:
    def test_prefix_match(self, operations) -> None:
        assert _ids(filter_operations_by_path_prefix(operations, "/pets")) == [
            "listPets",
            "deletePet",
        ]

    def test_no_match(self, operations) -> None:
        assert filter_operations_by_path_prefix(operations, "/users") == []


class TestFilterSchemas:
    SCHEMAS = {"Pet": {}, "Order": {}, "Owner": {}}

    def test_include_preserves_include_order(self) -> None:
        assert list(filter_schemas(self.SCHEMAS, include=["Owner", "Pet", "Missing"])) == [
            "Owner",
            "Pet",
        ]

    def test_exclude(self) -> None:
        assert list(filter_schemas(self.SCHEMAS, exclude=["Order"])) == ["Pet", "Owner"]

    def test_returns_copy(self) -> None:
        result = filter_schemas(self.SCHEMAS)
        result["New"] = {}
        assert "New" not in self.SCHEMAS


class TestGroupOperations:
    def test_by_tag_repeats_multi_tag_operations(self, operations) -> None:
        groups = group_operations(operations, GroupBy.TAG)
        assert list(groups) == ["pets", "admin", "store", "default"]
        assert _ids(groups["admin"]) == ["deletePet"]
        assert _ids(groups["default"]) == ["health", "root"]

    def test_by_path_uses_first_segment(self, operations) -> None:
        groups = group_operations(operations, GroupBy.PATH)
        assert list(groups) == ["pets", "store", "health", "default"]
        assert _ids(groups["pets"]) == ["listPets", "deletePet"]

    def test_none_is_single_group(self, operations) -> None:
        groups = group_operations(operations, GroupBy.NONE)
        assert list(groups) == ["api"]
        assert len(groups["api"]) == 5
