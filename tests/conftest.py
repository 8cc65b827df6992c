"""Shared pytest fixtures for the layout and import tests."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence, Tuple

import pytest

from barplot_studio.data_model import ChartState, DataItem, StyleConfig, create_item


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast, pure tests with no external services")


def _make_items(values: Sequence[float], **changes) -> Tuple[DataItem, ...]:
    return tuple(replace(create_item(i), value=float(v), **changes) for i, v in enumerate(values))


@pytest.fixture
def make_items():
    """Build items with the given values (and any shared field overrides)."""

    return _make_items


@pytest.fixture
def items() -> Tuple[DataItem, ...]:
    """Four bars with mixed magnitudes."""

    return _make_items([12, 5, 30, 18])


@pytest.fixture
def state(items) -> ChartState:
    return ChartState(items=items, style=StyleConfig())


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "state.json"
