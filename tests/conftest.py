"""Shared fixtures for engine tests."""

import pytest

from tests.builders import build_model


@pytest.fixture
def chain_model():
    """A -> B -> C."""
    return build_model([("A", "B"), ("B", "C")])


@pytest.fixture
def combo_model():
    """Combo K = {X, Y} with an edge X -> Z leaving the combo."""
    return build_model([("X", "Z")], combos={"K": ["X", "Y"]})
