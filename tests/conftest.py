"""
Shared pytest configuration and fixtures for bayesprep tests.

This module provides common test fixtures, utilities, and configuration
used across the test suite.
"""

import pytest
import numpy as np
import pandas as pd

from bayesprep.config.settings import reset_default_config
from bayesprep.formulas import GroupEffectTerm, ResponseFrame


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Isolate tests from each other's configuration changes."""
    for var in ("BAYESPREP_LOG_LEVEL", "BAYESPREP_CHECK_RESPONSE", "BAYESPREP_EMIT_ADVISORIES"):
        monkeypatch.delenv(var, raising=False)
    reset_default_config()
    yield
    reset_default_config()


@pytest.fixture(autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)


@pytest.fixture
def count_data():
    """Twenty binomial observations with a trials column."""
    return pd.DataFrame({
        "y": [0, 3, 5, 10, 2, 7, 1, 4, 6, 8, 9, 0, 2, 3, 5, 1, 7, 4, 6, 10],
        "n": [10] * 20,
        "x": np.linspace(-1, 1, 20),
    })


@pytest.fixture
def ordinal_data():
    """Ordinal responses as an ordered factor with four levels."""
    levels = ["low", "mid", "high", "top"]
    y = pd.Categorical(
        ["low", "mid", "high", "top", "mid", "low", "top", "high"],
        categories=levels,
        ordered=True,
    )
    return pd.DataFrame({
        "y": y,
        "g": ["a", "a", "a", "a", "b", "b", "b", "b"],
    })


@pytest.fixture
def survival_data():
    """Positive survival times with a stratification factor."""
    return pd.DataFrame({
        "time": [0.5, 1.2, 2.3, 3.1, 4.8, 5.0, 6.7, 7.2, 8.9, 10.0],
        "strata": ["a", "b"] * 5,
    })


@pytest.fixture
def grouped_frame():
    """Gaussian response with missing values and one grouping factor."""
    return ResponseFrame.from_formula(
        "y | mi() ~ x + (1 | g)",
        family="gaussian",
        group_effects=[GroupEffectTerm(id=1, group="g")],
    )


# Markers for different test types
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (fast)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (medium speed)"
    )
