"""Shared pytest fixtures for the checkout terminal tests."""

from __future__ import annotations

import os

# Keep test runs from writing a log file into the working tree.
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from checkout.models import Product


@pytest.fixture
def tea() -> Product:
    return Product(prd_id=1, code="4901234567894", name="Tea", price=150)


@pytest.fixture
def bread() -> Product:
    return Product(prd_id=2, code="4900000000017", name="Bread", price=105)
