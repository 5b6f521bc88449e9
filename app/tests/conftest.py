"""
Pytest configuration and shared fixtures for the answer-validation test suite.

This module provides:
- FastAPI test client fixtures
- Validator and service factories
- Request builders
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from main import app
from schemas.validation import SelectorConfig, ValidationRequest
from services.validation_service import ValidationService
from validation.factory import ValidatorFactory


@pytest.fixture
def sync_client() -> Generator[TestClient, None, None]:
    """Create synchronous test client for simple tests."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def service() -> ValidationService:
    """A fresh service so performance counters start at zero."""
    return ValidationService()


@pytest.fixture
def make_validator():
    """Return a helper building a validator for a shape with optional config overrides.

    Usage:
        validator = make_validator("number", tolerance=0.1)
    """
    def _factory(shape: str, **config):
        return ValidatorFactory.create(shape, SelectorConfig(**config))
    return _factory


@pytest.fixture
def make_request():
    def _builder(shape: str, correct: str, user: str, **config) -> ValidationRequest:
        return ValidationRequest(
            shape=shape,
            correct_answer=correct,
            user_answer=user,
            config=SelectorConfig(**config) if config else None,
        )
    return _builder


@pytest.fixture
def restore_registry():
    """Snapshot the factory registry and restore it after the test."""
    snapshot = dict(ValidatorFactory._validators)
    yield
    ValidatorFactory._validators.clear()
    ValidatorFactory._validators.update(snapshot)
