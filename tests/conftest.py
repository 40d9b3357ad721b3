from pathlib import Path

import pytest

from swagger_validator.schema import registry
from swagger_validator.schema.compiler import compile_documents

FIXTURES = Path(__file__).parent / "fixtures"

ALL_SPECS = [
    FIXTURES / "swagger_test_spec.json",
    FIXTURES / "swagger_test_spec_2.json",
    FIXTURES / "swagger_test_spec_3.json",
]


@pytest.fixture(autouse=True)
def _reset_registry():
    yield
    registry.reset()


@pytest.fixture
def pets_registry():
    return compile_documents(FIXTURES / "swagger_test_spec_2.json")


@pytest.fixture
def full_registry():
    return compile_documents(ALL_SPECS)


@pytest.fixture
def shapes_registry():
    return compile_documents(FIXTURES / "swagger_jsonapi_test_spec.yaml")
