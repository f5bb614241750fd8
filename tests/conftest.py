from __future__ import annotations

import pytest

from protodoc.pipeline import ProtoModel, build_model
from tests._fixtures.descriptor_builder import DescriptorSetBuilder, helloworld_set


@pytest.fixture
def descriptor_builder() -> DescriptorSetBuilder:
    """Provide an empty descriptor-set builder."""
    return DescriptorSetBuilder()


@pytest.fixture
def helloworld_bytes() -> bytes:
    return helloworld_set().serialize()


@pytest.fixture
def helloworld_model(helloworld_bytes: bytes) -> ProtoModel:
    """The greeter example, fully loaded."""
    return build_model(helloworld_bytes)
