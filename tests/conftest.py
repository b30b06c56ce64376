import pytest


@pytest.fixture
def anyio_backend():
    # periodic tasks are built on asyncio primitives
    return "asyncio"
