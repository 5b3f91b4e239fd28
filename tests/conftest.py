import pytest

from tests.fake.fake_handler import RecordingHandler
from tests.fake.fake_transport import FakeTransport

from gensocket.infra.json_serializer import JsonSerializer


@pytest.fixture
def serializer():
    return JsonSerializer()


@pytest.fixture
def transport(serializer):
    return FakeTransport(serializer)


@pytest.fixture
def handler():
    return RecordingHandler()
