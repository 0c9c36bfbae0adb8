import pytest

from sqtp.client import SQTPClient
from sqtp.models.messages import RawResponse

BASE = "http://db.test/db/main"


class RecordingTransport:
    """Stands in for the network: records what was sent, replays canned responses."""

    def __init__(self, responses=None):
        self.sent = []
        self.responses = list(responses or [])

    def send(self, request, url, deadline):
        self.sent.append((request, url, deadline))
        if self.responses:
            r = self.responses.pop(0)
            if isinstance(r, Exception):
                raise r
            return r
        return RawResponse(
            status=200,
            headers={"content-type": "application/json"},
            body=b"[]",
        )

    @property
    def last(self):
        return self.sent[-1][0]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(transport):
    return SQTPClient(BASE + "/", transport=transport)
