"""Test configuration and fixtures for mq_http tests."""
import httpx
import pytest

from mq_http.core import MQClient

# Sun, 18 Oct 2026 12:00:00 GMT
FIXED_NOW = 1792324800.0


def xml_response(status_code: int, body: str, request_id: str = "req-1") -> httpx.Response:
  """Build an XML response the way the service sends them."""
  return httpx.Response(
      status_code,
      headers={"content-type": "text/xml;charset=utf-8", "x-mq-request-id": request_id},
      content=body.encode("utf-8"),
  )


def empty_response(status_code: int = 204, request_id: str = "req-1") -> httpx.Response:
  return httpx.Response(status_code, headers={"x-mq-request-id": request_id})


@pytest.fixture
def endpoint():
  """Standard endpoint for testing."""
  return "http://mq.example.com"


@pytest.fixture
def access_key_id():
  return "test-key-id"


@pytest.fixture
def access_key_secret():
  return "test-key-secret"


@pytest.fixture
def topic():
  """Standard topic name for testing."""
  return "test_topic"


@pytest.fixture
def consumer_name():
  """Standard consumer name for testing."""
  return "test_consumer"


@pytest.fixture
def requests_seen():
  """Requests captured by the mocked transport."""
  return []


@pytest.fixture
def make_client(endpoint, access_key_id, access_key_secret, requests_seen):
  """Build an MQClient whose transport answers with `handler`."""
  clients = []

  def _make(handler, security_token=None):
    def _handle(request):
      requests_seen.append(request)
      return handler(request)
    client = MQClient(endpoint, access_key_id, access_key_secret, security_token,
                      transport=httpx.MockTransport(_handle), clock=lambda: FIXED_NOW)
    clients.append(client)
    return client

  yield _make
  for client in clients:
    client.close()
