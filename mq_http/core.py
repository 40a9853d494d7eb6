import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Iterable, List, Mapping, Optional, Union
from urllib.parse import quote

import httpx

from . import codec
from .auth import build_headers
from .models import (AckError, AckResult, AckStatus, MessageProperties, MessageRecord, MQResponse,
                     PublishResult)

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
# Consume requests may be held open server-side for up to `waitseconds`
LONG_POLL_TIMEOUT = 33.0
LONG_POLL_MARGIN = 3.0

XML_CONTENT_TYPES = ("text/xml", "application/xml")


class MQError(Exception):
  """Base class for errors raised by mq_http."""


class MQConfigurationError(MQError):
  """Exception raised when the client is missing a required parameter."""

  def __init__(self, parameter: str, message: Optional[str] = None):
    self.parameter = parameter
    self.message = message or f"'{parameter}' must be provided"
    super().__init__(self.message)


class MQServiceError(MQError):
  """Exception raised when the service answers with an Error document."""

  def __init__(self, code: str, message: str, request_id: Optional[str] = None, host_id: Optional[str] = None):
    self.code = code
    self.message = message
    self.request_id = request_id
    self.host_id = host_id
    super().__init__(f"{code}: {message}")

  @classmethod
  def from_mapping(cls, error: Mapping[str, Any]) -> "MQServiceError":
    return cls(
        code=error.get("Code", ""),
        message=error.get("Message", ""),
        request_id=error.get("RequestId"),
        host_id=error.get("HostId"),
    )

  def __repr__(self) -> str:
    return (f"MQServiceError(code={self.code!r}, message={self.message!r}, "
            f"request_id={self.request_id!r}, host_id={self.host_id!r})")


def _is_xml(content_type: str) -> bool:
  return content_type.lower().startswith(XML_CONTENT_TYPES)


class MQClient:
  """Signs and sends requests to one MQ HTTP endpoint.

  Every call is a single round-trip; the client keeps no state between calls
  apart from its credentials and the underlying httpx client.
  """

  def __init__(self, endpoint: str, access_key_id: str, access_key_secret: str,
               security_token: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT,
               transport: Optional[httpx.BaseTransport] = None, clock: Callable[[], float] = time.time):
    if not endpoint:
      raise MQConfigurationError("endpoint")
    if not access_key_id:
      raise MQConfigurationError("access_key_id")
    if not access_key_secret:
      raise MQConfigurationError("access_key_secret")
    self.endpoint = endpoint.rstrip("/")
    self.access_key_id = access_key_id
    self.access_key_secret = access_key_secret
    self.security_token = security_token
    self.timeout = timeout
    self.clock = clock
    self._http = httpx.Client(timeout=timeout, transport=transport)

  def __enter__(self) -> "MQClient":
    return self

  def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    self.close()

  def close(self) -> None:
    """Close the underlying HTTP client."""
    self._http.close()

  def build_headers(self, method: str, body: bytes, resource: str,
                    extra_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    return build_headers(method, body, resource, self.access_key_id, self.access_key_secret,
                         security_token=self.security_token, now=self.clock(), extra_headers=extra_headers)

  def request(self, method: str, resource: str, result_element: str, body: bytes = b"",
              timeout: Optional[float] = None, headers: Optional[Mapping[str, str]] = None) -> MQResponse:
    """Send one signed request and parse the XML answer.

    Raises MQServiceError when the answer is an Error document. Otherwise the
    `result_element` element is flattened into the response body; non-XML or
    empty answers leave the body as None. Extra `headers` are signed along
    with the standard ones.
    """
    method = method.upper()
    headers = self.build_headers(method, body, resource, extra_headers=headers)
    url = f"{self.endpoint}{resource}"
    log.debug(f"{method} {url}")
    response = self._http.request(
        method,
        url,
        headers=headers,
        content=body or None,
        timeout=timeout if timeout is not None else self.timeout,
    )
    code = response.status_code
    request_id = response.headers.get("x-mq-request-id")
    content_type = response.headers.get("content-type", "")
    log.debug(f"{method} {url} -> {code} (request id {request_id})")

    result = MQResponse(code=code, request_id=request_id)
    if not response.content or not _is_xml(content_type):
      return result

    root = codec.parse(response.content)
    if codec.local_name(root.tag) == "Error":
      error = MQServiceError.from_mapping(codec.element_to_mapping(root))
      log.debug(f"Service error {error.code} for {method} {url}: {error.message}")
      raise error
    element = codec.find_element(root, result_element)
    if element is None:
      log.debug(f"No '{result_element}' element in response to {method} {url}")
      return result
    result.body = codec.element_to_mapping(element)
    return result

  def get(self, resource: str, result_element: str, timeout: Optional[float] = None,
          headers: Optional[Mapping[str, str]] = None) -> MQResponse:
    return self.request("GET", resource, result_element, b"", timeout=timeout, headers=headers)

  def post(self, resource: str, result_element: str, body: bytes, timeout: Optional[float] = None,
           headers: Optional[Mapping[str, str]] = None) -> MQResponse:
    return self.request("POST", resource, result_element, body, timeout=timeout, headers=headers)

  def delete(self, resource: str, result_element: str, body: bytes, timeout: Optional[float] = None,
             headers: Optional[Mapping[str, str]] = None) -> MQResponse:
    return self.request("DELETE", resource, result_element, body, timeout=timeout, headers=headers)

  def get_producer(self, instance_id: Optional[str], topic: str) -> "MQProducer":
    return MQProducer(self, instance_id, topic)

  def get_consumer(self, instance_id: Optional[str], topic: str, consumer: str,
                   message_tag: Optional[str] = None) -> "MQConsumer":
    return MQConsumer(self, instance_id, topic, consumer, message_tag)


def _messages_resource(topic: str, params: List[tuple]) -> str:
  query = "&".join(f"{key}={quote(str(value), safe='')}" for key, value in params if value is not None)
  resource = f"/topics/{quote(topic, safe='')}/messages"
  return f"{resource}?{query}" if query else resource


class MQProducer:
  """Publishes messages to one topic."""

  def __init__(self, client: MQClient, instance_id: Optional[str], topic: str):
    if not topic:
      raise ValueError("topic must not be empty")
    self.client = client
    self.instance_id = instance_id or None
    self.topic = topic

  def publish_message(self, body: str, tag: Optional[str] = None,
                      properties: Union[MessageProperties, Mapping[str, Any], None] = None) -> MQResponse:
    """Publish one message; the response body holds MessageId and MessageBodyMD5."""
    if properties is not None and not isinstance(properties, MessageProperties):
      properties = MessageProperties(properties)
    document = codec.to_xml("Message", {
        "MessageBody": body,
        "MessageTag": tag or None,
        "Properties": properties.serialize() if properties else None,
    })
    resource = _messages_resource(self.topic, [("ns", self.instance_id)])
    response = self.client.post(resource, "Message", document)
    message_id = response.body.get("MessageId") if response.body else None
    log.info(f"Published to '{self.topic}': message id {message_id}")
    return response

  def publish(self, body: str, tag: Optional[str] = None,
              properties: Union[MessageProperties, Mapping[str, Any], None] = None) -> PublishResult:
    return PublishResult.from_mapping(self.publish_message(body, tag, properties).body or {})


class MQConsumer:
  """Pulls and acknowledges messages for one topic/consumer pairing.

  `message_tag` filters consumed messages server-side when set.
  """

  def __init__(self, client: MQClient, instance_id: Optional[str], topic: str, consumer: str,
               message_tag: Optional[str] = None):
    if not topic:
      raise ValueError("topic must not be empty")
    if not consumer:
      raise ValueError("consumer must not be empty")
    self.client = client
    self.instance_id = instance_id or None
    self.topic = topic
    self.consumer = consumer
    self.message_tag = message_tag or None

  def consume_message(self, num_of_messages: int, wait_seconds: Optional[int] = None) -> MQResponse:
    """Pull up to `num_of_messages` messages, long-polling for `wait_seconds`.

    The response body is the list of message mappings, empty when nothing
    was ready in time.
    """
    if num_of_messages < 1:
      raise ValueError(f"num_of_messages must be positive, got {num_of_messages}")
    resource = _messages_resource(self.topic, [
        ("consumer", self.consumer),
        ("ns", self.instance_id),
        ("tag", self.message_tag),
        ("numOfMessages", num_of_messages),
        ("waitseconds", wait_seconds),
    ])
    timeout = LONG_POLL_TIMEOUT
    if wait_seconds is not None:
      timeout = max(timeout, wait_seconds + LONG_POLL_MARGIN)
    response = self.client.get(resource, "Messages", timeout=timeout)
    if response.body is not None:
      response.body = codec.as_list(response.body.get("Message"))
      log.info(f"Consumed {len(response.body)} message(s) from '{self.topic}' as '{self.consumer}'")
    return response

  def consume(self, num_of_messages: int, wait_seconds: Optional[int] = None) -> List[MessageRecord]:
    response = self.consume_message(num_of_messages, wait_seconds)
    return [MessageRecord.from_mapping(message) for message in response.body or []]

  def ack_message(self, receipt_handles: Iterable[str]) -> MQResponse:
    """Acknowledge consumed messages by receipt handle.

    A body of None means every handle was acknowledged. A list body holds
    the per-handle failures of a partially failed acknowledgment. A request
    the service rejects as a whole raises MQServiceError.
    """
    handles = list(receipt_handles)
    if not handles:
      raise ValueError("receipt_handles must not be empty")
    document = codec.list_to_xml("ReceiptHandles", handles, "ReceiptHandle")
    resource = _messages_resource(self.topic, [("consumer", self.consumer), ("ns", self.instance_id)])
    response = self.client.delete(resource, "Errors", document)
    if response.body is not None:
      response.body = codec.as_list(response.body.get("Error")) or None
    if response.body:
      log.warning(f"Ack on '{self.topic}' failed for {len(response.body)}/{len(handles)} handle(s)")
    else:
      log.info(f"Acked {len(handles)} message(s) on '{self.topic}'")
    return response

  def ack(self, receipt_handles: Iterable[str]) -> AckResult:
    """Acknowledge messages and classify the outcome instead of raising."""
    try:
      response = self.ack_message(receipt_handles)
    except MQServiceError as e:
      log.error(f"Ack on '{self.topic}' rejected: {e}")
      return AckResult(AckStatus.TOTALLY_FAILED, fault=e)
    if response.body:
      return AckResult(AckStatus.PARTIALLY_FAILED, errors=[AckError.from_mapping(error) for error in response.body])
    return AckResult(AckStatus.ALL_ACKED)


@contextmanager
def mq_client(endpoint: str, access_key_id: str, access_key_secret: str,
              security_token: Optional[str] = None, **kwargs: Any) -> Generator[MQClient, None, None]:
  """Context manager for an MQ client."""
  client = MQClient(endpoint, access_key_id, access_key_secret, security_token, **kwargs)
  with client as c:
    yield c
