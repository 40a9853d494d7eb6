"""Typed records built from MQ response bodies."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
  from .core import MQServiceError

MESSAGE_KEY = "KEYS"
START_DELIVER_TIME = "__STARTDELIVERTIME"
_FORBIDDEN_CHARS = set("'\"<>&:|")


def _int_or_none(value: Any) -> Optional[int]:
  if value in (None, ""):
    return None
  return int(value)


class MessageProperties:
  """User and system properties attached to a published message.

  Properties travel as `key:value|` pairs, so keys and values may not
  contain any of `' " < > & : |`.
  """

  def __init__(self, properties: Optional[Mapping[str, Any]] = None):
    self._properties: Dict[str, str] = {}
    for key, value in (properties or {}).items():
      self.put_property(key, value)

  def put_property(self, key: str, value: Any) -> "MessageProperties":
    key, value = str(key), str(value)
    if not key or not value:
      raise ValueError("Message property key and value must not be empty")
    if _FORBIDDEN_CHARS & set(key + value):
      raise ValueError(f"Message property '{key}' contains a reserved character")
    self._properties[key] = value
    return self

  def message_key(self, key: str) -> "MessageProperties":
    return self.put_property(MESSAGE_KEY, key)

  def start_deliver_time(self, timestamp_ms: int) -> "MessageProperties":
    """Deliver the message no earlier than `timestamp_ms` (epoch millis)."""
    return self.put_property(START_DELIVER_TIME, int(timestamp_ms))

  def as_dict(self) -> Dict[str, str]:
    return dict(self._properties)

  def serialize(self) -> str:
    return "".join(f"{key}:{value}|" for key, value in self._properties.items())

  @classmethod
  def parse(cls, raw: Optional[str]) -> Dict[str, str]:
    """Split a `key:value|` string back into a dict."""
    properties: Dict[str, str] = {}
    for pair in (raw or "").split("|"):
      if ":" not in pair:
        continue
      key, value = pair.split(":", 1)
      properties[key] = value
    return properties

  def __bool__(self) -> bool:
    return bool(self._properties)

  def __repr__(self) -> str:
    return f"MessageProperties({self._properties!r})"


@dataclass
class MQResponse:
  """Status code, request id and parsed body of one HTTP round-trip.

  `body` is None unless the service answered with a non-empty XML document.
  """
  code: int
  request_id: Optional[str]
  body: Any = None


@dataclass(frozen=True)
class PublishResult:
  message_id: str
  message_body_md5: str

  @classmethod
  def from_mapping(cls, body: Mapping[str, Any]) -> "PublishResult":
    return cls(message_id=body.get("MessageId", ""), message_body_md5=body.get("MessageBodyMD5", ""))


@dataclass(frozen=True)
class MessageRecord:
  """One consumed message."""
  message_id: str
  receipt_handle: str
  message_body: str
  message_body_md5: str = ""
  message_tag: Optional[str] = None
  publish_time: Optional[int] = None
  first_consume_time: Optional[int] = None
  next_consume_time: Optional[int] = None
  consumed_times: Optional[int] = None
  properties: Dict[str, str] = field(default_factory=dict)

  @property
  def message_key(self) -> Optional[str]:
    return self.properties.get(MESSAGE_KEY)

  @property
  def start_deliver_time(self) -> Optional[int]:
    return _int_or_none(self.properties.get(START_DELIVER_TIME))

  @classmethod
  def from_mapping(cls, body: Mapping[str, Any]) -> "MessageRecord":
    return cls(
        message_id=body.get("MessageId", ""),
        receipt_handle=body.get("ReceiptHandle", ""),
        message_body=body.get("MessageBody", ""),
        message_body_md5=body.get("MessageBodyMD5", ""),
        message_tag=body.get("MessageTag") or None,
        publish_time=_int_or_none(body.get("PublishTime")),
        first_consume_time=_int_or_none(body.get("FirstConsumeTime")),
        next_consume_time=_int_or_none(body.get("NextConsumeTime")),
        consumed_times=_int_or_none(body.get("ConsumedTimes")),
        properties=MessageProperties.parse(body.get("Properties")),
    )


@dataclass(frozen=True)
class AckError:
  """Failure to acknowledge a single receipt handle."""
  error_code: str
  error_message: str
  receipt_handle: str

  @classmethod
  def from_mapping(cls, body: Mapping[str, Any]) -> "AckError":
    return cls(
        error_code=body.get("ErrorCode", ""),
        error_message=body.get("ErrorMessage", ""),
        receipt_handle=body.get("ReceiptHandle", ""),
    )


class AckStatus(Enum):
  ALL_ACKED = "all_acked"
  PARTIALLY_FAILED = "partially_failed"
  TOTALLY_FAILED = "totally_failed"


@dataclass(frozen=True)
class AckResult:
  """Outcome of acknowledging a batch of receipt handles.

  `errors` is only set for PARTIALLY_FAILED and `fault` only for
  TOTALLY_FAILED.
  """
  status: AckStatus
  errors: List[AckError] = field(default_factory=list)
  fault: Optional["MQServiceError"] = None

  @property
  def ok(self) -> bool:
    return self.status is AckStatus.ALL_ACKED
