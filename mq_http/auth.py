"""Request signing for the MQ HTTP protocol."""
import base64
import hashlib
import hmac
from email.utils import formatdate
from typing import Dict, Mapping, Optional

MQ_VERSION = "2015-06-06"
CONTENT_TYPE = "text/xml;charset=utf-8"
USER_AGENT = "mq-http-python/0.1.0"
AUTH_SCHEME = "MQ"
MQ_HEADER_PREFIX = "x-mq-"


def canonicalize_headers(headers: Dict[str, str]) -> str:
  """Render the x-mq-* headers as sorted `key:value` lines."""
  mq_headers = {}
  for key, value in headers.items():
    name = key.lower().strip()
    if name.startswith(MQ_HEADER_PREFIX):
      mq_headers[name] = str(value).strip()
  return "".join(f"{name}:{mq_headers[name]}\n" for name in sorted(mq_headers))


def string_to_sign(method: str, headers: Dict[str, str], resource: str) -> str:
  md5 = headers.get("content-md5", "")
  content_type = headers.get("content-type", "")
  date = headers["date"]
  return f"{method.upper()}\n{md5}\n{content_type}\n{date}\n{canonicalize_headers(headers)}{resource}"


def sign(method: str, headers: Dict[str, str], resource: str, access_key_secret: str) -> str:
  """Sign a request with HMAC-SHA1 and return the base64 signature.

  `headers` must already hold `date` and `content-type`, plus `content-md5`
  when the request carries a body. The service only accepts SHA-1 for this
  protocol version.
  """
  digest = hmac.new(
      access_key_secret.encode("utf-8"),
      string_to_sign(method, headers, resource).encode("utf-8"),
      hashlib.sha1,
  ).digest()
  return base64.b64encode(digest).decode("ascii")


def content_md5(body: bytes) -> str:
  return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")


def http_date(now: Optional[float] = None) -> str:
  """Format a timestamp as an RFC 1123 GMT date."""
  return formatdate(now, usegmt=True)


def build_headers(method: str, body: bytes, resource: str, access_key_id: str, access_key_secret: str,
                  security_token: Optional[str] = None, now: Optional[float] = None,
                  extra_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
  """Build the full set of signed headers for one request.

  `extra_headers` are merged in before signing, so x-mq-* extras are signed too.
  """
  method = method.upper()
  headers = {
      "date": http_date(now),
      "x-mq-version": MQ_VERSION,
      "content-type": CONTENT_TYPE,
      "user-agent": USER_AGENT,
  }
  for key, value in (extra_headers or {}).items():
    headers[key.lower()] = str(value)
  if method not in ("GET", "HEAD"):
    body = body or b""
    headers["content-length"] = str(len(body))
    headers["content-md5"] = content_md5(body)
  signature = sign(method, headers, resource, access_key_secret)
  headers["authorization"] = f"{AUTH_SCHEME} {access_key_id}:{signature}"
  if security_token:
    headers["security-token"] = security_token
  return headers
