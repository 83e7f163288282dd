"""
AWS Signature Version 4 for Product Advertising API requests.

Nothing outside this module knows how a request is signed; callers build a
SignableRequest and merge the returned headers into their HTTP call.

Example:
    >>> headers = sign(
    ...     SignableRequest(host="webservices.amazon.com", body=payload),
    ...     SigningCredentials(access_key, secret_key, region="us-east-1"),
    ...     datetime.now(timezone.utc),
    ... )
"""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE_NAME = "ProductAdvertisingAPI"
SEARCH_ITEMS_PATH = "/paapi5/searchitems"
SEARCH_ITEMS_TARGET = "com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems"
CONTENT_ENCODING = "amz-1.0"
CONTENT_TYPE = "application/json; charset=UTF-8"

AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
DATE_STAMP_FORMAT = "%Y%m%d"


@dataclass(frozen=True)
class SignableRequest:
    """The parts of an HTTP request that go into the signature."""
    host: str
    body: str
    method: str = "POST"
    path: str = SEARCH_ITEMS_PATH
    target: str = SEARCH_ITEMS_TARGET


@dataclass(frozen=True)
class SigningCredentials:
    access_key: str
    secret_key: str
    region: str = "us-east-1"
    service: str = SERVICE_NAME

    def __repr__(self) -> str:
        return f"SigningCredentials(access_key={self.access_key!r}, region={self.region!r})"


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def _sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """Four chained HMAC-SHA256 steps: date, region, service, terminator."""
    k_date = _hmac(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, "aws4_request")


def canonical_headers(request: SignableRequest, amz_date: str) -> dict[str, str]:
    """Lower-cased signed headers, sorted by name."""
    headers = {
        "content-encoding": CONTENT_ENCODING,
        "content-type": CONTENT_TYPE,
        "host": request.host,
        "x-amz-date": amz_date,
        "x-amz-target": request.target,
    }
    return dict(sorted(headers.items()))


def build_canonical_request(request: SignableRequest, amz_date: str) -> tuple[str, str]:
    """
    Canonical request string and the signed-headers list.

    Layout: method, path, query string (always empty), one ``name:value`` line
    per header, a blank line, the signed header names and the payload hash.
    """
    headers = canonical_headers(request, amz_date)
    header_block = "".join(f"{name}:{value.strip()}\n" for name, value in headers.items())
    signed_headers = ";".join(headers)
    canonical = "\n".join([
        request.method,
        request.path,
        "",
        header_block,
        signed_headers,
        _sha256_hex(request.body),
    ])
    return canonical, signed_headers


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/aws4_request"


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    return "\n".join([ALGORITHM, amz_date, scope, _sha256_hex(canonical_request)])


def sign(
    request: SignableRequest,
    credentials: SigningCredentials,
    timestamp: datetime,
) -> dict[str, str]:
    """
    Headers to send with ``request``, Authorization included.

    Args:
        request: Host, path, target and exact body bytes to be sent.
        credentials: Access/secret key pair plus region and service.
        timestamp: Request time; naive values are taken as UTC.

    Returns:
        Mapping of HTTP header name to value.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    timestamp = timestamp.astimezone(timezone.utc)
    amz_date = timestamp.strftime(AMZ_DATE_FORMAT)
    date_stamp = timestamp.strftime(DATE_STAMP_FORMAT)

    canonical, signed_headers = build_canonical_request(request, amz_date)
    scope = credential_scope(date_stamp, credentials.region, credentials.service)
    string_to_sign = build_string_to_sign(amz_date, scope, canonical)

    key = derive_signing_key(
        credentials.secret_key, date_stamp, credentials.region, credentials.service
    )
    signature = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    authorization = (
        f"{ALGORITHM} Credential={credentials.access_key}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )
    return {
        "Content-Encoding": CONTENT_ENCODING,
        "Content-Type": CONTENT_TYPE,
        "Host": request.host,
        "X-Amz-Date": amz_date,
        "X-Amz-Target": request.target,
        "Authorization": authorization,
    }
