"""
Canonical request construction.

The canonical form reproduces the request byte for byte: the path is taken
verbatim and decoded query values are not re-encoded unless ``encode_query``
is set.
"""

from typing import Any, List, Mapping, Optional, Tuple, Union
from urllib.parse import SplitResult, parse_qsl, quote, urlsplit

import structlog

from .errors import MalformedInput
from .hashing import HashFamily

logger = structlog.get_logger(__name__)

Headers = Mapping[str, Any]
Body = Optional[Union[str, bytes]]


def split_url(url: str) -> SplitResult:
    if not isinstance(url, str):
        raise MalformedInput(f'URL must be a string, got {type(url).__name__}')
    try:
        parts = urlsplit(url)
        # port is parsed lazily, force it so a bad port fails here
        parts.port
    except ValueError as e:
        raise MalformedInput(f'Invalid URL {url!r}: {e}') from None
    return parts


def _uri_encode(value: str) -> str:
    return quote(value, safe='-_.~')


def canonical_uri(url: str) -> str:
    parts = split_url(url)
    if not parts.path and parts.netloc:
        return '/'
    return parts.path


def canonical_query_string(url: str, encode_query: bool = False) -> str:
    """Build the canonical query string for ``url``.

    Pairs are decoded and sorted by key alone, keeping the original order of
    repeated keys. With ``encode_query`` keys and values are percent-encoded
    and repeated keys are ordered by value as well.
    """
    query = split_url(url).query
    if not query:
        return ''
    pairs: List[Tuple[str, str]] = parse_qsl(query, keep_blank_values=True)
    if encode_query:
        pairs = sorted((_uri_encode(k), _uri_encode(v)) for k, v in pairs)
    else:
        pairs = sorted(pairs, key=lambda pair: pair[0])
    return '&'.join(f'{k}={v}' for k, v in pairs)


def _header_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ','.join(str(item) for item in value)
    return str(value)


def _lowered(headers: Headers) -> List[Tuple[str, str]]:
    return sorted(
        ((name.lower(), _header_value(value)) for name, value in headers.items()),
        key=lambda item: item[0]
    )


def canonical_headers(headers: Headers) -> str:
    return ''.join(f'{name}:{value}\n' for name, value in _lowered(headers))


def signed_headers(headers: Headers) -> str:
    return ';'.join(name for name, _ in _lowered(headers))


def hash_payload(body: Body, hash_family: HashFamily = HashFamily.SHA256) -> str:
    return hash_family.hexdigest(body or b'')


def canonical_request(
        method: str,
        url: str,
        headers: Headers,
        body: Body = None,
        hash_family: HashFamily = HashFamily.SHA256,
        encode_query: bool = False
) -> str:
    request = '\n'.join([
        method.upper(),
        canonical_uri(url),
        canonical_query_string(url, encode_query),
        canonical_headers(headers),
        signed_headers(headers),
        hash_payload(body, hash_family),
    ])
    logger.debug('canonical_request_built', method=method.upper(), url=url, signed_headers=signed_headers(headers))
    return request
