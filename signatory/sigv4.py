"""
AWS Signature Version 4 signing.

See: https://docs.aws.amazon.com/general/latest/gr/sigv4_signing.html
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional, Union

import structlog

from . import canonical
from .canonical import Body, Headers
from .config import DEFAULT_SECRET_PREFIX, DerivedKey, SignerConfig
from .errors import DateScopeMismatch, MalformedInput
from .hashing import HashFamily

logger = structlog.get_logger(__name__)

Timestamp = Union[str, datetime]

_TIMESTAMP_RE = re.compile(r'[0-9]{8}T[0-9]{6}Z')

_DEFAULT_PORTS = {'http': 80, 'https': 443}


class Request(NamedTuple):
    method: str
    url: str
    headers: Headers
    body: Body = None


def format_timestamp(value: Timestamp) -> str:
    """Render ``value`` as YYYYMMDDTHHMMSSZ.

    Datetimes are assumed to already be in UTC and are not converted.
    Strings must already be in the final format.
    """
    if isinstance(value, datetime):
        # strftime('%Y') does not pad years below 1000
        return (
            f'{value.year:04d}{value.month:02d}{value.day:02d}'
            f'T{value.hour:02d}{value.minute:02d}{value.second:02d}Z'
        )
    if isinstance(value, str) and _TIMESTAMP_RE.fullmatch(value):
        return value
    raise MalformedInput(f'Invalid request timestamp: {value!r}')


def host_from_url(url: str) -> str:
    """Host header value for ``url``, omitting the scheme's default port."""
    parts = canonical.split_url(url)
    if not parts.hostname:
        raise MalformedInput(f'Cannot determine Host from URL {url!r}')
    host = parts.hostname
    if ':' in host:
        host = f'[{host}]'
    if parts.port is not None and parts.port != _DEFAULT_PORTS.get(parts.scheme):
        host = f'{host}:{parts.port}'
    return host


def string_to_sign(algorithm: str, timestamp: Timestamp, credential_scope: str, hashed_canonical_request: str) -> str:
    return '\n'.join([
        algorithm,
        format_timestamp(timestamp),
        credential_scope,
        hashed_canonical_request,
    ])


def derive_signing_key(
        secret: str,
        scope_date: str,
        region: str,
        service: str,
        termination: str,
        hash_family: HashFamily = HashFamily.SHA256,
        secret_prefix: str = DEFAULT_SECRET_PREFIX
) -> bytes:
    k_date = hash_family.hmac(secret_prefix + secret, scope_date)
    k_region = hash_family.hmac(k_date, region)
    k_service = hash_family.hmac(k_region, service)
    return hash_family.hmac(k_service, termination)


class SigV4Signer:
    """Signs requests for one credential scope.

    The signer holds nothing but its config; every intermediate value is
    computed per call, so one instance may be shared between threads.
    """

    def __init__(self, config: SignerConfig) -> None:
        self.config = config

    def credential(self) -> str:
        return self.config.credential()

    def credential_scope(self) -> str:
        return self.config.credential_scope()

    def canonical_request(self, method: str, url: str, headers: Headers, body: Body = None) -> str:
        return canonical.canonical_request(
            method,
            url,
            headers,
            body,
            hash_family=self.config.hash_family,
            encode_query=self.config.encode_query
        )

    def string_to_sign(self, timestamp: Timestamp, hashed_canonical_request: str) -> str:
        iso = self._checked_timestamp(timestamp)
        return string_to_sign(self.config.algorithm, iso, self.credential_scope(), hashed_canonical_request)

    def signing_key(self) -> bytes:
        key = self.config.key
        if isinstance(key, DerivedKey):
            return key.value
        return derive_signing_key(
            key.value,
            self.config.scope_date,
            self.config.region,
            self.config.service,
            self.config.termination,
            hash_family=self.config.hash_family,
            secret_prefix=self.config.secret_prefix
        )

    def signature(self, timestamp: Timestamp, method: str, url: str, headers: Headers, body: Body = None) -> str:
        iso = self._checked_timestamp(timestamp)
        hash_family = self.config.hash_family
        hashed_request = hash_family.hexdigest(self.canonical_request(method, url, headers, body))
        to_sign = string_to_sign(self.config.algorithm, iso, self.credential_scope(), hashed_request)
        return hash_family.hmac(self.signing_key(), to_sign).hex()

    def authorization(self, timestamp: Timestamp, method: str, url: str, headers: Headers, body: Body = None) -> str:
        signature = self.signature(timestamp, method, url, headers, body)
        params = ', '.join([
            f'Credential={self.credential()}',
            f'SignedHeaders={canonical.signed_headers(headers)}',
            f'Signature={signature}',
        ])
        logger.debug(
            'request_signed',
            method=method.upper(),
            url=url,
            credential_scope=self.credential_scope(),
            signed_headers=canonical.signed_headers(headers),
        )
        return f'{self.config.algorithm} {params}'

    def create_headers(
            self,
            method: str,
            url: str,
            headers: Optional[Headers] = None,
            body: Body = None,
            timestamp: Optional[Timestamp] = None
    ) -> Dict[str, Any]:
        """
        Return a copy of ``headers`` with everything needed to send the request.

        Host is added when missing, X-Amz-Security-Token when the config
        carries a session token, and Authorization always. X-Amz-Date is always
        set to the time the request is signed with.

        Args:
            method: HTTP method
            url: Absolute request URL
            headers: Headers to sign
            body: Request body
            timestamp: Request time; defaults to an existing X-Amz-Date header,
                then to now (UTC)

        Returns:
            New header dict including the Authorization header
        """
        signed: Dict[str, Any] = {
            name: value for name, value in (headers or {}).items() if name.lower() != 'authorization'
        }
        date_names = [name for name in signed if name.lower() == 'x-amz-date']
        if timestamp is None and date_names:
            timestamp = signed[date_names[-1]]
        iso = format_timestamp(timestamp if timestamp is not None else datetime.now(timezone.utc))
        for name in date_names:
            del signed[name]
        if 'host' not in {name.lower() for name in signed}:
            signed['Host'] = host_from_url(url)
        signed['X-Amz-Date'] = iso
        if self.config.session_token:
            signed = {name: value for name, value in signed.items() if name.lower() != 'x-amz-security-token'}
            signed['X-Amz-Security-Token'] = self.config.session_token
        signed['Authorization'] = self.authorization(iso, method, url, signed, body)
        return signed

    def _checked_timestamp(self, timestamp: Timestamp) -> str:
        iso = format_timestamp(timestamp)
        if iso[:8] != self.config.scope_date:
            logger.warning('date_scope_mismatch', timestamp=iso, scope_date=self.config.scope_date)
            raise DateScopeMismatch(iso, self.config.scope_date)
        return iso


def signature(config: SignerConfig, timestamp: Timestamp, request: Request) -> str:
    return SigV4Signer(config).signature(timestamp, *request)


def authorization(config: SignerConfig, timestamp: Timestamp, request: Request) -> str:
    return SigV4Signer(config).authorization(timestamp, *request)
