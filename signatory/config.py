"""
Signer configuration.

A SignerConfig is built once, validated up front, and then shared read-only
across any number of signing calls.
"""

import binascii
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import structlog

from .errors import ConfigurationError
from .hashing import HashFamily

logger = structlog.get_logger(__name__)

DEFAULT_ALGORITHM = 'AWS4-HMAC-SHA256'
DEFAULT_TERMINATION = 'aws4_request'
DEFAULT_SECRET_PREFIX = 'AWS4'

_SCOPE_DATE_RE = re.compile(r'[0-9]{8}')


class Service(str, Enum):
    S3 = 's3'
    DYNAMODB = 'dynamodb'
    LAMBDA = 'lambda'
    IAM = 'iam'
    STS = 'sts'
    EC2 = 'ec2'
    EXECUTE_API = 'execute-api'


@dataclass(frozen=True)
class Secret:
    """Raw secret access key; the signing key is derived from it on every call."""

    value: str = field(repr=False)


@dataclass(frozen=True)
class DerivedKey:
    """Signing key derived ahead of time for the same scope the config uses."""

    value: bytes = field(repr=False)

    @classmethod
    def from_hex(cls, text: str) -> 'DerivedKey':
        try:
            return cls(binascii.unhexlify(text))
        except (binascii.Error, ValueError):
            raise ConfigurationError('derived key must be a hex string') from None


KeyMaterial = Union[Secret, DerivedKey]


def _fail(message: str, **context) -> ConfigurationError:
    logger.warning('invalid_signer_config', error=message, **context)
    return ConfigurationError(message)


def key_material(secret: Optional[str] = None, derived_key: Optional[Union[str, bytes]] = None) -> KeyMaterial:
    """Pick the key material from exactly one of ``secret`` or ``derived_key``.

    ``derived_key`` may be raw bytes or a hex string.
    """
    if secret and derived_key:
        raise _fail('Only one of secret or derived_key may be given')
    if secret:
        return Secret(secret)
    if derived_key:
        if isinstance(derived_key, bytes):
            return DerivedKey(derived_key)
        return DerivedKey.from_hex(derived_key)
    raise _fail('Either secret or derived_key is required')


@dataclass(frozen=True)
class SignerConfig:
    """Immutable configuration for SigV4 signing.

    Attributes:
        access_key_id: Access key ID placed in the Credential field
        scope_date: Credential scope date, YYYYMMDD
        region: Credential scope region
        service: Credential scope service
        key: Secret or pre-derived signing key
        termination: Final credential scope token
        algorithm: Algorithm identifier, e.g. AWS4-HMAC-SHA256
        secret_prefix: Prepended to the secret for the first derivation step
        session_token: Sent as X-Amz-Security-Token by create_headers
        encode_query: Percent-encode the canonical query string and sort
            repeated keys by value
    """

    access_key_id: str
    scope_date: str
    region: str
    service: str
    key: KeyMaterial
    termination: str = DEFAULT_TERMINATION
    algorithm: str = DEFAULT_ALGORITHM
    secret_prefix: str = DEFAULT_SECRET_PREFIX
    session_token: Optional[str] = field(default=None, repr=False)
    encode_query: bool = False
    hash_family: HashFamily = field(init=False)

    def __post_init__(self) -> None:
        if isinstance(self.service, Service):
            object.__setattr__(self, 'service', self.service.value)
        if not isinstance(self.key, (Secret, DerivedKey)):
            raise _fail('Either secret or derived_key is required')
        for name in ('access_key_id', 'region', 'service', 'termination'):
            if not getattr(self, name):
                raise _fail(f'{name} is required', field=name)
        if not self.scope_date or not _SCOPE_DATE_RE.fullmatch(self.scope_date):
            raise _fail(f'Invalid scope date: {self.scope_date!r}', field='scope_date')
        try:
            hash_family = HashFamily.from_algorithm(self.algorithm)
        except ConfigurationError as e:
            raise _fail(str(e), field='algorithm') from None
        object.__setattr__(self, 'hash_family', hash_family)

    @classmethod
    def create(
            cls,
            access_key_id: str,
            scope_date: str,
            region: str,
            service: Union[str, Service],
            secret: Optional[str] = None,
            derived_key: Optional[Union[str, bytes]] = None,
            **options
    ) -> 'SignerConfig':
        return cls(
            access_key_id=access_key_id,
            scope_date=scope_date,
            region=region,
            service=service,
            key=key_material(secret, derived_key),
            **options
        )

    @classmethod
    def from_credential(
            cls,
            credential: str,
            secret: Optional[str] = None,
            derived_key: Optional[Union[str, bytes]] = None,
            **options
    ) -> 'SignerConfig':
        """Build a config from ``accessKeyID/date/region/service/termination``."""
        if not credential:
            raise _fail('credential is required')
        parts = credential.split('/')
        if len(parts) != 5:
            raise _fail('Invalid credential', segments=len(parts))
        access_key_id, scope_date, region, service, termination = parts
        return cls(
            access_key_id=access_key_id,
            scope_date=scope_date,
            region=region,
            service=service,
            termination=termination,
            key=key_material(secret, derived_key),
            **options
        )

    def credential_scope(self) -> str:
        return '/'.join([self.scope_date, self.region, self.service, self.termination])

    def credential(self) -> str:
        return f'{self.access_key_id}/{self.credential_scope()}'
