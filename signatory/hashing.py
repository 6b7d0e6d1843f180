import hashlib
import hmac
from enum import Enum
from typing import Union

from .errors import ConfigurationError

Data = Union[str, bytes]


def _to_bytes(data: Data) -> bytes:
    return data.encode('utf-8') if isinstance(data, str) else data


class HashFamily(Enum):
    """Hash used for payload digests and every HMAC in the signing chain."""

    SHA256 = 'sha256'
    SHA512 = 'sha512'

    @classmethod
    def from_algorithm(cls, algorithm: str) -> 'HashFamily':
        """Resolve the trailing token of an identifier such as ``AWS4-HMAC-SHA256``."""
        if not algorithm:
            raise ConfigurationError('algorithm is required')
        suffix = algorithm.rsplit('-', 1)[-1].lower()
        try:
            return cls(suffix)
        except ValueError:
            raise ConfigurationError(f'Unsupported algorithm: {algorithm}') from None

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.value).digest_size

    def digest(self, data: Data) -> bytes:
        return hashlib.new(self.value, _to_bytes(data)).digest()

    def hexdigest(self, data: Data) -> str:
        return hashlib.new(self.value, _to_bytes(data)).hexdigest()

    def hmac(self, key: Data, message: Data) -> bytes:
        return hmac.new(_to_bytes(key), _to_bytes(message), self.value).digest()
