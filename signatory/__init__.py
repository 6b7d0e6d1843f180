"""
AWS Signature Version 4 - Request Signing

This package computes canonical requests, signing keys, signatures and
Authorization headers for AWS Signature Version 4, with either a secret
access key or a pre-derived signing key.
"""

from .config import DerivedKey, Secret, Service, SignerConfig
from .errors import ConfigurationError, DateScopeMismatch, MalformedInput, SigningError
from .canonical import Headers
from .hashing import HashFamily
from .sigv4 import Request, SigV4Signer, authorization, derive_signing_key, signature

__version__ = "0.1.0"
__all__ = [
    "SigV4Signer",
    "SignerConfig",
    "Service",
    "Secret",
    "DerivedKey",
    "HashFamily",
    "Request",
    "Headers",
    "derive_signing_key",
    "signature",
    "authorization",
    "SigningError",
    "ConfigurationError",
    "DateScopeMismatch",
    "MalformedInput",
]
