"""
Exceptions for the OneLink content protection layer
Everything derives from OneLinkError so the UI has a single catch point
"""


class OneLinkError(Exception):
    # general container for errors
    pass


class CryptoError(OneLinkError):
    # base for every failure raised by a cryptographic operation
    pass


class KeyFormatError(CryptoError):
    # raised on malformed key bytes, bad base64 or the wrong key algorithm
    pass


class KeyGenerationError(CryptoError):
    # raised when the crypto library fails while generating a key pair
    pass


class IntegrityError(CryptoError):
    # raised when the AEAD tag or the RSA-OAEP unwrap does not verify
    pass


class EnvelopeFormatError(IntegrityError):
    # raised when a stored envelope cannot be decoded at all
    pass


class MissingKeyError(CryptoError):
    # raised when a wrapped key or a locally retained key is absent
    pass


class StorageUnavailableError(OneLinkError):
    # raised when the local keystore is missing, failing or refused
    pass
