"""Custom exceptions for the Sigma coin layer."""


class SigmaException(Exception):
    """Base exception for all Sigma coin errors."""
    pass


# Validation Errors
class ValidationError(SigmaException):
    """
    Base exception for rejected external input.

    Carries a misbehavior score so that consensus-path callers can penalize
    the peer that relayed the data instead of crashing.
    """

    DEFAULT_DOS_SCORE = 100

    def __init__(self, message: str = "", dos_score: int = DEFAULT_DOS_SCORE):
        super().__init__(message)
        self.dos_score = dos_score


class InvalidDenominationError(ValidationError):
    """Raised when an amount, label or tag is not one of the legal denominations."""
    pass


class InvalidGroupElementError(ValidationError):
    """Raised when bytes do not decode to a non-identity group element."""
    pass


class InvalidScalarError(ValidationError):
    """Raised when bytes do not decode to a canonical scalar."""
    pass


class MalformedProofError(ValidationError):
    """Raised when a proof has the wrong shape or cannot be parsed."""
    pass


class DeserializationError(ValidationError):
    """Raised when a serialized coin cannot be parsed."""
    pass


# Cryptography Errors
class CryptoError(SigmaException):
    """Base exception for cryptographic errors."""
    pass


class InvalidCommitmentError(CryptoError):
    """Raised when commitment inputs are not scalars or group elements."""
    pass


class RandomnessUnavailableError(CryptoError):
    """Raised when the system entropy source cannot produce random bytes."""
    pass


class InvalidSecretKeyError(CryptoError, ValueError):
    """Raised when an ECDSA secret key has the wrong size or is out of range."""
    pass
