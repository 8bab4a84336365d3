class CAError(Exception):
    pass


class MalformedKey(CAError, ValueError):
    """The CA public key could not be decoded as an RSA SubjectPublicKeyInfo."""


class InvalidSubjectKey(CAError, ValueError):
    """The key to be certified is malformed or has the wrong length."""


class UnsupportedSubjectKeyType(InvalidSubjectKey):
    pass


class InvalidValidityWindow(CAError, ValueError):
    pass


class SigningUnavailable(CAError, RuntimeError):
    """The signing oracle failed or returned a signature that cannot be used."""
