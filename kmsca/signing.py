"""
Bridges a raw RSA PKCS#1 v1.5 signature from a remote oracle into an OpenSSH
certificate.

The oracle is any callable ``sign(key_id, digest, digest_algorithm, padding)``
returning the raw signature bytes, see ``kmsca.kms.KMSSigner.sign``.
"""

from hashlib import sha256
import logging

from kmsca.certificate import RSA_SHA2_256, SignedCertificate
from kmsca.errors import SigningUnavailable
from kmsca.wire import WireBuffer

DIGEST_ALGORITHM = 'SHA-256'
PADDING = 'PKCS1v1.5'

logger = logging.getLogger(__name__)


def sign_certificate(unsigned, ca_key, key_id, sign, comment=None):
    tbs = unsigned.tbs
    digest = sha256(tbs).digest()
    try:
        raw_signature = sign(key_id, digest,
                digest_algorithm=DIGEST_ALGORITHM, padding=PADDING)
    except SigningUnavailable:
        raise
    except Exception as e:
        raise SigningUnavailable('signing request for {0} failed: {1}'.format(
            key_id, e)) from e
    if not isinstance(raw_signature, (bytes, bytearray)):
        raise SigningUnavailable('signing oracle returned {0!r} instead of bytes'.format(
            type(raw_signature).__name__))
    if len(raw_signature) != ca_key.size:
        raise SigningUnavailable(('signing oracle returned a {0} byte signature, '
            'expected {1} bytes for the CA modulus').format(len(raw_signature), ca_key.size))
    signature = serialize_signature(raw_signature)
    signed = SignedCertificate(tbs + WireBuffer().string(signature).finish(), comment)
    logger.info('signed %s certificate %s', unsigned.cert_type_name, signed.fingerprint())
    return signed


def serialize_signature(raw_signature):
    return WireBuffer().string(RSA_SHA2_256).string(raw_signature).finish()
