from base64 import b64encode
from collections import namedtuple
from hashlib import sha256
from io import BytesIO
from secrets import token_bytes
from time import time

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from kmsca.errors import InvalidSubjectKey, InvalidValidityWindow, SigningUnavailable
from kmsca.keys import ED25519_KEY_SIZE, SSH_ED25519, format_ssh_key
from kmsca.wire import (UINT64_MAX, WireBuffer, read_dict, read_ssh_string,
        read_ssh_string_list, read_struct, serialize_openssh)

# See https://cvsweb.openbsd.org/src/usr.bin/ssh/PROTOCOL.certkeys
CERT_POSTFIX = '-cert-v01@openssh.com'
ED25519_CERT = SSH_ED25519 + CERT_POSTFIX
NONCE_SIZE = 32

USER_CERT = 1

DEFAULT_VALIDITY = 24 * 60 * 60

SSH_PERMISSIONS = ['X11-forwarding', 'agent-forwarding', 'port-forwarding', 'pty', 'user-rc']
STANDARD_EXTENSIONS = ['permit-' + perm for perm in SSH_PERMISSIONS]

RSA_SHA2_256 = 'rsa-sha2-256'

KEY_PARAMS = {
        "ssh-ed25519": 1,
        }


class UnsignedCertificate(namedtuple('UnsignedCertificate', 'cert_type_name body')):

    @property
    def tbs(self):
        """The bytes covered by the CA signature: type string, then the body."""
        return serialize_openssh(self.cert_type_name) + self.body


def build_certificate(ca_key_blob, subject_key, key_id, valid_after=None,
        valid_before=None, principals=(), extensions=(), nonce=None, now=None,
        validity=DEFAULT_VALIDITY):
    if len(subject_key) != ED25519_KEY_SIZE:
        raise InvalidSubjectKey('Ed25519 public key must be {0} bytes, got {1}'.format(
            ED25519_KEY_SIZE, len(subject_key)))
    if valid_after is None:
        valid_after = int(time() if now is None else now)
    if valid_before is None:
        valid_before = valid_after + validity
    for name, value in [('valid_after', valid_after), ('valid_before', valid_before)]:
        if not 0 <= value <= UINT64_MAX:
            raise InvalidValidityWindow('{0} out of range: {1}'.format(name, value))
    if valid_after > valid_before:
        raise InvalidValidityWindow('valid_after ({0}) is later than valid_before ({1})'.format(
            valid_after, valid_before))
    if nonce is None:
        nonce = token_bytes(NONCE_SIZE)
    body = (WireBuffer()
            .string(nonce)
            .string(subject_key)
            .uint64(0)  # serial
            .uint32(USER_CERT)
            .string(key_id)
            .string_list(principals)
            .uint64(valid_after)
            .uint64(valid_before)
            .string_dict({})  # critical options
            .string_dict({name: b'' for name in extensions})
            .string(b'')  # reserved
            .string(ca_key_blob)
            .finish())
    return UnsignedCertificate(ED25519_CERT, body)


class SignedCertificate(namedtuple('SignedCertificate', 'blob comment')):

    def parse(self):
        return parse_certificate(self.blob)

    def ssh_string(self):
        return format_ssh_key(read_ssh_string(BytesIO(self.blob)).decode(),
                self.blob, self.comment)

    def fingerprint(self):
        return 'SHA256:' + b64encode(sha256(self.blob).digest()).decode().rstrip('=')

    def validate(self, ca_key):
        parsed = self.parse()
        if parsed['signature_key'] != ca_key.ssh_bytes():
            raise SigningUnavailable('certificate names a different issuer key')
        if parsed['valid_after'] > parsed['valid_before']:
            raise SigningUnavailable('certificate has an empty validity window')
        signature = parsed['signature']
        if signature['type'] != RSA_SHA2_256:
            raise SigningUnavailable('unexpected signature type {0!r}'.format(
                signature['type']))
        public_key = rsa.RSAPublicNumbers(ca_key.exponent, ca_key.modulus).public_key()
        try:
            public_key.verify(signature['blob'], parsed['tbs'],
                    padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature as e:
            raise SigningUnavailable('signing oracle returned a signature that '
                    'does not verify against the CA key') from e


def parse_certificate(cert):
    bio = BytesIO(cert)
    subject_type = read_ssh_string(bio).decode()
    if not subject_type.endswith(CERT_POSTFIX):
        raise ValueError("unsupported cert type: " + repr(subject_type))
    nonce = read_ssh_string(bio)
    key_type = subject_type[:-len(CERT_POSTFIX)]
    if key_type not in KEY_PARAMS:
        raise ValueError("unsupported key type: " + repr(key_type))
    pos1 = bio.tell()
    pk_components = tuple(read_ssh_string(bio)
            for _ in range(KEY_PARAMS[key_type]))
    pos2 = bio.tell()
    pubkey = {"type": key_type, "components": pk_components,
            "bytes": cert[pos1:pos2]}
    serial = read_struct(bio, '>Q')
    cert_type = read_struct(bio, '>I')
    key_id = read_ssh_string(bio).decode()
    principals = [p.decode() for p in read_ssh_string_list(bio)]
    valid_after  = read_struct(bio, '>Q')
    valid_before = read_struct(bio, '>Q')
    crit_opts  = read_dict(bio)
    extensions = read_dict(bio)
    reserved = read_ssh_string(bio)
    signature_key = read_ssh_string(bio)
    pos = bio.tell()
    sig_bio = BytesIO(read_ssh_string(bio))
    signature = {"type": read_ssh_string(sig_bio).decode(),
            "blob": read_ssh_string(sig_bio)}
    if bio.read() or sig_bio.read():
        raise ValueError("certificate has trailing bytes")
    return {"subject_type": subject_type, "nonce": nonce, "pubkey": pubkey,
            "serial": serial, "cert_type": cert_type, "key_id": key_id,
            "principals": principals, "crit_opts": crit_opts,
            "valid_after": valid_after, "valid_before": valid_before,
            "extensions": extensions, "reserved": reserved, "tbs": cert[:pos],
            "signature_key": signature_key, "signature": signature,
            }
