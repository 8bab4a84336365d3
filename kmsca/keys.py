from base64 import b64decode, b64encode
from binascii import Error as Base64Error
from collections import namedtuple
from io import BytesIO

from kmsca.errors import InvalidSubjectKey, MalformedKey, UnsupportedSubjectKeyType
from kmsca.wire import WireBuffer, read_ssh_string

SSH_RSA = 'ssh-rsa'
SSH_ED25519 = 'ssh-ed25519'
ED25519_KEY_SIZE = 32


class RsaPublicKey(namedtuple('RsaPublicKey', 'modulus exponent')):

    @classmethod
    def create(cls, modulus, exponent):
        if modulus < 3 or not modulus & 1:
            raise MalformedKey('RSA modulus must be odd')
        if exponent < 3 or not exponent & 1:
            raise MalformedKey('RSA exponent must be odd and greater than 1')
        return cls(modulus, exponent)

    @property
    def size(self):
        """Modulus length in bytes, which is also the signature length."""
        return (self.modulus.bit_length() + 7) // 8

    def ssh_bytes(self):
        # exponent precedes modulus in the ssh-rsa key format
        return (WireBuffer().string(SSH_RSA)
                .mpint(self.exponent).mpint(self.modulus).finish())

    def ssh_string(self):
        return format_ssh_key(SSH_RSA, self.ssh_bytes())


SubjectKey = namedtuple('SubjectKey', 'key_type key comment')


def load_subject_key(text):
    """Parse an OpenSSH public key line such as ``ssh-ed25519 AAAA... user@host``."""
    if isinstance(text, bytes):
        text = text.decode('utf-8', 'replace')
    fields = text.strip().split(None, 2)
    if len(fields) < 2:
        raise InvalidSubjectKey('not an SSH public key line')
    ssh_type, ssh_b64 = fields[:2]
    comment = fields[2] if len(fields) > 2 else None
    try:
        ssh_raw = b64decode(ssh_b64, validate=True)
    except Base64Error as e:
        raise InvalidSubjectKey('invalid base64 in public key: {0}'.format(e)) from e
    bio = BytesIO(ssh_raw)
    try:
        inner_type = read_ssh_string(bio).decode()
    except ValueError as e:
        raise InvalidSubjectKey('malformed public key blob: {0}'.format(e)) from e
    if inner_type != SSH_ED25519:
        raise UnsupportedSubjectKeyType(
            'only Ed25519 keys can be certified, got {0!r}'.format(inner_type))
    try:
        key = read_ssh_string(bio)
    except ValueError as e:
        raise InvalidSubjectKey('malformed public key blob: {0}'.format(e)) from e
    if ssh_type != inner_type:
        raise InvalidSubjectKey('{0!r} != {1!r}'.format(ssh_type, inner_type))
    if len(key) != ED25519_KEY_SIZE or bio.read():
        raise InvalidSubjectKey('Ed25519 public key must be {0} bytes'.format(
            ED25519_KEY_SIZE))
    return SubjectKey(inner_type, key, comment)


def format_ssh_key(key_type, serialized, comment=None):
    fields = [key_type, b64encode(serialized).decode()]
    if comment:
        fields.append(comment)
    return ' '.join(fields)
