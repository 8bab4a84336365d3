"""
Just enough DER to read an RSA SubjectPublicKeyInfo:

    SubjectPublicKeyInfo ::= SEQUENCE {
        algorithm         SEQUENCE { OBJECT IDENTIFIER, parameters ANY OPTIONAL },
        subjectPublicKey  BIT STRING }   -- carries RSAPublicKey

    RSAPublicKey ::= SEQUENCE { modulus INTEGER, publicExponent INTEGER }
"""

from kmsca.errors import MalformedKey
from kmsca.keys import RsaPublicKey

INTEGER = 0x02
BIT_STRING = 0x03
NULL = 0x05
OBJECT_IDENTIFIER = 0x06
SEQUENCE = 0x30

# 1.2.840.113549.1.1.1
RSA_ENCRYPTION = bytes.fromhex('2a864886f70d010101')


class DERReader:
    def __init__(self, data):
        self.data = bytes(data)
        self.offset = 0

    def is_empty(self):
        return self.offset == len(self.data)

    def check_empty(self):
        if not self.is_empty():
            raise MalformedKey('{0} trailing byte(s) in DER element'.format(
                len(self.data) - self.offset))

    def read_byte(self):
        return self.read_bytes(1)[0]

    def read_bytes(self, n):
        if self.offset + n > len(self.data):
            raise MalformedKey('truncated DER: need {0} bytes, have {1}'.format(
                n, len(self.data) - self.offset))
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def peek_tag(self):
        return None if self.is_empty() else self.data[self.offset]

    def read_length(self):
        first = self.read_byte()
        if not first & 0x80:
            return first
        n = first & 0x7f
        if n == 0:
            raise MalformedKey('indefinite length is not allowed in DER')
        if n > 4:
            raise MalformedKey('DER length field of {0} bytes is too large'.format(n))
        raw = self.read_bytes(n)
        length = int.from_bytes(raw, 'big')
        if raw[0] == 0 or length < 0x80:
            raise MalformedKey('non-minimal DER length')
        return length

    def read_any_element(self):
        tag = self.read_byte()
        if tag & 0x1f == 0x1f:
            raise MalformedKey('multi-byte DER tags are not supported')
        body = self.read_bytes(self.read_length())
        return tag, DERReader(body)

    def read_element(self, expected_tag):
        tag, body = self.read_any_element()
        if tag != expected_tag:
            raise MalformedKey('expected DER tag 0x{0:02x}, got 0x{1:02x}'.format(
                expected_tag, tag))
        return body

    def read_optional_element(self, expected_tag):
        if self.peek_tag() == expected_tag:
            return self.read_element(expected_tag)
        return None

    def read_single_element(self, expected_tag):
        body = self.read_element(expected_tag)
        self.check_empty()
        return body

    def as_integer(self):
        data = self.data[self.offset:]
        if not data:
            raise MalformedKey('empty DER INTEGER')
        if data[0] & 0x80:
            raise MalformedKey('negative DER INTEGER')
        if len(data) > 1 and data[0] == 0 and not data[1] & 0x80:
            raise MalformedKey('non-minimal DER INTEGER')
        self.offset = len(self.data)
        return int.from_bytes(data, 'big')


def decode_spki(der):
    """Extract the RSA public key carried in a DER SubjectPublicKeyInfo."""
    spki = DERReader(der).read_single_element(SEQUENCE)
    algorithm = spki.read_element(SEQUENCE)
    oid = algorithm.read_element(OBJECT_IDENTIFIER)
    if oid.data != RSA_ENCRYPTION:
        raise MalformedKey('unsupported key algorithm (OID {0})'.format(oid.data.hex()))
    params = algorithm.read_optional_element(NULL)
    if params is not None:
        params.check_empty()
    algorithm.check_empty()
    bits = spki.read_element(BIT_STRING)
    spki.check_empty()
    if bits.read_byte() != 0:
        raise MalformedKey('RSA public key BIT STRING has unused bits')
    rsa = bits.read_single_element(SEQUENCE)
    modulus = rsa.read_element(INTEGER).as_integer()
    exponent = rsa.read_element(INTEGER).as_integer()
    rsa.check_empty()
    return RsaPublicKey.create(modulus, exponent)
