import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, padding, rsa, utils

KEY_ARN = 'arn:aws:kms:eu-west-1:111122223333:key/0b7d3e64-9c4f-4b8e-8d3a-5a4c1e2f7a90'


def sign_digest(private_key, digest):
    return private_key.sign(digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256()))


class FakeKMSClient:
    """Answers GetPublicKey and Sign like the KMS API, with a local RSA key."""

    def __init__(self, private_key, key_arn=KEY_ARN, error=None, signature=None):
        self.private_key = private_key
        self.key_arn = key_arn
        self.error = error
        self.signature = signature
        self.sign_requests = []

    def get_public_key(self, KeyId):
        return {
            'KeyId': self.key_arn,
            'PublicKey': self.private_key.public_key().public_bytes(
                serialization.Encoding.DER,
                serialization.PublicFormat.SubjectPublicKeyInfo),
            'KeySpec': 'RSA_2048',
            'KeyUsage': 'SIGN_VERIFY',
            'SigningAlgorithms': ['RSASSA_PKCS1_V1_5_SHA_256', 'RSASSA_PSS_SHA_256'],
        }

    def sign(self, KeyId, Message, MessageType, SigningAlgorithm):
        self.sign_requests.append({'KeyId': KeyId, 'Message': Message,
            'MessageType': MessageType, 'SigningAlgorithm': SigningAlgorithm})
        if self.error is not None:
            raise self.error
        return {
            'KeyId': self.key_arn,
            'Signature': self.signature or sign_digest(self.private_key, Message),
            'SigningAlgorithm': SigningAlgorithm,
        }


@pytest.fixture(scope='session')
def ca_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def ca_der(ca_private_key):
    return ca_private_key.public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)


@pytest.fixture
def subject_private_key():
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def subject_line(subject_private_key):
    line = subject_private_key.public_key().public_bytes(
        serialization.Encoding.OpenSSH, serialization.PublicFormat.OpenSSH)
    return line.decode() + ' alice@laptop\n'


@pytest.fixture
def oracle(ca_private_key):
    """Stand-in for the remote signer, records every request it gets."""
    requests = []

    def sign(key_id, digest, digest_algorithm, padding):
        requests.append((key_id, digest, digest_algorithm, padding))
        return sign_digest(ca_private_key, digest)

    sign.requests = requests
    return sign
