import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from kmsca.der import decode_spki
from kmsca.errors import MalformedKey, SigningUnavailable

SIGN_VERIFY = 'SIGN_VERIFY'

# a signing request is not assumed to be idempotent, so it is sent exactly once
NO_RETRIES = Config(retries={'total_max_attempts': 1})

SIGNING_ALGORITHMS = {
        ('SHA-256', 'PKCS1v1.5'): 'RSASSA_PKCS1_V1_5_SHA_256',
        }

logger = logging.getLogger(__name__)


class KMSSigner:
    """Signing oracle backed by an asymmetric AWS KMS key."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_settings(cls):
        try:
            return cls(boto3.client('kms', region_name=settings.SSHCA_AWS_REGION,
                    config=NO_RETRIES))
        except BotoCoreError as e:
            raise SigningUnavailable('cannot set up KMS client: {0}'.format(e)) from e

    def get_public_key(self, key_id):
        """Returns the key ARN and the DER SubjectPublicKeyInfo of ``key_id``."""
        logger.info('fetching public key %s', key_id)
        try:
            response = self.client.get_public_key(KeyId=key_id)
        except (BotoCoreError, ClientError) as e:
            raise SigningUnavailable('GetPublicKey for {0} failed: {1}'.format(key_id, e)) from e
        der = response.get('PublicKey')
        if not der:
            raise MalformedKey('GetPublicKey response missing PublicKey field')
        usage = response.get('KeyUsage')
        if usage is not None and usage != SIGN_VERIFY:
            raise MalformedKey('{0} is a {1} key, not a signing key'.format(key_id, usage))
        algorithms = response.get('SigningAlgorithms')
        wanted = SIGNING_ALGORITHMS[('SHA-256', 'PKCS1v1.5')]
        if algorithms is not None and wanted not in algorithms:
            raise MalformedKey('{0} does not support {1}'.format(key_id, wanted))
        return response.get('KeyId', key_id), der

    def sign(self, key_id, digest, digest_algorithm='SHA-256', padding='PKCS1v1.5'):
        try:
            algorithm = SIGNING_ALGORITHMS[(digest_algorithm, padding)]
        except KeyError:
            raise ValueError('unsupported signing scheme {0}/{1}'.format(
                digest_algorithm, padding)) from None
        logger.info('requesting %s signature from %s', algorithm, key_id)
        try:
            response = self.client.sign(KeyId=key_id, Message=digest,
                    MessageType='DIGEST', SigningAlgorithm=algorithm)
        except (BotoCoreError, ClientError) as e:
            raise SigningUnavailable('Sign with {0} failed: {1}'.format(key_id, e)) from e
        signature = response.get('Signature')
        if not signature:
            raise SigningUnavailable('Sign response missing Signature field')
        return signature


def fetch_ca_key(signer, key_id):
    key_arn, der = signer.get_public_key(key_id)
    return key_arn, decode_spki(der)
