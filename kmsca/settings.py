"""
Django settings for the KMS-backed SSH CA.

Everything is read from the environment; ``~/.config/sshca/env`` is loaded
first without overriding variables that are already set.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path.home() / '.config' / 'sshca' / 'env', override=False)

INSTALLED_APPS = ['kmsca']

USE_TZ = True

# key id, alias or ARN of the asymmetric RSA signing key
SSHCA_KEY_ID = os.environ.get('SSHCA_KEY_ID')
SSHCA_USER = os.environ.get('SSHCA_USER') or os.environ.get('USER')
SSHCA_KEY_PATH = Path(os.environ.get('SSHCA_KEY_PATH')
        or Path.home() / '.ssh' / 'id_ed25519.pub')
SSHCA_CERT_VALIDITY = int(os.environ.get('SSHCA_CERT_VALIDITY', 24 * 60 * 60))
SSHCA_AWS_REGION = os.environ.get('SSHCA_AWS_REGION')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'plain': {'format': '%(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'plain',
        },
    },
    'loggers': {
        'kmsca': {
            'handlers': ['console'],
            'level': os.environ.get('SSHCA_LOG_LEVEL', 'WARNING'),
        },
    },
}
