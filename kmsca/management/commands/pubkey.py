# -*- encoding: utf-8 -*-

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from kmsca.errors import CAError
from kmsca.keys import SSH_RSA, format_ssh_key
from kmsca.kms import KMSSigner, fetch_ca_key

class Command(BaseCommand):
    help = 'Prints the public key of the CA'

    def add_arguments(self, parser):
        parser.add_argument(
                '--authorized-keys',
                action='store_true',
                help='Print a cert-authority line for authorized_keys',
                )

    def handle(self, authorized_keys, *args, **options):
        if not settings.SSHCA_KEY_ID:
            raise CommandError('$SSHCA_KEY_ID not set')
        try:
            key_arn, ca_key = fetch_ca_key(KMSSigner.from_settings(), settings.SSHCA_KEY_ID)
        except CAError as e:
            raise CommandError(str(e)) from e
        if not authorized_keys:
            print(ca_key.ssh_string())
            return
        if not settings.SSHCA_USER:
            raise CommandError('$SSHCA_USER and $USER not set')
        print('cert-authority,principals="{0}" {1}'.format(settings.SSHCA_USER,
            format_ssh_key(SSH_RSA, ca_key.ssh_bytes(), key_arn)))
