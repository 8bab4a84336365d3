# -*- encoding: utf-8 -*-

from pathlib import Path
from tempfile import mkstemp
import os

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from kmsca.certificate import STANDARD_EXTENSIONS, build_certificate
from kmsca.errors import CAError
from kmsca.keys import load_subject_key
from kmsca.kms import KMSSigner, fetch_ca_key
from kmsca.signing import sign_certificate

class Command(BaseCommand):
    help = 'Signs an Ed25519 public key with the CA'

    def add_arguments(self, parser):
        parser.add_argument('pubkey', nargs='?', metavar='id_ed25519.pub',
                help='Key to certify (default: $SSHCA_KEY_PATH or ~/.ssh/id_ed25519.pub)')
        parser.add_argument('-o', '--output', metavar='id_ed25519-cert.pub',
                help="Where to write the certificate, '-' for stdout")
        parser.add_argument('-I', '--identity',
                help='Key identifier (default: $SSHCA_USER)')
        parser.add_argument('-n', '--principal', dest='principals',
                action='append', default=[],
                help='Restrict the certificate to this principal, may be repeated')
        parser.add_argument('--standard-extensions', action='store_true',
                help='Permit X11, agent and port forwarding, pty and user-rc')
        parser.add_argument('--valid-after', type=int, metavar='TIMESTAMP')
        parser.add_argument('--valid-before', type=int, metavar='TIMESTAMP')

    def handle(self, pubkey, output, identity, principals, standard_extensions,
            valid_after, valid_before, *args, **options):
        key_id = settings.SSHCA_KEY_ID
        if not key_id:
            raise CommandError('$SSHCA_KEY_ID not set')
        identity = identity or settings.SSHCA_USER
        if not identity:
            raise CommandError('$SSHCA_USER and $USER not set, use --identity')
        path = Path(pubkey or settings.SSHCA_KEY_PATH)
        out = output or cert_path(path)
        if out is None:
            raise CommandError('could not automatically determine output path')
        try:
            text = path.read_text()
        except OSError as e:
            raise CommandError('failed to load public key at {0}: {1}'.format(path, e)) from e
        try:
            subject = load_subject_key(text)
            signer = KMSSigner.from_settings()
            key_arn, ca_key = fetch_ca_key(signer, key_id)
            unsigned = build_certificate(ca_key.ssh_bytes(), subject.key, identity,
                    valid_after=valid_after, valid_before=valid_before,
                    principals=principals,
                    extensions=STANDARD_EXTENSIONS if standard_extensions else (),
                    validity=settings.SSHCA_CERT_VALIDITY)
            signed = sign_certificate(unsigned, ca_key, key_arn, signer.sign,
                    comment=subject.comment)
            signed.validate(ca_key)
        except CAError as e:
            raise CommandError(str(e)) from e
        if out == '-':
            print(signed.ssh_string())
            return
        try:
            write_atomically(Path(out), signed.ssh_string() + '\n')
        except OSError as e:
            raise CommandError('failed to write certificate to {0}: {1}'.format(out, e)) from e

def write_atomically(path, text):
    fd, tmp = mkstemp(prefix='.' + path.name, suffix='.tmp', dir=str(path.parent))
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(text)
        os.chmod(tmp, 0o644)
        os.replace(tmp, str(path))
    except BaseException:
        os.unlink(tmp)
        raise

def cert_path(path):
    if path.name.endswith('.pub') and len(path.name) > len('.pub'):
        return path.with_name(path.name[:-len('.pub')] + '-cert.pub')
    return None
