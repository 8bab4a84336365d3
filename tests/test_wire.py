from io import BytesIO

import pytest

from kmsca.wire import (WireBuffer, encode_mpint, read_dict, read_mpint,
        read_ssh_string, read_ssh_string_list, read_struct, serialize_openssh)


def test_fixed_width_integers():
    blob = WireBuffer().uint32(0x01020304).uint64(0x05060708090a0b0c).finish()
    assert blob == bytes(range(1, 13))


def test_string_is_length_prefixed():
    assert WireBuffer().string(b'abc').finish() == b'\x00\x00\x00\x03abc'
    assert WireBuffer().string('ssh-rsa').finish() == b'\x00\x00\x00\x07ssh-rsa'
    assert WireBuffer().string(b'').finish() == b'\x00\x00\x00\x00'


# examples from RFC 4251 section 5
@pytest.mark.parametrize('value, encoded', [
    (0, '00000000'),
    (0x9a378f9b2e332a7, '0000000809a378f9b2e332a7'),
    (0x80, '000000020080'),
    (-0x1234, '00000002edcc'),
    (-0xdeadbeef, '00000005ff21524111'),
])
def test_mpint_rfc4251_examples(value, encoded):
    assert WireBuffer().mpint(value).finish().hex() == encoded


def test_mpint_round_trips_without_spurious_zero():
    for n in list(range(0, 1024)) + [2 ** k + d for k in range(8, 4100, 37) for d in (-1, 0, 1)]:
        raw = encode_mpint(n)
        assert int.from_bytes(raw, 'big', signed=True) == n
        assert read_mpint(BytesIO(WireBuffer().mpint(n).finish())) == n
        if n:
            # a leading zero only appears to keep the sign bit clear
            assert raw[0] != 0 or raw[1] & 0x80


def test_string_containers():
    blob = (WireBuffer()
            .string_list(['alice', 'bob'])
            .string_dict({'permit-pty': b'', 'permit-X11-forwarding': b''})
            .finish())
    bio = BytesIO(blob)
    assert read_ssh_string_list(bio) == [b'alice', b'bob']
    assert list(read_dict(bio)) == ['permit-X11-forwarding', 'permit-pty']
    assert bio.read() == b''


def test_empty_containers():
    blob = WireBuffer().string_list([]).string_dict({}).finish()
    assert blob == bytes(8)


def test_finish_consumes_buffer():
    buf = WireBuffer().uint32(1)
    assert buf.finish() == b'\x00\x00\x00\x01'
    with pytest.raises(RuntimeError):
        buf.uint32(2)
    with pytest.raises(RuntimeError):
        buf.finish()


def test_serialize_openssh():
    assert serialize_openssh('ssh-ed25519', b'\x01' * 2, 7) == (
            b'\x00\x00\x00\x0bssh-ed25519\x00\x00\x00\x02\x01\x01\x00\x00\x00\x07')


def test_truncated_input_is_rejected():
    with pytest.raises(ValueError):
        read_ssh_string(BytesIO(b'\x00\x00\x00\x05abc'))
    with pytest.raises(ValueError):
        read_struct(BytesIO(b'\x00\x00'), '>I')
    with pytest.raises(ValueError):
        read_ssh_string_list(BytesIO(b'\x00\x00\x00\x06\x00\x00\x00\x05ab'))
