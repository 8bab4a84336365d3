from functools import partial
from itertools import islice
from io import BytesIO
import struct

UINT64_MAX = 2 ** 64 - 1


class WireBuffer:
    """Builds an SSH wire format blob (RFC 4251 section 5).

    Appends return the buffer so calls can be chained; ``finish`` hands out
    the bytes and consumes the buffer.
    """

    def __init__(self):
        self._parts = []

    def _append(self, data):
        if self._parts is None:
            raise RuntimeError('WireBuffer already finished')
        self._parts.append(data)
        return self

    def uint32(self, value):
        return self._append(struct.pack('>I', value))

    def uint64(self, value):
        return self._append(struct.pack('>Q', value))

    def string(self, value):
        if isinstance(value, str):
            value = value.encode('utf-8')
        return self.uint32(len(value))._append(bytes(value))

    def mpint(self, value):
        return self.string(encode_mpint(value))

    def string_list(self, values):
        inner = WireBuffer()
        for value in values:
            inner.string(value)
        return self.string(inner.finish())

    def string_dict(self, mapping):
        # names must be sorted, each value is already wire encoded
        inner = WireBuffer()
        for name in sorted(mapping):
            inner.string(name).string(mapping[name])
        return self.string(inner.finish())

    def finish(self):
        if self._parts is None:
            raise RuntimeError('WireBuffer already finished')
        parts, self._parts = self._parts, None
        return b''.join(parts)


def encode_mpint(value):
    if value == 0:
        return b''
    magnitude = value if value >= 0 else ~value
    return value.to_bytes((magnitude.bit_length() + 8) // 8, 'big', signed=True)


def serialize_openssh(*args):
    """Shorthand: ints become uint32, str and bytes become strings."""
    buf = WireBuffer()
    for arg in args:
        if isinstance(arg, int):
            buf.uint32(arg)
        else:
            buf.string(arg)
    return buf.finish()


def read_dict(bio):
    return {k.decode(): v for k, v in chunked(read_ssh_string_list(bio), 2)}

def read_ssh_string_list(bio):
    container = read_ssh_string(bio)
    return list(iter(partial(try_read_ssh_string, BytesIO(container)), None))

def try_read_ssh_string(bio):
    start = bio.tell()
    if not bio.read(1):
        return None
    bio.seek(start)
    return read_ssh_string(bio)

def read_ssh_string(bio):
    length = read_struct(bio, '>I')
    value = bio.read(length)
    if len(value) != length:
        raise ValueError('truncated string: need {0} bytes, have {1}'.format(
            length, len(value)))
    return value

def read_mpint(bio):
    return int.from_bytes(read_ssh_string(bio), 'big', signed=True)

def read_struct(bio, fmt):
    size = struct.calcsize(fmt)
    data = bio.read(size)
    if len(data) != size:
        raise ValueError('truncated {0!r} field'.format(fmt))
    (value,) = struct.unpack(fmt, data)
    return value

# src: https://github.com/more-itertools/more-itertools, license: MIT
def chunked(iterable, n):
    iterator = iter(partial(take, n, iter(iterable)), [])
    for chunk in iterator:
        if len(chunk) != n:
            raise ValueError('iterable is not divisible by n.')
        yield chunk

def take(n, iterable):
    return list(islice(iterable, n))
