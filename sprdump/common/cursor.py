import struct

from .errors import CannotAllocate, CannotOpen, OutOfRange


def read_u32_le(data, offset=0):
    return struct.unpack('<I', data[offset:offset+4])[0]

def read_u16_le(data, offset=0):
    return struct.unpack('<H', data[offset:offset+2])[0]


def load_file(path):
    """Read a whole file into memory, mapping failures to CannotOpen / CannotAllocate."""
    try:
        with open(path, 'rb') as f:
            return f.read()
    except MemoryError as e:
        raise CannotAllocate(f"could not allocate enough memory to cache {path}") from e
    except OSError as e:
        raise CannotOpen(f"could not open file {path}: {e.strerror or e}") from e


class ByteCursor:
    """Random-access little-endian reader over an in-memory buffer.

    Every access is bounds checked: reading, seeking or skipping outside
    ``[0, size]`` raises OutOfRange and leaves the position untouched.
    The position may sit exactly at ``size`` (end of buffer) but nothing
    can be read from there.
    """

    def __init__(self, data):
        self.data = bytes(data)
        self.size = len(self.data)
        self.position = 0

    @classmethod
    def from_file(cls, path):
        return cls(load_file(path))

    def _take(self, width):
        pos = self.position
        if width < 0 or pos + width > self.size:
            raise OutOfRange(pos, width, self.size)
        self.position = pos + width
        return pos

    def read_u8(self):
        pos = self._take(1)
        return self.data[pos]

    def read_u16(self):
        pos = self._take(2)
        return read_u16_le(self.data, pos)

    def read_u32(self):
        pos = self._take(4)
        return read_u32_le(self.data, pos)

    def read_bytes(self, count):
        pos = self._take(count)
        return self.data[pos:pos+count]

    def tell(self):
        return self.position

    def remaining(self):
        return self.size - self.position

    def seek(self, position):
        if position < 0 or position > self.size:
            raise OutOfRange(position, 0, self.size)
        self.position = position

    def skip(self, offset):
        target = self.position + offset
        if target < 0 or target > self.size:
            raise OutOfRange(self.position, offset, self.size)
        self.position = target

    def __len__(self):
        return self.size

    def __repr__(self):
        return f"<ByteCursor {self.position}/{self.size}>"
