"""Exception types shared by the .dat / .spr decoders."""


class SprDumpError(Exception):
    """Base class for everything the extractors raise on purpose."""


class CannotOpen(SprDumpError, OSError):
    """Source file is missing or unreadable."""


class CannotAllocate(SprDumpError, MemoryError):
    """Not enough memory to cache a source file."""


class DecodeError(SprDumpError, ValueError):
    """Source data does not decode."""


class OutOfRange(DecodeError):
    def __init__(self, position, width, size):
        self.position = position
        self.width = width
        self.size = size
        super().__init__(
            f"access of {width} byte(s) at offset {position} is outside buffer of {size} bytes"
        )


class UnknownTag(DecodeError):
    def __init__(self, tag, entry_id, position):
        self.tag = tag
        self.entry_id = entry_id
        self.position = position
        super().__init__(
            f"failed to load entry {entry_id}: unknown attribute byte 0x{tag:02X} at offset {position}"
        )


class MissingSpriteData(DecodeError):
    def __init__(self, sprite_id, reason):
        self.sprite_id = sprite_id
        self.reason = reason
        super().__init__(f"sprite {sprite_id}: {reason}")


class TruncatedSpriteTable(DecodeError):
    def __init__(self, entry_id, expected, position):
        self.entry_id = entry_id
        self.expected = expected
        self.position = position
        super().__init__(
            f"entry {entry_id}: sprite id table of {expected} ids runs past end of file at offset {position}"
        )


class TrailingData(DecodeError):
    def __init__(self, position, count):
        self.position = position
        self.count = count
        super().__init__(f"{count} unread byte(s) after the last entry at offset {position}")
