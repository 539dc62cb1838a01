#!/usr/bin/env python3
"""DAT catalog reader for Tibia-style item/creature metadata.

Decodes the ``.dat`` catalog that pairs with the ``.spr`` sprite atlas and
lists which sprites make up each item or creature.

DAT format (all little-endian):
  Offset 0x00: u32  signature (not checked)
  Offset 0x04: u16  items_count
  Offset 0x06: u16  creatures_count
  Offset 0x08: u16  effects_count   (skipped)
  Offset 0x0A: u16  missiles_count  (skipped)
  Offset 0x0C: entries, back to back

Each entry:
  attribute tags, one byte each, some followed by a 2 or 4 byte payload,
  terminated by 0xFF
  u8   width, u8 height
  u8   exact size          (only present when width > 1 or height > 1)
  u8   layers, pattern_x, pattern_y, pattern_z, frames
  u16  sprite ids [width * height * layers * px * py * pz * frames]

Entry ids start at 100 and count up in file order. The first
``items_count`` entries are items, the rest are creatures.

Usage:
  python -m sprdump.dat_extract Tibia.dat
  python -m sprdump.dat_extract Tibia.dat --kind creatures
"""

import argparse
import sys

from .common.cursor import ByteCursor
from .common.errors import (
    DecodeError, OutOfRange, SprDumpError, TrailingData, TruncatedSpriteTable, UnknownTag,
)

# ---------------------------------------------------------------------------
# Attribute tags (8.6 flag set)
# ---------------------------------------------------------------------------

END_OF_ATTRIBUTES = 0xFF

# tag -> (name, payload bytes)
ATTRIBUTE_TAGS = {
    0x00: ('ground', 2),            # ground speed
    0x01: ('ground_border', 0),
    0x02: ('on_bottom', 0),
    0x03: ('on_top', 0),
    0x04: ('container', 0),
    0x05: ('stackable', 0),
    0x06: ('force_use', 0),
    0x07: ('multi_use', 0),
    0x08: ('writable', 2),          # max text length
    0x09: ('writable_once', 2),     # max text length
    0x0A: ('fluid_container', 0),
    0x0B: ('splash', 0),
    0x0C: ('not_walkable', 0),
    0x0D: ('not_moveable', 0),
    0x0E: ('block_projectile', 0),
    0x0F: ('not_pathable', 0),
    0x10: ('pickupable', 0),
    0x11: ('hangable', 0),
    0x12: ('hook_south', 0),
    0x13: ('hook_east', 0),
    0x14: ('rotateable', 0),
    0x15: ('light', 4),             # u16 level, u16 color
    0x16: ('dont_hide', 0),
    0x17: ('translucent', 0),
    0x18: ('displacement', 4),      # u16 x, u16 y
    0x19: ('elevation', 2),
    0x1A: ('lying_corpse', 0),
    0x1B: ('animate_always', 0),
    0x1C: ('minimap_color', 2),
    0x1D: ('lens_help', 2),
    0x1E: ('full_ground', 0),
    0x1F: ('look', 0),
    0x20: ('cloth', 2),             # equipment slot
}

HEADER_SIZE = 12
FIRST_ENTRY_ID = 100
SPRITE_SIZE = 32

ITEM = 'Item'
CREATURE = 'Creature'


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class CatalogEntry:
    """One item or creature: its footprint and the sprite ids that draw it."""

    def __init__(self, entry_id, kind=ITEM):
        self.id = entry_id
        self.kind = kind
        self.width = 0
        self.height = 0
        self.exact_size = SPRITE_SIZE
        self.grid = (0, 0, 0, 0, 0)   # layers, pattern x/y/z, frames
        self.attributes = []
        self.sprite_ids = []
        self.truncated = False

    @property
    def sprite_count(self):
        count = self.width * self.height
        for dim in self.grid:
            count *= dim
        return count

    def __repr__(self):
        return (f"<CatalogEntry {self.id} {self.kind} {self.width}x{self.height} "
                f"sprites={self.sprite_count}>")


class Catalog:
    """Decoded .dat contents, in file order.

    ``error`` holds the fault that made the load incomplete, if any: the
    exception that stopped it early, a truncated sprite table, or bytes
    left over after the last entry. ``entries`` holds what was decoded.
    """

    def __init__(self, items_count=0, creatures_count=0):
        self.items_count = items_count
        self.creatures_count = creatures_count
        self.entries = []
        self.error = None

    @property
    def expected_count(self):
        return self.items_count + self.creatures_count

    @property
    def complete(self):
        return (self.error is None
                and len(self.entries) == self.expected_count
                and not any(e.truncated for e in self.entries))

    @property
    def items(self):
        return [e for e in self.entries if e.kind == ITEM]

    @property
    def creatures(self):
        return [e for e in self.entries if e.kind == CREATURE]

    def get(self, entry_id):
        index = entry_id - FIRST_ENTRY_ID
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)


# ---------------------------------------------------------------------------
# Entry decoding
# ---------------------------------------------------------------------------

def read_attributes(cursor, entry_id):
    """Consume the tag stream up to and including the 0xFF terminator.

    Returns the attribute names in the order they appeared.
    """
    names = []
    while True:
        tag = cursor.read_u8()
        if tag == END_OF_ATTRIBUTES:
            return names
        info = ATTRIBUTE_TAGS.get(tag)
        if info is None:
            raise UnknownTag(tag, entry_id, cursor.tell() - 1)
        name, payload = info
        if payload:
            cursor.skip(payload)
        names.append(name)


def read_entry(cursor, entry_id, kind=ITEM):
    """Decode one catalog entry starting at the cursor position."""
    entry = CatalogEntry(entry_id, kind)
    entry.attributes = read_attributes(cursor, entry_id)

    entry.width = cursor.read_u8()
    entry.height = cursor.read_u8()
    if entry.width > 1 or entry.height > 1:
        entry.exact_size = min(cursor.read_u8(), max(entry.width, entry.height) * SPRITE_SIZE)

    entry.grid = tuple(cursor.read_u8() for _ in range(5))

    count = entry.sprite_count
    ids = [0] * count
    for i in range(count):
        if cursor.remaining() < 2:
            # Short table: leave the rest at 0 and let the caller decide.
            entry.truncated = True
            break
        ids[i] = cursor.read_u16()
    entry.sprite_ids = ids
    return entry


# ---------------------------------------------------------------------------
# Catalog loading
# ---------------------------------------------------------------------------

def parse_dat(data):
    """Decode a whole catalog from raw bytes (or an existing ByteCursor).

    Header problems raise; a failing entry stops the load and is recorded on
    the returned Catalog instead. A sprite table cut short by the end of the
    file, or bytes left over after the last entry, are recorded the same way.
    """
    cursor = data if isinstance(data, ByteCursor) else ByteCursor(data)
    if cursor.size < HEADER_SIZE:
        raise OutOfRange(0, HEADER_SIZE, cursor.size)

    cursor.skip(4)   # signature
    items_count = cursor.read_u16()
    creatures_count = cursor.read_u16()
    cursor.skip(2)   # effects
    cursor.skip(2)   # missiles

    catalog = Catalog(items_count, creatures_count)
    for ordinal in range(1, catalog.expected_count + 1):
        entry_id = FIRST_ENTRY_ID + ordinal - 1
        kind = ITEM if ordinal <= items_count else CREATURE
        try:
            entry = read_entry(cursor, entry_id, kind)
        except DecodeError as e:
            catalog.error = e
            break
        catalog.entries.append(entry)
        if entry.truncated:
            catalog.error = TruncatedSpriteTable(entry_id, entry.sprite_count, cursor.tell())
            break

    if catalog.error is None and cursor.remaining():
        catalog.error = TrailingData(cursor.tell(), cursor.remaining())
    return catalog


def load_dat(path):
    """Load and decode a .dat file. Raises CannotOpen / CannotAllocate."""
    return parse_dat(ByteCursor.from_file(path))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def print_catalog(catalog, kind=None):
    entries = catalog.entries
    if kind == 'items':
        entries = catalog.items
    elif kind == 'creatures':
        entries = catalog.creatures

    print(f"\n{'ID':>6s}  {'Kind':9s}  {'Size':>5s}  {'Exact':>5s}  {'Grid':13s}  {'Sprites':>7s}")
    print("-" * 56)
    for e in entries:
        grid = 'x'.join(str(d) for d in e.grid)
        flag = '  (truncated)' if e.truncated else ''
        print(f"{e.id:>6d}  {e.kind:9s}  {e.width:>2d}x{e.height:<2d}  {e.exact_size:>5d}  "
              f"{grid:13s}  {e.sprite_count:>7d}{flag}")


def main():
    parser = argparse.ArgumentParser(description='List the entries of a Tibia-style .dat catalog.')
    parser.add_argument('dat', help='Path to the .dat file')
    parser.add_argument('--kind', choices=['items', 'creatures'], help='Only list one kind of entry')
    args = parser.parse_args()

    try:
        catalog = load_dat(args.dat)
    except SprDumpError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Creatures: {catalog.creatures_count} Items: {catalog.items_count} "
          f"Total: {catalog.expected_count}")
    print_catalog(catalog, args.kind)
    if catalog.error is not None:
        print(f"\nWARNING: catalog is incomplete ({len(catalog)} of "
              f"{catalog.expected_count} entries decoded): {catalog.error}")


if __name__ == '__main__':
    main()
