#!/usr/bin/env python3
"""SPR sprite atlas decoder.

Decodes individual 32x32 sprites from a Tibia-style ``.spr`` atlas and
exports them as PNG/BMP.

SPR format (all little-endian):
  Offset 0x00: u32  signature (not checked)
  Offset 0x04: u16  sprite_count
  Offset 0x06: u32  offsets[sprite_count]   (absolute, 0 = no pixel data)

Sprite ids are 1-based: sprite N lives at offsets[N - 1]. Each sprite block:
  u8[3]  color key (unused)
  u16    pixel_data_length
  runs until pixel_data_length bytes are consumed:
    u16  transparent pixel count
    u16  colored pixel count
    u8[3 * colored]  R, G, B

Pixels fill the sprite row by row from the top-left corner. Whatever the
runs leave uncovered at the end is transparent.

Usage:
  python -m sprdump.spr_extract Tibia.spr --sprite 1 --sprite 2 -o output/sprites/
  python -m sprdump.spr_extract Tibia.spr --info
"""

import argparse
import os
import sys

import numpy as np

from .common.cursor import ByteCursor
from .common.errors import DecodeError, MissingSpriteData, SprDumpError
from .common.image import ensure_dir, new_raster, save_raster

HEADER_SIZE = 6
SPRITE_SIZE = 32
COLOR_KEY_SIZE = 3
RUN_HEADER_SIZE = 4


class SpriteAtlas:
    """Loaded .spr file plus the location of its offset table."""

    def __init__(self, cursor):
        self.cursor = cursor
        cursor.seek(4)   # signature
        self.total_sprites = cursor.read_u16()
        self.index_offset = cursor.tell()

    @classmethod
    def from_bytes(cls, data):
        return cls(ByteCursor(data))

    def sprite_address(self, sprite_id):
        """Absolute offset of a sprite's data block (0 if it has none)."""
        if sprite_id <= 0 or sprite_id > self.total_sprites:
            raise MissingSpriteData(sprite_id, f"id outside 1..{self.total_sprites}")
        self.cursor.seek(self.index_offset + (sprite_id - 1) * 4)
        return self.cursor.read_u32()

    def __repr__(self):
        return f"<SpriteAtlas sprites={self.total_sprites} size={self.cursor.size}>"


def load_spr(path):
    """Load a .spr file. Raises CannotOpen / CannotAllocate."""
    return SpriteAtlas(ByteCursor.from_file(path))


def decode_sprite(atlas, sprite_id, raster=None, size=SPRITE_SIZE):
    """Decode one sprite into an RGBA raster of ``size`` x ``size``.

    If ``raster`` is given it is filled in place and returned; it is only
    touched once the whole sprite decoded. Raises MissingSpriteData for
    sprites without pixel data, OutOfRange for data running off the file.
    """
    if sprite_id == 0:
        raise MissingSpriteData(sprite_id, "no sprite")

    address = atlas.sprite_address(sprite_id)
    if address == 0:
        raise MissingSpriteData(sprite_id, "no pixel data")

    cursor = atlas.cursor
    cursor.seek(address + COLOR_KEY_SIZE)
    data_length = cursor.read_u16()
    if data_length == 0:
        raise MissingSpriteData(sprite_id, "empty pixel data")

    out = new_raster(size, size)
    pixels = out.reshape(-1, 4)   # row-major view
    total = len(pixels)
    written = 0
    consumed = 0

    while consumed < data_length and written < total:
        transparent = cursor.read_u16()
        colored = cursor.read_u16()

        # Transparent pixels are already zero; just move past them.
        written = min(written + transparent, total)

        n = min(colored, total - written)
        if n:
            rgb = np.frombuffer(cursor.read_bytes(n * 3), dtype=np.uint8).reshape(n, 3)
            pixels[written:written + n, :3] = rgb
            pixels[written:written + n, 3] = 0xFF
            written += n

        consumed += RUN_HEADER_SIZE + 3 * colored

    if raster is None:
        return out
    raster[...] = out
    return raster


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(description='Decode sprites from a Tibia-style .spr atlas.')
    parser.add_argument('spr', help='Path to the .spr file')
    parser.add_argument('--sprite', '-s', type=int, action='append', default=[],
                        help='Sprite id to export (repeatable)')
    parser.add_argument('--output', '-o', default='output/sprites/',
                        help='Output directory (default: output/sprites/)')
    parser.add_argument('--format', choices=['png', 'bmp'], default='png', help='Image format')
    parser.add_argument('--info', action='store_true', help='Print atlas header and exit')
    args = parser.parse_args()

    try:
        atlas = load_spr(args.spr)
    except SprDumpError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Total sprites found in {os.path.basename(args.spr)}: {atlas.total_sprites}")
    if args.info or not args.sprite:
        return

    ensure_dir(args.output)
    for sprite_id in args.sprite:
        try:
            raster = decode_sprite(atlas, sprite_id)
        except DecodeError as e:
            print(f"  {sprite_id:6d}  ERROR: {e}")
            continue
        path = os.path.join(args.output, f"sprite_{sprite_id}.{args.format}")
        save_raster(raster, path)
        print(f"  {sprite_id:6d}  -> {path}")


if __name__ == '__main__':
    main()
