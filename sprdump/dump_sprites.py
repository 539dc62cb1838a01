#!/usr/bin/env python3
"""
dump_sprites.py - Tibia .dat/.spr -> per-entry sprite images
=============================================================

Loads the item/creature catalog (.dat) and the sprite atlas (.spr), then
writes every sprite of every entry to:

  <output>/Items/<id>_s<n>.png
  <output>/Creatures/<id>_s<n>.png

where <n> counts the sprites saved for that entry. Sprites that cannot be
decoded are skipped; the ids of the entries they belong to are written to a
side file (corrupt_ids.txt by default), five tab-separated ids per line.

Usage:
    python -m sprdump.dump_sprites <output_dir> [options]

    --dat PATH          Catalog file (default: Tibia.dat)
    --spr PATH          Sprite atlas (default: Tibia.spr)
    --format png|bmp    Image format (default: png)
    --id N              Only dump entry N (repeatable)
    --list              List catalog entries without dumping
    --corrupt-list PATH Where to write corrupt entry ids (default: corrupt_ids.txt)
    --strict            Exit non-zero if the catalog could not be fully decoded
    --verbose           Show every failed sprite
"""

import argparse
import os
import sys
import traceback

from .common.errors import DecodeError, SprDumpError
from .common.image import ensure_dir, new_raster, save_raster
from .dat_extract import CREATURE, ITEM, load_dat, print_catalog
from .spr_extract import SPRITE_SIZE, decode_sprite, load_spr

KIND_DIRS = {
    ITEM: 'Items',
    CREATURE: 'Creatures',
}

IDS_PER_LINE = 5


class DumpResult:
    def __init__(self):
        self.saved = 0
        self.corrupt = 0
        self.corrupt_ids = []

    def mark_corrupt(self, entry_id):
        self.corrupt += 1
        if entry_id not in self.corrupt_ids:
            self.corrupt_ids.append(entry_id)


def dump_entry(entry, atlas, out_dir, fmt, result, verbose=False):
    """Decode and save every sprite of one entry; failures are recorded, not raised."""
    kind_dir = os.path.join(out_dir, KIND_DIRS[entry.kind])
    num = 0
    raster = new_raster(SPRITE_SIZE, SPRITE_SIZE)
    for sprite_id in entry.sprite_ids:
        try:
            decode_sprite(atlas, sprite_id, raster)
        except DecodeError as e:
            result.mark_corrupt(entry.id)
            if verbose:
                print(f"\n  !! entry {entry.id}: {e}")
                traceback.print_exc(file=sys.stdout)
            continue
        save_raster(raster, os.path.join(kind_dir, f"{entry.id}_s{num}.{fmt}"))
        num += 1
        result.saved += 1
    return num


def dump_catalog(catalog, atlas, out_dir, fmt='png', only_ids=None, verbose=False):
    """Dump every entry of ``catalog``. Returns a DumpResult."""
    result = DumpResult()
    entries = catalog.entries
    if only_ids:
        wanted = set(only_ids)
        entries = [e for e in entries if e.id in wanted]

    total = len(entries) or 1
    for count, entry in enumerate(entries, 1):
        if entry.truncated:
            print(f"\n  WARNING: entry {entry.id} sprite table is truncated")
        dump_entry(entry, atlas, out_dir, fmt, result, verbose)
        if count % 2 == 0 or count == total:
            print(f"\r[{100 * count // total:3d}%]", end='', flush=True)
    print()
    return result


def write_corrupt_ids(path, ids):
    with open(path, 'w') as f:
        f.write("Corrupt item ids:\n")
        f.write("A\tB\tC\tD\tE\n")
        for i, entry_id in enumerate(ids, 1):
            f.write(f"{entry_id}\t")
            if i % IDS_PER_LINE == 0:
                f.write("\n")


def print_summary(result, corrupt_list):
    line = f"{result.saved} sprites were saved"
    if result.corrupt:
        line += f" and {result.corrupt} were corrupt"
        try:
            write_corrupt_ids(corrupt_list, result.corrupt_ids)
            line += f", successfully saved corrupt ids to {corrupt_list}"
        except OSError:
            line += f", failed to save corrupt ids to {corrupt_list}"
    print(line)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description='Dump every item/creature sprite from a Tibia .dat/.spr pair')
    ap.add_argument('output', help='Folder to dump into')
    ap.add_argument('--dat', default='Tibia.dat', help='Catalog file (default: Tibia.dat)')
    ap.add_argument('--spr', default='Tibia.spr', help='Sprite atlas (default: Tibia.spr)')
    ap.add_argument('--format', choices=['png', 'bmp'], default='png', help='Image format (default: png)')
    ap.add_argument('--id', type=int, action='append', dest='ids', help='Only dump this entry id (repeatable)')
    ap.add_argument('--list', '-l', action='store_true', help='List catalog entries without dumping')
    ap.add_argument('--corrupt-list', default='corrupt_ids.txt',
                    help='File receiving corrupt entry ids (default: corrupt_ids.txt)')
    ap.add_argument('--strict', action='store_true', help='Fail if the catalog is only partially decoded')
    ap.add_argument('--verbose', '-v', action='store_true', help='Show every failed sprite')
    args = ap.parse_args(argv)
    if not args.output.strip():
        ap.error("output folder must not be empty")
    return args


def main(argv=None):
    args = parse_args(argv)

    try:
        catalog = load_dat(args.dat)
        print(f"Creatures: {catalog.creatures_count} Items: {catalog.items_count} "
              f"Total: {catalog.expected_count}")
        if not catalog.complete:
            print(f"WARNING: catalog is incomplete ({len(catalog)} of "
                  f"{catalog.expected_count} entries decoded): {catalog.error}")
            if args.strict:
                return 1

        if args.list:
            print_catalog(catalog)
            return 0

        atlas = load_spr(args.spr)
        print(f"Total sprites found in {os.path.basename(args.spr)}: {atlas.total_sprites}")

        ensure_dir(args.output)
        for sub in KIND_DIRS.values():
            ensure_dir(os.path.join(args.output, sub))
    except (SprDumpError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print("Error is not recoverable, aborting now...", file=sys.stderr)
        return 1

    print(f"Now dumping sprites into {args.output} (This may take some time)...", flush=True)
    try:
        result = dump_catalog(catalog, atlas, args.output, args.format, args.ids, args.verbose)
    except OSError as e:
        print(f"\nERROR: could not write sprite image: {e}", file=sys.stderr)
        print("Error is not recoverable, aborting now...", file=sys.stderr)
        return 1
    print_summary(result, args.corrupt_list)
    return 0


if __name__ == '__main__':
    sys.exit(main())
