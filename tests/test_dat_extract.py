import pytest

from builders import build_dat, entry_bytes
from sprdump.common.cursor import ByteCursor
from sprdump.common.errors import (
    CannotOpen, OutOfRange, TrailingData, TruncatedSpriteTable, UnknownTag,
)
from sprdump.dat_extract import (
    ATTRIBUTE_TAGS, CREATURE, ITEM, load_dat, parse_dat, read_attributes, read_entry,
)


def test_tag_table_payload_widths():
    two = {t for t, (_, w) in ATTRIBUTE_TAGS.items() if w == 2}
    four = {t for t, (_, w) in ATTRIBUTE_TAGS.items() if w == 4}
    assert two == {0x00, 0x08, 0x09, 0x19, 0x1C, 0x1D, 0x20}
    assert four == {0x15, 0x18}
    assert 0xFF not in ATTRIBUTE_TAGS


@pytest.mark.parametrize('tag', sorted(ATTRIBUTE_TAGS))
def test_each_tag_consumes_its_payload(tag):
    name, width = ATTRIBUTE_TAGS[tag]
    stream = bytes([tag]) + b'\xAA' * width + b'\xFF' + b'\x99'
    c = ByteCursor(stream)
    assert read_attributes(c, 100) == [name]
    assert c.tell() == 1 + width + 1
    assert c.read_u8() == 0x99


def test_mixed_tag_stream_position():
    # stackable, light(4), minimap(2), look
    stream = b'\x05' + b'\x15\x01\x00\xd7\x00' + b'\x1c\x10\x00' + b'\x1f' + b'\xff'
    c = ByteCursor(stream)
    assert read_attributes(c, 100) == ['stackable', 'light', 'minimap_color', 'look']
    assert c.tell() == len(stream)


def test_unknown_tag():
    c = ByteCursor(b'\x05\x42\xff')
    with pytest.raises(UnknownTag) as exc:
        read_attributes(c, 123)
    assert exc.value.tag == 0x42
    assert exc.value.entry_id == 123
    assert exc.value.position == 1


def test_entry_single_tile():
    data = entry_bytes(tags=b'\x00\x96\x00', sprite_ids=(7,))
    c = ByteCursor(data)
    e = read_entry(c, 100)
    assert (e.width, e.height, e.exact_size) == (1, 1, 32)
    assert e.sprite_ids == [7]
    assert e.sprite_count == 1
    assert e.attributes == ['ground']
    assert c.tell() == len(data)


def test_entry_large_with_animation():
    ids = list(range(1, 2 * 2 * 3 + 1))
    data = entry_bytes(width=2, height=2, exact=64, grid=(1, 3, 1, 1, 1), sprite_ids=ids)
    c = ByteCursor(data)
    e = read_entry(c, 101)
    assert e.exact_size == 64
    assert e.grid == (1, 3, 1, 1, 1)
    assert e.sprite_count == 12
    assert len(e.sprite_ids) == e.sprite_count
    assert e.sprite_ids == ids
    assert c.tell() == len(data)


def test_exact_size_is_clamped():
    data = entry_bytes(width=2, height=1, exact=200, sprite_ids=(1, 2))
    e = read_entry(ByteCursor(data), 100)
    assert e.exact_size == 64


def test_zero_grid_dimension_means_no_sprites():
    data = entry_bytes(grid=(1, 1, 1, 1, 0), sprite_ids=())
    e = read_entry(ByteCursor(data), 100)
    assert e.sprite_count == 0
    assert e.sprite_ids == []


def test_short_sprite_table_leaves_zeros():
    data = entry_bytes(grid=(1, 1, 1, 1, 3), sprite_ids=(5,)) + b'\x06'
    e = read_entry(ByteCursor(data), 100)
    assert e.sprite_ids == [5, 0, 0]
    assert e.truncated


def test_catalog_kinds_and_ids():
    entries = [entry_bytes(sprite_ids=(i,)) for i in (1, 2, 3)]
    catalog = parse_dat(build_dat(entries, items_count=2, creatures_count=1))
    assert catalog.complete
    assert [e.id for e in catalog] == [100, 101, 102]
    assert [e.kind for e in catalog] == [ITEM, ITEM, CREATURE]
    assert [e.id for e in catalog.creatures] == [102]
    assert catalog.get(101).sprite_ids == [2]
    assert catalog.get(99) is None


def test_truncated_catalog_is_partial():
    good = entry_bytes(sprite_ids=(1,))
    cut = b'\x05\x00'   # stackable, then a ground tag missing its payload
    catalog = parse_dat(build_dat([good, cut], items_count=2))
    assert not catalog.complete
    assert len(catalog) == 1
    assert isinstance(catalog.error, OutOfRange)


def test_unknown_tag_stops_catalog():
    entries = [entry_bytes(sprite_ids=(1,)), b'\x77\xff', entry_bytes(sprite_ids=(2,))]
    catalog = parse_dat(build_dat(entries, items_count=3))
    assert len(catalog) == 1
    assert isinstance(catalog.error, UnknownTag)
    assert catalog.error.entry_id == 101


def test_short_header_raises():
    with pytest.raises(OutOfRange):
        parse_dat(b'\x00\x01\x02')


def test_load_dat_from_disk(tmp_path):
    p = tmp_path / 'Tibia.dat'
    p.write_bytes(build_dat([entry_bytes()]))
    catalog = load_dat(str(p))
    assert catalog.expected_count == 1
    assert catalog.complete
    with pytest.raises(CannotOpen):
        load_dat(str(tmp_path / 'missing.dat'))


def test_bytes_after_last_entry_are_reported():
    catalog = parse_dat(build_dat([entry_bytes(sprite_ids=(1,))]) + b'\x05\x05\x05')
    assert len(catalog) == 1
    assert not catalog.complete
    assert isinstance(catalog.error, TrailingData)
    assert catalog.error.count == 3


def test_truncated_last_entry_is_reported():
    first = entry_bytes(sprite_ids=(1,))
    last = entry_bytes(grid=(1, 1, 1, 1, 3), sprite_ids=(5,))
    catalog = parse_dat(build_dat([first, last]))
    assert len(catalog) == 2
    assert catalog.get(101).sprite_ids == [5, 0, 0]
    assert catalog.get(101).truncated
    assert not catalog.complete
    assert isinstance(catalog.error, TruncatedSpriteTable)
    assert catalog.error.entry_id == 101
    assert catalog.error.expected == 3
