import ipaddress
import struct

import pytest

from bgpwire.model import PeerInfo, PrefixType, UpdateAttrType
from bgpwire.update_msg import UpdateMsgError, UpdateMsgParser


def make_update(withdrawn=b"", attrs=b"", nlri=b""):
    return (
        struct.pack("!H", len(withdrawn))
        + withdrawn
        + struct.pack("!H", len(attrs))
        + attrs
        + nlri
    )


def attr(attr_type, value, extended=False):
    if extended:
        return struct.pack("!BBH", 0x50, attr_type, len(value)) + value
    return struct.pack("!BBB", 0x40, attr_type, len(value)) + value


def prefix(text, bits, path_id=None):
    raw = ipaddress.IPv4Address(text).packed[: (bits + 7) // 8]
    head = b"" if path_id is None else struct.pack("!I", path_id)
    return head + bytes([bits]) + raw


def parser(peer_info=None):
    return UpdateMsgParser("192.0.2.1", "198.51.100.1", peer_info or PeerInfo())


def test_end_of_rib_marker_sets_flag():
    info = PeerInfo()
    parsed = parser(info).parse(make_update())
    assert info.end_of_rib is True
    assert parsed.advertised == []
    assert parsed.attrs == {}


def test_regular_update_does_not_mark_end_of_rib():
    info = PeerInfo()
    parser(info).parse(make_update(nlri=prefix("10.1.0.0", 16)))
    assert info.end_of_rib is False


def test_advertised_prefixes_and_attributes():
    attrs = (
        attr(UpdateAttrType.ORIGIN, b"\x00")
        + attr(UpdateAttrType.AS_PATH, b"\x02\x02" + struct.pack("!II", 65001, 65002))
        + attr(UpdateAttrType.NEXT_HOP, ipaddress.IPv4Address("192.0.2.254").packed)
    )
    nlri = prefix("10.1.0.0", 16) + prefix("172.16.5.0", 24)
    parsed = parser().parse(make_update(attrs=attrs, nlri=nlri))

    assert [(p.prefix, p.prefix_len) for p in parsed.advertised] == [
        ("10.1.0.0", 16),
        ("172.16.5.0", 24),
    ]
    assert all(p.type is PrefixType.UNICAST_V4 and p.is_ipv4 for p in parsed.advertised)
    assert parsed.advertised[0].prefix_bin[:4] == ipaddress.IPv4Address("10.1.0.0").packed
    assert len(parsed.advertised[0].prefix_bin) == 16
    assert parsed.attrs[UpdateAttrType.ORIGIN] == "igp"
    assert parsed.attrs[UpdateAttrType.AS_PATH] == " 65001 65002"
    assert parsed.attrs[UpdateAttrType.INTERNAL_AS_ORIGIN] == "65002"
    assert parsed.attrs[UpdateAttrType.NEXT_HOP] == "192.0.2.254"


def test_withdrawn_prefixes():
    parsed = parser().parse(make_update(withdrawn=prefix("10.2.3.0", 24)))
    assert [(p.prefix, p.prefix_len) for p in parsed.withdrawn] == [("10.2.3.0", 24)]
    assert parsed.advertised == []


def test_default_route():
    parsed = parser().parse(make_update(nlri=prefix("0.0.0.0", 0)))
    assert [(p.prefix, p.prefix_len) for p in parsed.advertised] == [("0.0.0.0", 0)]


def test_add_path_identifiers():
    info = PeerInfo()
    info.add_path_capability.add(1, 1, 1, True)
    info.add_path_capability.add(1, 1, 2, False)
    nlri = prefix("10.9.0.0", 16, path_id=7) + prefix("10.8.0.0", 16, path_id=9)
    parsed = parser(info).parse(make_update(nlri=nlri))
    assert [(p.prefix, p.path_id) for p in parsed.advertised] == [
        ("10.9.0.0", 7),
        ("10.8.0.0", 9),
    ]


def test_without_add_path_path_id_is_zero():
    parsed = parser().parse(make_update(nlri=prefix("10.9.0.0", 16)))
    assert [p.path_id for p in parsed.advertised] == [0]


def test_oversized_prefix_length_is_skipped():
    parsed = parser().parse(make_update(nlri=bytes([40]) + b"\x0a" * 5))
    assert parsed.advertised == []


def test_extended_length_attribute():
    attrs = attr(UpdateAttrType.MED, struct.pack("!I", 100), extended=True)
    parsed = parser().parse(make_update(attrs=attrs, nlri=prefix("10.0.0.0", 8)))
    assert parsed.attrs[UpdateAttrType.MED] == "100"


def test_truncated_attribute_keeps_earlier_ones():
    good = attr(UpdateAttrType.ORIGIN, b"\x00")
    bad = struct.pack("!BBB", 0x40, UpdateAttrType.MED, 20) + b"\x00\x00"
    parsed = parser().parse(make_update(attrs=good + bad, nlri=prefix("10.0.0.0", 8)))
    assert parsed.attrs == {UpdateAttrType.ORIGIN: "igp"}
    assert len(parsed.advertised) == 1


def test_too_short_for_header():
    with pytest.raises(UpdateMsgError):
        parser().parse(b"\x00")


def test_withdrawn_length_exceeds_data():
    with pytest.raises(UpdateMsgError):
        parser().parse(struct.pack("!H", 10) + b"\x00\x00")


def test_attribute_length_exceeds_data():
    with pytest.raises(UpdateMsgError):
        parser().parse(struct.pack("!HH", 0, 30) + b"\x40\x01\x01\x00")


def test_missing_attribute_length():
    with pytest.raises(UpdateMsgError):
        parser().parse(struct.pack("!H", 0))