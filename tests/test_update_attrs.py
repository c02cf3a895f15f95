import struct

import pytest

from bgpwire.model import ParsedUpdateData, PeerInfo, UpdateAttrType
from bgpwire.update_attrs import decode_aggregator, decode_as_path, decode_attribute


def _seq(*asns, size=4, seg_type=2):
    fmt = "!I" if size == 4 else "!H"
    return bytes([seg_type, len(asns)]) + b"".join(struct.pack(fmt, a) for a in asns)


def test_as_path_four_octet_sequence():
    info = PeerInfo()
    result = decode_as_path(_seq(65000, 65001), info)
    assert result[UpdateAttrType.AS_PATH] == " 65000 65001"
    assert result[UpdateAttrType.INTERNAL_AS_COUNT] == "2"
    assert result[UpdateAttrType.INTERNAL_AS_ORIGIN] == "65001"
    assert info.using_2_octet_asn is False


def test_as_path_falls_back_to_two_octets():
    info = PeerInfo()
    result = decode_as_path(_seq(65000, 65001, size=2), info)
    assert info.using_2_octet_asn is True
    assert result[UpdateAttrType.AS_PATH] == " 65000 65001"
    assert result[UpdateAttrType.INTERNAL_AS_ORIGIN] == "65001"


def test_as_path_set_is_braced():
    info = PeerInfo()
    data = _seq(100, 200) + _seq(300, 400, seg_type=1)
    result = decode_as_path(data, info)
    assert result[UpdateAttrType.AS_PATH] == " 100 200 { 300 400 }"
    assert result[UpdateAttrType.INTERNAL_AS_COUNT] == "4"
    assert result[UpdateAttrType.INTERNAL_AS_ORIGIN] == "400"


def test_as_path_too_short_is_empty():
    assert decode_as_path(b"\x02", PeerInfo()) == {}


def test_as_path_truncated_with_two_octets_is_empty():
    info = PeerInfo(using_2_octet_asn=True)
    assert decode_as_path(b"\x02\x05\x00\x01", info) == {}
    assert info.using_2_octet_asn is True


def test_aggregator_four_octet():
    data = struct.pack("!I", 65000) + bytes([192, 0, 2, 1])
    assert decode_aggregator(data) == "65000 192.0.2.1"


def test_aggregator_two_octet():
    data = struct.pack("!H", 64512) + bytes([198, 51, 100, 7])
    assert decode_aggregator(data) == "64512 198.51.100.7"


def test_aggregator_bad_size():
    with pytest.raises(ValueError):
        decode_aggregator(b"\x00" * 5)


def test_bad_aggregator_attribute_is_skipped():
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.AGGEGATOR, b"\x00" * 7, parsed, PeerInfo())
    assert UpdateAttrType.AGGEGATOR not in parsed.attrs


@pytest.mark.parametrize("code,name", [(0, "igp"), (1, "egp"), (2, "incomplete"), (9, "")])
def test_origin(code, name):
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.ORIGIN, bytes([code]), parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.ORIGIN] == name


def test_next_hop_and_originator():
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.NEXT_HOP, bytes([10, 0, 0, 1]), parsed, PeerInfo())
    decode_attribute(UpdateAttrType.ORIGINATOR_ID, bytes([10, 0, 0, 2]), parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.NEXT_HOP] == "10.0.0.1"
    assert parsed.attrs[UpdateAttrType.ORIGINATOR_ID] == "10.0.0.2"


def test_med_and_local_pref():
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.MED, struct.pack("!I", 4294967295), parsed, PeerInfo())
    decode_attribute(UpdateAttrType.LOCAL_PREF, struct.pack("!I", 100), parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.MED] == "4294967295"
    assert parsed.attrs[UpdateAttrType.LOCAL_PREF] == "100"


def test_atomic_aggregate():
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.ATOMIC_AGGREGATE, b"\x00", parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.ATOMIC_AGGREGATE] == "1"


def test_cluster_list_keeps_trailing_space():
    parsed = ParsedUpdateData()
    decode_attribute(
        UpdateAttrType.CLUSTER_LIST, bytes([192, 0, 2, 1, 192, 0, 2, 2]), parsed, PeerInfo()
    )
    assert parsed.attrs[UpdateAttrType.CLUSTER_LIST] == "192.0.2.1 192.0.2.2 "


def test_communities():
    parsed = ParsedUpdateData()
    data = struct.pack("!HHHH", 65000, 100, 65001, 200)
    decode_attribute(UpdateAttrType.COMMUNITIES, data, parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.COMMUNITIES] == "65000:100 65001:200"


def test_large_communities():
    parsed = ParsedUpdateData()
    data = struct.pack("!III", 4200000000, 1, 2) + struct.pack("!III", 65000, 3, 4)
    decode_attribute(UpdateAttrType.LARGE_COMMUNITY, data, parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.LARGE_COMMUNITY] == "4200000000:1:2 65000:3:4"


def test_short_large_community_ignored():
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.LARGE_COMMUNITY, b"\x00" * 8, parsed, PeerInfo())
    assert UpdateAttrType.LARGE_COMMUNITY not in parsed.attrs


def test_as_path_attribute_fills_derived_values():
    parsed = ParsedUpdateData()
    decode_attribute(UpdateAttrType.AS_PATH, _seq(7018, 3356), parsed, PeerInfo())
    assert parsed.attrs[UpdateAttrType.AS_PATH] == " 7018 3356"
    assert parsed.attrs[UpdateAttrType.INTERNAL_AS_ORIGIN] == "3356"


@pytest.mark.parametrize(
    "attr_type", [UpdateAttrType.AS4_PATH, UpdateAttrType.AS_PATHLIMIT, 250]
)
def test_ignored_attributes_leave_attrs_empty(attr_type):
    parsed = ParsedUpdateData()
    decode_attribute(attr_type, b"\x00\x01\x02\x03", parsed, PeerInfo())
    assert parsed.attrs == {}