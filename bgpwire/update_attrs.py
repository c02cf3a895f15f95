"""Decoders for the path attributes carried in BGP UPDATE messages."""

from __future__ import annotations

import ipaddress
import logging
import struct

from bgpwire.model import ParsedUpdateData, PeerInfo, UpdateAttrType

_log = logging.getLogger(__name__)

_AS_SET = 1

_ORIGIN_NAMES = {0: "igp", 1: "egp", 2: "incomplete"}

_IGNORED = {
    UpdateAttrType.AS_PATHLIMIT,
    UpdateAttrType.AS4_PATH,
    UpdateAttrType.AS4_AGGREGATOR,
}


def _ipv4(raw: bytes) -> str:
    return str(ipaddress.IPv4Address(raw[:4]))


def decode_as_path(data: bytes, peer_info: PeerInfo) -> dict[UpdateAttrType, str]:
    """Decode an AS_PATH attribute value.

    Returns the AS_PATH string with the derived AS count and origin AS, or an
    empty dict when nothing could be decoded. If the path does not fit with
    4-octet ASNs, the peer is switched to 2-octet ASNs and decoding retried.
    """
    data = bytes(data)
    asn_size = 2 if peer_info.using_2_octet_asn else 4
    if len(data) < asn_size:
        return {}

    parts: list[str] = []
    count = 0
    last_asn = 0
    pos = 0
    while pos < len(data):
        if len(data) - pos < 2:
            break
        seg_type, seg_len = data[pos], data[pos + 1]
        pos += 2
        if seg_type == _AS_SET:
            parts.append("{")

        remaining = len(data) - pos
        if seg_len * asn_size > remaining:
            _log.info(
                "could not parse the AS PATH with ASN octet size %d (%d > %d)",
                asn_size, seg_len * asn_size, remaining,
            )
            if not peer_info.using_2_octet_asn:
                _log.info("switching AS PATH encoding size to 2-octet")
                peer_info.using_2_octet_asn = True
                return decode_as_path(data, peer_info)
            return {}

        for _ in range(seg_len):
            last_asn = int.from_bytes(data[pos:pos + asn_size], "big")
            pos += asn_size
            parts.append(str(last_asn))
            count += 1

        if seg_type == _AS_SET:
            parts.append("}")

    return {
        UpdateAttrType.AS_PATH: "".join(f" {part}" for part in parts),
        UpdateAttrType.INTERNAL_AS_COUNT: str(count),
        UpdateAttrType.INTERNAL_AS_ORIGIN: str(last_asn),
    }


def decode_aggregator(data: bytes) -> str:
    """Decode an AGGREGATOR value (2- or 4-octet ASN plus IPv4 address) as "ASN ADDR"."""
    data = bytes(data)
    if len(data) == 8:
        asn = struct.unpack_from("!I", data)[0]
        addr = data[4:8]
    elif len(data) == 6:
        asn = struct.unpack_from("!H", data)[0]
        addr = data[2:6]
    else:
        raise ValueError(
            f"aggregator attribute must be 6 or 8 octets, got {len(data)}"
        )
    return f"{asn} {_ipv4(addr)}"


def _communities(data: bytes) -> str:
    return " ".join(
        "{}:{}".format(*struct.unpack_from("!HH", data, off))
        for off in range(0, len(data) - 3, 4)
    )


def _large_communities(data: bytes) -> str:
    return " ".join(
        "{}:{}:{}".format(*struct.unpack_from("!III", data, off))
        for off in range(0, len(data) - 11, 12)
    )


def decode_attribute(
    attr_type: int, data: bytes, parsed: ParsedUpdateData, peer_info: PeerInfo
) -> None:
    """Decode one path attribute value and store the result in ``parsed.attrs``."""
    data = bytes(data)
    attrs = parsed.attrs

    if attr_type == UpdateAttrType.ORIGIN:
        attrs[UpdateAttrType.ORIGIN] = _ORIGIN_NAMES.get(data[0], "") if data else ""

    elif attr_type == UpdateAttrType.AS_PATH:
        attrs.update(decode_as_path(data, peer_info))

    elif attr_type in (UpdateAttrType.NEXT_HOP, UpdateAttrType.ORIGINATOR_ID):
        if len(data) < 4:
            _log.info("attribute type %d is too short for an IPv4 address", attr_type)
            return
        attrs[UpdateAttrType(attr_type)] = _ipv4(data)

    elif attr_type in (UpdateAttrType.MED, UpdateAttrType.LOCAL_PREF):
        if len(data) < 4:
            _log.info("attribute type %d is too short for a 32-bit value", attr_type)
            return
        attrs[UpdateAttrType(attr_type)] = str(struct.unpack_from("!I", data)[0])

    elif attr_type == UpdateAttrType.ATOMIC_AGGREGATE:
        attrs[UpdateAttrType.ATOMIC_AGGREGATE] = "1"

    elif attr_type == UpdateAttrType.AGGEGATOR:
        try:
            attrs[UpdateAttrType.AGGEGATOR] = decode_aggregator(data)
        except ValueError as exc:
            _log.error("%s", exc)

    elif attr_type == UpdateAttrType.CLUSTER_LIST:
        attrs[UpdateAttrType.CLUSTER_LIST] = "".join(
            f"{_ipv4(data[off:off + 4])} " for off in range(0, len(data) - 3, 4)
        )

    elif attr_type == UpdateAttrType.COMMUNITIES:
        attrs[UpdateAttrType.COMMUNITIES] = _communities(data)

    elif attr_type == UpdateAttrType.LARGE_COMMUNITY:
        if len(data) >= 12:
            attrs[UpdateAttrType.LARGE_COMMUNITY] = _large_communities(data)

    elif attr_type in _IGNORED:
        _log.debug("attribute type %d is not decoded, skipping", attr_type)

    else:
        _log.debug(
            "attribute type %d is not implemented or intentionally ignored, skipping",
            attr_type,
        )