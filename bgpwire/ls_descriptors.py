"""Decoders for BGP-LS node, link and prefix descriptor sub-TLVs."""

from __future__ import annotations

import hashlib
import logging
import struct

from bgpwire.model import (
    LinkDescrType,
    LinkDescriptor,
    NlriProtocol,
    NodeDescrType,
    NodeDescriptor,
    OspfRouteType,
    PrefixDescriptor,
    PrefixDescrType,
)

_log = logging.getLogger(__name__)

_TLV_HEADER = struct.Struct("!HH")

_PROTOCOL_NAMES = {
    NlriProtocol.DIRECT: "Direct",
    NlriProtocol.STATIC: "Static",
    NlriProtocol.ISIS_L1: "IS-IS_L1",
    NlriProtocol.ISIS_L2: "IS-IS_L2",
    NlriProtocol.OSPFV2: "OSPFv2",
    NlriProtocol.OSPFV3: "OSPFv3",
    NlriProtocol.EPE: "EPE",
}

_OSPF_ROUTE_NAMES = {
    OspfRouteType.EXTERNAL_1: "Ext-1",
    OspfRouteType.EXTERNAL_2: "Ext-2",
    OspfRouteType.INTER_AREA: "Inter",
    OspfRouteType.INTRA_AREA: "Intra",
    OspfRouteType.NSSA_1: "NSSA-1",
    OspfRouteType.NSSA_2: "NSSA-2",
}


def protocol_name(proto_id: int) -> str:
    """Return the name of a BGP-LS protocol id, or an empty string if unknown."""
    return _PROTOCOL_NAMES.get(proto_id, "")


def _read_header(data: bytes, what: str) -> tuple[int, int] | None:
    """Return (type, length) of the sub-TLV, or None if it does not fit in ``data``."""
    if len(data) < _TLV_HEADER.size:
        _log.info("bgp-ls: failed to parse %s descriptor; too short", what)
        return None
    tlv_type, tlv_len = _TLV_HEADER.unpack_from(data)
    if tlv_len > len(data) - _TLV_HEADER.size:
        _log.info(
            "bgp-ls: failed to parse %s descriptor; type length is larger than available data %d>=%d",
            what, tlv_len, len(data),
        )
        return None
    return tlv_type, tlv_len


def _overlay(buffer: bytes, value: bytes) -> bytes:
    """Replace the leading bytes of ``buffer`` with ``value``, keeping its size."""
    return value[: len(buffer)] + buffer[len(value):]


def _mt_id(value: bytes) -> int:
    """Multi-topology id: the first 16 bits of the value."""
    return int.from_bytes(value[:2], "big")


def parse_node_descriptor(data: bytes, info: NodeDescriptor) -> int:
    """Decode one node descriptor sub-TLV into ``info``; return the bytes consumed."""
    data = bytes(data)
    header = _read_header(data, "node")
    if header is None:
        return len(data)
    tlv_type, tlv_len = header
    value = data[4:4 + tlv_len]
    read = 4

    if tlv_type == NodeDescrType.AS:
        if tlv_len != 4:
            _log.info("bgp-ls: failed to parse node descriptor AS sub-tlv; too short")
            return read + tlv_len
        info.asn = struct.unpack("!I", value)[0]
        return read + 4

    if tlv_type == NodeDescrType.BGP_LS_ID:
        if tlv_len != 4:
            _log.info("bgp-ls: failed to parse node descriptor BGP-LS ID sub-tlv; too short")
            return read + tlv_len
        info.bgp_ls_id = struct.unpack("!I", value)[0]
        return read + 4

    if tlv_type == NodeDescrType.OSPF_AREA_ID:
        if tlv_len != 4:
            _log.info("bgp-ls: failed to parse node descriptor OSPF Area ID sub-tlv; too short")
            return read + tlv_len
        info.ospf_area_id = value
        return read + 4

    if tlv_type == NodeDescrType.IGP_ROUTER_ID:
        if tlv_len > 8:
            _log.info(
                "bgp-ls: failed to parse node descriptor IGP Router ID sub-tlv; len (%d) is invalid",
                tlv_len,
            )
            return read + tlv_len
        info.igp_router_id = value.ljust(8, b"\x00")
        return read + tlv_len

    if tlv_type == NodeDescrType.BGP_ROUTER_ID:
        if tlv_len != 4:
            _log.info("bgp-ls: failed to parse node descriptor BGP Router ID sub-tlv; too short")
            return read + tlv_len
        info.bgp_router_id = value
        return read + 4

    _log.info("bgp-ls: node descriptor sub-tlv %d not yet implemented, skipping", tlv_type)
    return read + tlv_len


def parse_link_descriptor(data: bytes, info: LinkDescriptor) -> int:
    """Decode one link descriptor sub-TLV into ``info``; return the bytes consumed."""
    data = bytes(data)
    header = _read_header(data, "link")
    if header is None:
        return len(data)
    tlv_type, tlv_len = header
    value = data[4:4 + tlv_len]
    read = 4

    if tlv_type == LinkDescrType.ID:
        if tlv_len != 8:
            _log.info("bgp-ls: failed to parse link ID descriptor sub-tlv; too short")
            return read + tlv_len
        info.local_id, info.remote_id = struct.unpack("!II", value)
        return read + 8

    if tlv_type == LinkDescrType.MT_ID:
        if tlv_len < 2:
            _log.info("bgp-ls: failed to parse link MT-ID descriptor sub-tlv; too short")
            return read + tlv_len
        if tlv_len > 4:
            _log.debug("bgp-ls: failed to parse link MT-ID descriptor sub-tlv; too long %d", tlv_len)
            info.mt_id = 0
            return read + tlv_len
        info.mt_id = _mt_id(value)
        return read + tlv_len

    if tlv_type in (LinkDescrType.IPV4_INTF_ADDR, LinkDescrType.IPV4_NEI_ADDR,
                    LinkDescrType.IPV6_INTF_ADDR, LinkDescrType.IPV6_NEI_ADDR):
        ipv4 = tlv_type in (LinkDescrType.IPV4_INTF_ADDR, LinkDescrType.IPV4_NEI_ADDR)
        size = 4 if ipv4 else 16
        info.is_ipv4 = ipv4
        if tlv_len != size:
            _log.info("bgp-ls: failed to parse link descriptor address sub-tlv %d; bad length", tlv_type)
            return read + tlv_len
        if tlv_type in (LinkDescrType.IPV4_INTF_ADDR, LinkDescrType.IPV6_INTF_ADDR):
            info.intf_addr = _overlay(info.intf_addr, value)
        else:
            info.nei_addr = _overlay(info.nei_addr, value)
        return read + size

    _log.info("bgp-ls: link descriptor sub-tlv %d not yet implemented, skipping", tlv_type)
    return read + tlv_len


def _apply_reach_info(value: bytes, info: PrefixDescriptor, is_ipv4: bool) -> None:
    info.prefix_len = value[0]
    info.prefix = value[1:17].ljust(16, b"\x00")

    if is_ipv4:
        if info.prefix_len < 32:
            host_mask = (1 << (32 - info.prefix_len)) - 1
            bcast = int.from_bytes(info.prefix[:4], "big") | host_mask
            info.prefix_bcast = _overlay(info.prefix_bcast, bcast.to_bytes(4, "big"))
        else:
            info.prefix_bcast = info.prefix
    else:
        if info.prefix_len < 128:
            host_mask = (1 << (128 - info.prefix_len)) - 1
            bcast = int.from_bytes(info.prefix, "big") | host_mask
            info.prefix_bcast = bcast.to_bytes(16, "big")
        else:
            info.prefix_bcast = info.prefix


def parse_prefix_descriptor(data: bytes, info: PrefixDescriptor, is_ipv4: bool) -> int:
    """Decode one prefix descriptor sub-TLV into ``info``; return the bytes consumed."""
    data = bytes(data)
    header = _read_header(data, "prefix")
    if header is None:
        return len(data)
    tlv_type, tlv_len = header
    value = data[4:4 + tlv_len]
    read = 4

    if tlv_type == PrefixDescrType.IP_REACH_INFO:
        if tlv_len < 1:
            _log.info("bgp-ls: not parsing prefix ip_reach_info sub-tlv; too short at len=%d", tlv_len)
            return read
        _apply_reach_info(value, info, is_ipv4)
        return read + tlv_len

    if tlv_type == PrefixDescrType.MT_ID:
        if tlv_len < 2:
            _log.info("bgp-ls: failed to parse prefix MT-ID descriptor sub-tlv; too short")
            return read + tlv_len
        if tlv_len > 4:
            _log.debug("bgp-ls: failed to parse prefix MT-ID descriptor sub-tlv; too long %d", tlv_len)
            info.mt_id = 0
            return read + tlv_len
        info.mt_id = _mt_id(value)
        return read + tlv_len

    if tlv_type == PrefixDescrType.OSPF_ROUTE_TYPE:
        route_type = data[4] if len(data) > 4 else 0
        info.ospf_route_type = _OSPF_ROUTE_NAMES.get(route_type, "Intra")
        return read + 1

    _log.info("bgp-ls: prefix descriptor sub-tlv %d not yet implemented, skipping", tlv_type)
    return read + tlv_len


def node_hash_id(info: NodeDescriptor) -> bytes:
    """Compute the MD5 hash identifying a node, store it in ``info.hash_bin`` and return it.

    The hash covers the IGP router id, BGP-LS id, ASN and OSPF area id; the two
    integers are hashed in little-endian byte order.
    """
    digest = hashlib.md5()
    digest.update(info.igp_router_id)
    digest.update(struct.pack("<I", info.bgp_ls_id))
    digest.update(struct.pack("<I", info.asn))
    digest.update(info.ospf_area_id)
    info.hash_bin = digest.digest()
    return info.hash_bin