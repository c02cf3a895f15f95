"""Parser for BGP-LS NLRI carried in MP_REACH and MP_UNREACH attributes."""

from __future__ import annotations

import ipaddress
import logging
import struct

from bgpwire.ls_descriptors import (
    node_hash_id,
    parse_link_descriptor,
    parse_node_descriptor,
    parse_prefix_descriptor,
    protocol_name,
)
from bgpwire.model import (
    LinkDescriptor,
    LinkStateNlriType,
    LsLink,
    LsNode,
    LsPrefix,
    NodeDescrType,
    NodeDescriptor,
    ParsedLinkState,
    ParsedUpdateData,
    PrefixDescriptor,
    Safi,
    UpdateAttrType,
)

_log = logging.getLogger(__name__)

_NLRI_HEADER = struct.Struct("!HH")
_NLRI_COMMON = struct.Struct("!BQ")
_DESCR_HEADER = struct.Struct("!HH")


class LinkStateNlriParser:
    """Decodes BGP-LS node, link and prefix NLRI into a parsed update."""

    def __init__(self, peer_addr: str, parsed: ParsedUpdateData) -> None:
        self.peer_addr = peer_addr
        self.parsed = parsed

    def parse_reach(self, safi: int, next_hop: bytes, nlri: bytes) -> ParsedLinkState:
        """Parse advertised link-state NLRI and record the next hop.

        Returns the collection the advertised objects were added to.
        """
        target = self.parsed.ls
        next_hop = bytes(next_hop)
        if len(next_hop) == 4:
            self.parsed.attrs[UpdateAttrType.NEXT_HOP] = str(ipaddress.IPv4Address(next_hop))
        elif len(next_hop) > 4:
            raw = next_hop[:16].ljust(16, b"\x00")
            self.parsed.attrs[UpdateAttrType.NEXT_HOP] = str(ipaddress.IPv6Address(raw))

        if safi != Safi.BGPLS:
            _log.info(
                "%s: MP_REACH AFI=bgp-ls SAFI=%d is not implemented yet, skipping for now",
                self.peer_addr, safi,
            )
            return target
        self._parse_nlri_data(bytes(nlri), target)
        return target

    def parse_unreach(self, safi: int, nlri: bytes) -> ParsedLinkState:
        """Parse withdrawn link-state NLRI.

        Returns the collection the withdrawn objects were added to.
        """
        target = self.parsed.ls_withdrawn
        if safi != Safi.BGPLS:
            _log.info(
                "%s: MP_UNREACH AFI=bgp-ls SAFI=%d is not implemented yet, skipping for now",
                self.peer_addr, safi,
            )
            return target
        self._parse_nlri_data(bytes(nlri), target)
        return target

    def _parse_nlri_data(self, data: bytes, target: ParsedLinkState) -> None:
        pos = 0
        while pos < len(data):
            if len(data) - pos < _NLRI_HEADER.size:
                _log.info("%s: bgp-ls: trailing NLRI data is too short", self.peer_addr)
                return
            nlri_type, nlri_len = _NLRI_HEADER.unpack_from(data, pos)
            pos += _NLRI_HEADER.size

            if nlri_len > len(data) - pos:
                _log.info(
                    "%s: bgp-ls: failed to parse link state NLRI; length is larger than available data",
                    self.peer_addr,
                )
                return
            if nlri_len < _NLRI_COMMON.size:
                _log.info(
                    "%s: bgp-ls: link state NLRI length %d is too short", self.peer_addr, nlri_len
                )
                return

            proto_id, ident = _NLRI_COMMON.unpack_from(data, pos)
            body = data[pos + _NLRI_COMMON.size:pos + nlri_len]

            if nlri_type == LinkStateNlriType.NODE:
                self._parse_node(body, ident, proto_id, target)
            elif nlri_type == LinkStateNlriType.LINK:
                self._parse_link(body, ident, proto_id, target)
            elif nlri_type == LinkStateNlriType.IPV4_PREFIX:
                self._parse_prefix(body, ident, proto_id, True, target)
            elif nlri_type == LinkStateNlriType.IPV6_PREFIX:
                self._parse_prefix(body, ident, proto_id, False, target)
            else:
                _log.info(
                    "%s: bgp-ls NLRI Type %d is not implemented yet, skipping for now",
                    self.peer_addr, nlri_type,
                )
                return

            pos += nlri_len

    def _read_node_block(self, data: bytes) -> tuple[int, NodeDescriptor, int] | None:
        """Read a local/remote node descriptor TLV: (type, info, bytes used)."""
        if len(data) < _DESCR_HEADER.size:
            _log.warning("%s: bgp-ls: node descriptor is too short", self.peer_addr)
            return None
        descr_type, descr_len = _DESCR_HEADER.unpack_from(data)
        available = len(data) - _DESCR_HEADER.size
        if descr_len > available:
            _log.warning(
                "%s: bgp-ls: failed to parse node descriptor; type length is larger than available data %d>=%d",
                self.peer_addr, descr_len, available,
            )
            return None
        block = data[_DESCR_HEADER.size:_DESCR_HEADER.size + descr_len]
        info = NodeDescriptor()
        offset = 0
        while offset < len(block):
            offset += parse_node_descriptor(block[offset:], info)
        node_hash_id(info)
        return descr_type, info, _DESCR_HEADER.size + descr_len

    def _parse_node(
        self, data: bytes, ident: int, proto_id: int, target: ParsedLinkState
    ) -> None:
        if len(data) < 4:
            _log.warning(
                "%s: bgp-ls: unable to parse node NLRI since it's too short (invalid)", self.peer_addr
            )
            return
        block = self._read_node_block(data)
        if block is None:
            return
        descr_type, info, _used = block
        if descr_type != NodeDescrType.LOCAL_DESCR:
            _log.warning(
                "%s: bgp-ls: failed to parse node descriptor; type (%d) is not local descriptor",
                self.peer_addr, descr_type,
            )
            return
        target.nodes.append(
            LsNode(
                id=ident,
                protocol=protocol_name(proto_id),
                is_ipv4=True,
                hash_id=info.hash_bin,
                asn=info.asn,
                ospf_area_id=info.ospf_area_id,
                bgp_ls_id=info.bgp_ls_id,
                igp_router_id=info.igp_router_id,
            )
        )

    def _parse_link(
        self, data: bytes, ident: int, proto_id: int, target: ParsedLinkState
    ) -> None:
        if len(data) < 4:
            _log.warning(
                "%s: bgp-ls: unable to parse link NLRI since it's too short (invalid)", self.peer_addr
            )
            return
        link = LsLink(id=ident, protocol=protocol_name(proto_id))

        for _ in range(2):
            block = self._read_node_block(data)
            if block is None:
                return
            descr_type, info, used = block
            data = data[used:]
            if descr_type == NodeDescrType.LOCAL_DESCR:
                link.local_node_hash_id = info.hash_bin
                link.ospf_area_id = info.ospf_area_id
                link.bgp_ls_id = info.bgp_ls_id
                link.local_node_asn = info.asn
                link.igp_router_id = info.igp_router_id
                link.local_bgp_router_id = info.bgp_router_id
            elif descr_type == NodeDescrType.REMOTE_DESCR:
                link.remote_node_hash_id = info.hash_bin
                link.remote_igp_router_id = info.igp_router_id
                link.remote_node_asn = info.asn
                link.remote_bgp_router_id = info.bgp_router_id
            else:
                _log.warning(
                    "%s: bgp-ls: failed to parse node descriptor; type (%d) is not local or remote descriptor",
                    self.peer_addr, descr_type,
                )

        descr = LinkDescriptor()
        offset = 0
        while offset < len(data):
            offset += parse_link_descriptor(data[offset:], descr)

        link.is_ipv4 = descr.is_ipv4
        link.mt_id = descr.mt_id
        link.local_link_id = descr.local_id
        link.remote_link_id = descr.remote_id
        link.intf_addr = descr.intf_addr
        link.nei_addr = descr.nei_addr
        target.links.append(link)

    def _parse_prefix(
        self, data: bytes, ident: int, proto_id: int, is_ipv4: bool, target: ParsedLinkState
    ) -> None:
        if len(data) < 4:
            _log.warning(
                "%s: bgp-ls: unable to parse prefix NLRI since it's too short (invalid)", self.peer_addr
            )
            return
        block = self._read_node_block(data)
        if block is None:
            return
        descr_type, local_node, used = block
        if descr_type != NodeDescrType.LOCAL_DESCR:
            _log.warning(
                "%s: bgp-ls: failed to parse node descriptor; type (%d) is not local descriptor",
                self.peer_addr, descr_type,
            )
            return
        data = data[used:]

        descr = PrefixDescriptor()
        offset = 0
        while offset < len(data):
            offset += parse_prefix_descriptor(data[offset:], descr, is_ipv4)

        target.prefixes.append(
            LsPrefix(
                id=ident,
                protocol=protocol_name(proto_id),
                is_ipv4=is_ipv4,
                prefix_len=descr.prefix_len,
                mt_id=descr.mt_id,
                ospf_area_id=local_node.ospf_area_id,
                bgp_ls_id=local_node.bgp_ls_id,
                igp_router_id=local_node.igp_router_id,
                local_node_hash_id=local_node.hash_bin,
                prefix_bin=descr.prefix,
                prefix_bcast_bin=descr.prefix_bcast,
                ospf_route_type=descr.ospf_route_type,
            )
        )