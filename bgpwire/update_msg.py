"""Parser for BGP UPDATE messages."""

from __future__ import annotations

import ipaddress
import logging
import struct

from bgpwire.model import (
    Afi,
    ParsedUpdateData,
    PeerInfo,
    PrefixTuple,
    PrefixType,
    Safi,
)
from bgpwire.update_attrs import decode_attribute

_log = logging.getLogger(__name__)

_U16 = struct.Struct("!H")
_U32 = struct.Struct("!I")
_ATTR_FLAG_EXTENDED = 0x10


class UpdateMsgError(ValueError):
    """Raised when an UPDATE message cannot be parsed."""


class UpdateMsgParser:
    """Parses UPDATE messages for one peer, using and updating its peer info."""

    def __init__(self, peer_addr: str, router_addr: str, peer_info: PeerInfo) -> None:
        self.peer_addr = peer_addr
        self.router_addr = router_addr
        self.peer_info = peer_info

    def _where(self) -> str:
        return f"{self.peer_addr}: rtr={self.router_addr}"

    def parse(self, data: bytes) -> ParsedUpdateData:
        """Parse an UPDATE message body, starting at the withdrawn routes length."""
        data = bytes(data)
        parsed = ParsedUpdateData()
        _log.debug("%s: parsing update message of size %d", self._where(), len(data))

        if len(data) < 2:
            raise UpdateMsgError(f"{self._where()}: update message is too short to parse header")
        (withdrawn_len,) = _U16.unpack_from(data)
        pos = 2

        if len(data) - pos < withdrawn_len:
            raise UpdateMsgError(
                f"{self._where()}: update message is too short to parse withdrawn data"
            )
        withdrawn = data[pos:pos + withdrawn_len]
        pos += withdrawn_len

        if len(data) - pos < 2:
            raise UpdateMsgError(
                f"{self._where()}: update message is too short to parse attribute length"
            )
        (attr_len,) = _U16.unpack_from(data, pos)
        pos += 2

        if len(data) - pos < attr_len:
            raise UpdateMsgError(f"{self._where()}: update message is too short to parse attr data")
        attrs = data[pos:pos + attr_len]
        pos += attr_len
        nlri = data[pos:]

        if not withdrawn_len and not attr_len and not nlri:
            self.peer_info.end_of_rib = True
            _log.info("%s: End-Of-RIB marker", self._where())
            return parsed

        if withdrawn:
            parsed.withdrawn.extend(self._parse_nlri_v4(withdrawn))
        if attrs:
            self._parse_attributes(attrs, parsed)
        if nlri:
            parsed.advertised.extend(self._parse_nlri_v4(nlri))
        return parsed

    def _parse_nlri_v4(self, data: bytes) -> list[PrefixTuple]:
        """Decode IPv4 unicast prefixes, with path identifiers when ADD-PATH is on."""
        add_path = self.peer_info.add_path_capability.is_enabled(Afi.IPV4, Safi.UNICAST)
        prefixes: list[PrefixTuple] = []
        pos = 0
        while pos < len(data):
            path_id = 0
            if add_path and len(data) - pos >= 4:
                (path_id,) = _U32.unpack_from(data, pos)
                pos += 4
            if pos >= len(data):
                _log.info("%s: NLRI v4 entry is truncated", self._where())
                break

            bits = data[pos]
            pos += 1
            addr_bytes = (bits + 7) // 8
            if addr_bytes > 4:
                _log.info(
                    "%s: NLRI v4 address is larger than 4 bytes bytes=%d len=%d",
                    self._where(), addr_bytes, bits,
                )
                break
            if len(data) - pos < addr_bytes:
                _log.info("%s: NLRI v4 prefix is truncated", self._where())
                break

            raw = data[pos:pos + addr_bytes].ljust(4, b"\x00")
            pos += addr_bytes
            prefix = str(ipaddress.IPv4Address(raw))
            _log.debug("%s: adding prefix %s len %d", self._where(), prefix, bits)
            prefixes.append(
                PrefixTuple(
                    type=PrefixType.UNICAST_V4,
                    is_ipv4=True,
                    prefix=prefix,
                    prefix_len=bits,
                    path_id=path_id,
                    prefix_bin=raw,
                )
            )
        return prefixes

    def _parse_attributes(self, data: bytes, parsed: ParsedUpdateData) -> None:
        """Walk the path attributes and decode each one into ``parsed``."""
        if len(data) < 3:
            _log.warning(
                "%s: cannot parse the attributes, data is too short; len=%d",
                self._where(), len(data),
            )
            return

        pos = 0
        while pos < len(data):
            if len(data) - pos < 3:
                _log.info("%s: trailing attribute data is too short", self._where())
                return
            flags, attr_type = data[pos], data[pos + 1]
            pos += 2

            if flags & _ATTR_FLAG_EXTENDED:
                if len(data) - pos < 2:
                    _log.info("%s: extended attribute length is truncated", self._where())
                    return
                (attr_len,) = _U16.unpack_from(data, pos)
                pos += 2
            else:
                attr_len = data[pos]
                pos += 1

            _log.debug("%s: attribute type=%d len=%d", self._where(), attr_type, attr_len)

            if attr_len > len(data) - pos:
                _log.info(
                    "%s: attribute data len of %d is larger than available data of %d",
                    self._where(), attr_len, len(data) - pos,
                )
                return
            if attr_len:
                decode_attribute(attr_type, data[pos:pos + attr_len], parsed, self.peer_info)
                pos += attr_len