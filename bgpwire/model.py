"""Data types shared by the BGP message parsers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag, auto
from typing import Any


def _fixed(value: bytes, size: int, name: str) -> bytes:
    """Return ``value`` zero-padded to ``size`` bytes; reject longer values."""
    raw = bytes(value)
    if len(raw) > size:
        raise ValueError(f"{name} must be at most {size} bytes, got {len(raw)}")
    return raw.ljust(size, b"\x00")


class Afi(IntEnum):
    """Address family identifiers."""

    IPV4 = 1
    IPV6 = 2
    BGPLS = 16388


class Safi(IntEnum):
    """Subsequent address family identifiers."""

    UNICAST = 1
    MULTICAST = 2
    NLRI_LABEL = 4
    EVPN = 70
    BGPLS = 71
    MPLS = 128


class UpdateAttrType(IntEnum):
    """BGP path attribute type codes, plus internal derived attributes."""

    ORIGIN = 1
    AS_PATH = 2
    NEXT_HOP = 3
    MED = 4
    LOCAL_PREF = 5
    ATOMIC_AGGREGATE = 6
    AGGEGATOR = 7
    COMMUNITIES = 8
    ORIGINATOR_ID = 9
    CLUSTER_LIST = 10
    DPA = 11
    ADVERTISER = 12
    RCID_PATH = 13
    MP_REACH_NLRI = 14
    MP_UNREACH_NLRI = 15
    EXT_COMMUNITY = 16
    AS4_PATH = 17
    AS4_AGGREGATOR = 18
    AS_PATHLIMIT = 21
    IPV6_EXT_COMMUNITY = 25
    AIGP = 26
    BGP_LS = 29
    LARGE_COMMUNITY = 32
    BGP_LINK_STATE_OLD = 99
    BGP_ATTRIBUTE_SET = 128
    INTERNAL_AS_COUNT = 9000
    INTERNAL_AS_ORIGIN = 9001


class PrefixType(Enum):
    """Kind of prefix carried in a prefix tuple."""

    UNICAST_V4 = auto()
    UNICAST_V6 = auto()
    LABEL_UNICAST_V4 = auto()
    LABEL_UNICAST_V6 = auto()
    VPN_V4 = auto()
    VPN_V6 = auto()
    MULTICAST_V4 = auto()
    MULTICAST_V6 = auto()


@dataclass
class PrefixTuple:
    """One advertised or withdrawn prefix."""

    type: PrefixType = PrefixType.UNICAST_V4
    is_ipv4: bool = True
    prefix: str = ""
    prefix_len: int = 0
    path_id: int = 0
    prefix_bin: bytes = b""

    def __post_init__(self) -> None:
        self.prefix_bin = _fixed(self.prefix_bin, 16, "prefix_bin")


class _AddPathMode(IntFlag):
    RECEIVE = 1
    SEND = 2


@dataclass
class AddPathCapability:
    """ADD-PATH modes negotiated per AFI/SAFI in the sent and received OPEN messages."""

    sent: dict[tuple[int, int], int] = field(default_factory=dict)
    received: dict[tuple[int, int], int] = field(default_factory=dict)

    def add(self, afi: int, safi: int, send_receive: int, sent: bool) -> None:
        """Record the send/receive mode for an AFI/SAFI from a sent or received OPEN."""
        table = self.sent if sent else self.received
        table[(int(afi), int(safi))] = int(send_receive)

    def is_enabled(self, afi: int, safi: int) -> bool:
        """True when received updates for this AFI/SAFI carry path identifiers.

        That is the case when the local side offered to receive paths and the
        peer offered to send them.
        """
        key = (int(afi), int(safi))
        local = _AddPathMode(self.sent.get(key, 0) & 3)
        remote = _AddPathMode(self.received.get(key, 0) & 3)
        return _AddPathMode.RECEIVE in local and _AddPathMode.SEND in remote


@dataclass
class PeerInfo:
    """Persistent state kept for a BGP peer across messages."""

    sent_four_octet_asn: bool = False
    recv_four_octet_asn: bool = False
    using_2_octet_asn: bool = False
    end_of_rib: bool = False
    add_path_capability: AddPathCapability = field(default_factory=AddPathCapability)


class NlriProtocol(IntEnum):
    """BGP-LS NLRI protocol identifiers."""

    ISIS_L1 = 1
    ISIS_L2 = 2
    OSPFV2 = 3
    DIRECT = 4
    STATIC = 5
    OSPFV3 = 6
    EPE = 7


class LinkStateNlriType(IntEnum):
    """BGP-LS NLRI types."""

    NODE = 1
    LINK = 2
    IPV4_PREFIX = 3
    IPV6_PREFIX = 4


class NodeDescrType(IntEnum):
    """Node descriptor TLV and sub-TLV types."""

    LOCAL_DESCR = 256
    REMOTE_DESCR = 257
    AS = 512
    BGP_LS_ID = 513
    OSPF_AREA_ID = 514
    IGP_ROUTER_ID = 515
    BGP_ROUTER_ID = 516


class LinkDescrType(IntEnum):
    """Link descriptor sub-TLV types."""

    ID = 258
    IPV4_INTF_ADDR = 259
    IPV4_NEI_ADDR = 260
    IPV6_INTF_ADDR = 261
    IPV6_NEI_ADDR = 262
    MT_ID = 263


class PrefixDescrType(IntEnum):
    """Prefix descriptor sub-TLV types."""

    MT_ID = 263
    OSPF_ROUTE_TYPE = 264
    IP_REACH_INFO = 265


class OspfRouteType(IntEnum):
    """OSPF route types carried in prefix descriptors."""

    INTRA_AREA = 1
    INTER_AREA = 2
    EXTERNAL_1 = 3
    EXTERNAL_2 = 4
    NSSA_1 = 5
    NSSA_2 = 6


@dataclass
class NodeDescriptor:
    """Fields common to local and remote node descriptors."""

    asn: int = 0
    bgp_ls_id: int = 0
    igp_router_id: bytes = b""
    ospf_area_id: bytes = b""
    bgp_router_id: bytes = b""
    hash_bin: bytes = b""

    def __post_init__(self) -> None:
        self.igp_router_id = _fixed(self.igp_router_id, 8, "igp_router_id")
        self.ospf_area_id = _fixed(self.ospf_area_id, 4, "ospf_area_id")
        self.bgp_router_id = _fixed(self.bgp_router_id, 4, "bgp_router_id")
        self.hash_bin = _fixed(self.hash_bin, 16, "hash_bin")


@dataclass
class LinkDescriptor:
    """Link descriptor fields."""

    local_id: int = 0
    remote_id: int = 0
    intf_addr: bytes = b""
    nei_addr: bytes = b""
    mt_id: int = 0
    is_ipv4: bool = False

    def __post_init__(self) -> None:
        self.intf_addr = _fixed(self.intf_addr, 16, "intf_addr")
        self.nei_addr = _fixed(self.nei_addr, 16, "nei_addr")


@dataclass
class PrefixDescriptor:
    """Prefix descriptor fields."""

    ospf_route_type: str = ""
    mt_id: int = 0
    prefix: bytes = b""
    prefix_bcast: bytes = b""
    prefix_len: int = 0

    def __post_init__(self) -> None:
        self.prefix = _fixed(self.prefix, 16, "prefix")
        self.prefix_bcast = _fixed(self.prefix_bcast, 16, "prefix_bcast")


@dataclass
class LsNode:
    """A parsed BGP-LS node."""

    id: int = 0
    protocol: str = ""
    is_ipv4: bool = True
    hash_id: bytes = b""
    asn: int = 0
    ospf_area_id: bytes = b""
    bgp_ls_id: int = 0
    igp_router_id: bytes = b""

    def __post_init__(self) -> None:
        self.hash_id = _fixed(self.hash_id, 16, "hash_id")
        self.ospf_area_id = _fixed(self.ospf_area_id, 4, "ospf_area_id")
        self.igp_router_id = _fixed(self.igp_router_id, 8, "igp_router_id")


@dataclass
class LsLink:
    """A parsed BGP-LS link."""

    id: int = 0
    protocol: str = ""
    is_ipv4: bool = False
    mt_id: int = 0
    local_link_id: int = 0
    remote_link_id: int = 0
    intf_addr: bytes = b""
    nei_addr: bytes = b""
    local_node_hash_id: bytes = b""
    remote_node_hash_id: bytes = b""
    ospf_area_id: bytes = b""
    bgp_ls_id: int = 0
    igp_router_id: bytes = b""
    remote_igp_router_id: bytes = b""
    local_node_asn: int = 0
    remote_node_asn: int = 0
    local_bgp_router_id: bytes = b""
    remote_bgp_router_id: bytes = b""

    def __post_init__(self) -> None:
        self.intf_addr = _fixed(self.intf_addr, 16, "intf_addr")
        self.nei_addr = _fixed(self.nei_addr, 16, "nei_addr")
        self.local_node_hash_id = _fixed(self.local_node_hash_id, 16, "local_node_hash_id")
        self.remote_node_hash_id = _fixed(self.remote_node_hash_id, 16, "remote_node_hash_id")
        self.ospf_area_id = _fixed(self.ospf_area_id, 4, "ospf_area_id")
        self.igp_router_id = _fixed(self.igp_router_id, 8, "igp_router_id")
        self.remote_igp_router_id = _fixed(self.remote_igp_router_id, 8, "remote_igp_router_id")
        self.local_bgp_router_id = _fixed(self.local_bgp_router_id, 4, "local_bgp_router_id")
        self.remote_bgp_router_id = _fixed(self.remote_bgp_router_id, 4, "remote_bgp_router_id")


@dataclass
class LsPrefix:
    """A parsed BGP-LS prefix."""

    id: int = 0
    protocol: str = ""
    is_ipv4: bool = True
    prefix_len: int = 0
    mt_id: int = 0
    ospf_area_id: bytes = b""
    bgp_ls_id: int = 0
    igp_router_id: bytes = b""
    local_node_hash_id: bytes = b""
    prefix_bin: bytes = b""
    prefix_bcast_bin: bytes = b""
    ospf_route_type: str = ""

    def __post_init__(self) -> None:
        self.ospf_area_id = _fixed(self.ospf_area_id, 4, "ospf_area_id")
        self.igp_router_id = _fixed(self.igp_router_id, 8, "igp_router_id")
        self.local_node_hash_id = _fixed(self.local_node_hash_id, 16, "local_node_hash_id")
        self.prefix_bin = _fixed(self.prefix_bin, 16, "prefix_bin")
        self.prefix_bcast_bin = _fixed(self.prefix_bcast_bin, 16, "prefix_bcast_bin")


@dataclass
class ParsedLinkState:
    """Link-state objects found in one direction (reach or unreach)."""

    nodes: list[LsNode] = field(default_factory=list)
    links: list[LsLink] = field(default_factory=list)
    prefixes: list[LsPrefix] = field(default_factory=list)


@dataclass
class ParsedUpdateData:
    """Everything decoded from one UPDATE message."""

    attrs: dict[UpdateAttrType, str] = field(default_factory=dict)
    withdrawn: list[PrefixTuple] = field(default_factory=list)
    advertised: list[PrefixTuple] = field(default_factory=list)
    ls_attrs: dict[int, bytes] = field(default_factory=dict)
    ls: ParsedLinkState = field(default_factory=ParsedLinkState)
    ls_withdrawn: ParsedLinkState = field(default_factory=ParsedLinkState)
    vpn: list[Any] = field(default_factory=list)
    vpn_withdrawn: list[Any] = field(default_factory=list)
    evpn: list[Any] = field(default_factory=list)
    evpn_withdrawn: list[Any] = field(default_factory=list)