# bgpwire

Pure-Python decoders for BGP data: UPDATE messages with their path attributes
and IPv4 NLRI, and BGP link-state (BGP-LS) NLRI. It has no dependencies
outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Peer state

`bgpwire.model.PeerInfo` holds the state kept for one peer across messages.
This covers whether AS paths use 2-octet ASNs, whether an End-of-RIB marker
has been seen, and the negotiated ADD-PATH modes. ADD-PATH modes are recorded
with `AddPathCapability.add`:

```python
from bgpwire.model import Afi, PeerInfo, Safi

peer = PeerInfo()
# local side offered to receive paths, the peer offered to send them
peer.add_path_capability.add(Afi.IPV4, Safi.UNICAST, 1, sent=True)
peer.add_path_capability.add(Afi.IPV4, Safi.UNICAST, 2, sent=False)
assert peer.add_path_capability.is_enabled(Afi.IPV4, Safi.UNICAST)
```

When ADD-PATH is enabled for IPv4 unicast, each IPv4 prefix in an UPDATE is
read with a 4-byte path identifier in front of it.

## Decoding an UPDATE message

```python
from bgpwire.update_msg import UpdateMsgParser

parser = UpdateMsgParser("192.0.2.1", "198.51.100.7", peer)
parsed = parser.parse(update_payload)  # body, starting at the withdrawn routes length

for prefix in parsed.advertised:
    print(prefix.prefix, prefix.prefix_len, prefix.path_id)
for attr_type, value in parsed.attrs.items():
    print(attr_type.name, value)
```

`parse` returns a `ParsedUpdateData` holding the decoded attributes and the
withdrawn and advertised prefixes. It raises `UpdateMsgError` if the message
is too short for its own length fields. An UPDATE with no withdrawn routes,
no attributes and no NLRI is an End-of-RIB marker. For such a message the
parser sets `peer.end_of_rib` and returns an empty result.

The attributes decoded into strings are:

- ORIGIN
- AS_PATH, together with the derived `INTERNAL_AS_COUNT` and `INTERNAL_AS_ORIGIN`
- NEXT_HOP
- MED
- LOCAL_PREF
- ATOMIC_AGGREGATE
- AGGREGATOR (`UpdateAttrType.AGGEGATOR`)
- ORIGINATOR_ID
- CLUSTER_LIST
- COMMUNITIES
- LARGE_COMMUNITY

Other attribute types are skipped.

Individual attributes can also be decoded on their own with functions from
`bgpwire.update_attrs`:

- `decode_attribute(attr_type, data, parsed, peer_info)`
- `decode_as_path(data, peer_info)` returns a dict of AS_PATH, AS count and origin AS. If the path does not fit with 4-octet ASNs, it switches the peer to 2-octet ASNs and tries again.
- `decode_aggregator(data)` returns `"ASN ADDR"`. It raises `ValueError` for lengths other than 6 or 8.

## BGP link state

`bgpwire.ls_nlri.LinkStateNlriParser` decodes BGP-LS node, link and prefix
NLRI into a `ParsedUpdateData`:

```python
from bgpwire.ls_nlri import LinkStateNlriParser
from bgpwire.model import ParsedUpdateData, Safi

parsed = ParsedUpdateData()
ls = LinkStateNlriParser("192.0.2.1", parsed)
ls.parse_reach(Safi.BGPLS, next_hop_bytes, reach_nlri_bytes)   # fills parsed.ls
ls.parse_unreach(Safi.BGPLS, unreach_nlri_bytes)               # fills parsed.ls_withdrawn
```

`parse_reach` also stores the next hop, as IPv4 or IPv6 text, under the
`NEXT_HOP` attribute.

The lower-level descriptor decoders are in `bgpwire.ls_descriptors`:

- `parse_node_descriptor`
- `parse_link_descriptor`
- `parse_prefix_descriptor`
- `protocol_name`
- `node_hash_id`

`node_hash_id` computes the MD5 identifier used to match links and prefixes
to their nodes.

## What it does not do

- It does not decode BGP OPEN messages or their capabilities. The caller sets
  ADD-PATH modes and the 4-octet ASN flags on `PeerInfo` itself.
- `UpdateMsgParser` does not decode these attributes:
  - MP_REACH_NLRI and MP_UNREACH_NLRI
  - extended communities
  - the BGP-LS path attribute

  To decode link-state NLRI, take the SAFI, next hop and NLRI bytes out of
  MP_REACH/MP_UNREACH yourself and pass them to `LinkStateNlriParser`.
  `ParsedUpdateData.ls_attrs`, `vpn` and `evpn` are never filled by this
  package.
- There is no collector: no BMP listener, no network I/O, no storage and no
  command-line tool. The package only turns bytes into Python objects.