"""Decoders for BGP UPDATE messages, their path attributes and BGP link-state NLRI."""

__version__ = "0.1.0"