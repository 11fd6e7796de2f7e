"""Discrete-event simulation of upstream traffic in an Ethernet PON with IPACT bandwidth allocation."""

__version__ = "0.1.0"

__all__ = ["codec", "engine", "network", "olt", "onu", "packet", "params", "ping", "splitter"]