"""Binary encoding of PON frames and ping messages.

Every message starts with its name (a big-endian unsigned 32-bit byte count
followed by UTF-8 text) and its kind (signed 16-bit). A frame then carries its
byte length (signed 64-bit), the three timestamps (doubles), the ONU id
(signed 32-bit), the grant flag and amount, and the request flag and amount.
A ping carries only the ONU id (signed 32-bit). All fields are big-endian.
"""

from __future__ import annotations

import struct

from epon_ipact.packet import PonPacket
from epon_ipact.ping import Ping

_NAME_LENGTH = struct.Struct("!I")
_PACKET_BODY = struct.Struct("!hqdddi?d?d")
_PING_BODY = struct.Struct("!hi")


def _pack_name(name: str) -> bytes:
    encoded = name.encode("utf-8")
    return _NAME_LENGTH.pack(len(encoded)) + encoded


def _read_name(data: bytes) -> tuple[str, int]:
    if len(data) < _NAME_LENGTH.size:
        raise ValueError("truncated message: missing name length")
    (length,) = _NAME_LENGTH.unpack_from(data, 0)
    end = _NAME_LENGTH.size + length
    if len(data) < end:
        raise ValueError("truncated message: name shorter than its declared length")
    return data[_NAME_LENGTH.size:end].decode("utf-8"), end


def _read_body(layout: struct.Struct, data: bytes, offset: int, what: str) -> tuple:
    remaining = len(data) - offset
    if remaining < layout.size:
        raise ValueError(f"truncated {what}: expected {layout.size} body bytes, got {remaining}")
    if remaining > layout.size:
        raise ValueError(f"{remaining - layout.size} trailing bytes after {what}")
    return layout.unpack_from(data, offset)


def pack_packet(packet: PonPacket) -> bytes:
    """Encode a frame, including its name, kind and length, as bytes."""
    try:
        body = _PACKET_BODY.pack(
            packet.kind,
            packet.byte_length,
            packet.generation_time,
            packet.onu_arrival_time,
            packet.onu_departure_time,
            packet.onu_id,
            bool(packet.is_grant),
            packet.grant,
            bool(packet.is_request),
            packet.request,
        )
    except struct.error as exc:
        raise ValueError(f"cannot encode frame {packet.name!r}: {exc}") from exc
    return _pack_name(packet.name) + body


def unpack_packet(data: bytes) -> PonPacket:
    """Decode a frame produced by :func:`pack_packet`."""
    data = bytes(data)
    name, offset = _read_name(data)
    (
        kind,
        byte_length,
        generation_time,
        onu_arrival_time,
        onu_departure_time,
        onu_id,
        is_grant,
        grant,
        is_request,
        request,
    ) = _read_body(_PACKET_BODY, data, offset, "frame")
    return PonPacket(
        name=name,
        kind=kind,
        byte_length=byte_length,
        generation_time=generation_time,
        onu_arrival_time=onu_arrival_time,
        onu_departure_time=onu_departure_time,
        onu_id=onu_id,
        is_grant=is_grant,
        grant=grant,
        is_request=is_request,
        request=request,
    )


def pack_ping(message: Ping) -> bytes:
    """Encode a ping, including its name and kind, as bytes."""
    try:
        body = _PING_BODY.pack(message.kind, message.onu_id)
    except struct.error as exc:
        raise ValueError(f"cannot encode ping {message.name!r}: {exc}") from exc
    return _pack_name(message.name) + body


def unpack_ping(data: bytes) -> Ping:
    """Decode a ping produced by :func:`pack_ping`."""
    data = bytes(data)
    name, offset = _read_name(data)
    kind, onu_id = _read_body(_PING_BODY, data, offset, "ping")
    return Ping(name=name, kind=kind, onu_id=onu_id)