"""Physical and protocol parameters of the simulated EPON."""

from __future__ import annotations

import math

OLT_ONU_DISTANCE = 20.0
"""Distance between the OLT and each ONU, in km."""

LIGHT_SPEED = 2e5
"""Propagation speed of light in fibre, in km/s."""

PON_LINK_DATARATE = 1e9
"""Line rate of the PON link, in bit/s."""

PKT_SZ_MIN = 64
"""Smallest Ethernet frame, in bytes."""

PKT_SZ_MAX = 1542
"""Largest Ethernet frame, in bytes."""

PKT_SZ_AVG = math.ceil((PKT_SZ_MIN + PKT_SZ_MAX) // 2)
"""Average frame size used to derive arrival rates, in bytes."""

GRANT_REQUEST_SIZE = 64
"""Size of a grant or request control frame, in bytes."""

ONU_BUFFER_CAPACITY = 10e6
"""Upstream buffer of each ONU, in bytes."""

T_GUARD = 5e-6
"""Guard time inserted between consecutive ONU transmissions, in seconds."""


def onu_max_grant(max_polling_cycle: float, onus: int) -> float:
    """Return the largest grant one ONU may receive in a polling cycle.

    ``max_polling_cycle`` is given in milliseconds. The cycle, less one guard
    time per ONU, is shared evenly among ``onus`` ONUs at the link rate and
    rounded down.
    """
    if onus < 1:
        raise ValueError(f"number of ONUs must be positive, got {onus}")
    usable = max_polling_cycle * 1e-3 - T_GUARD * onus
    return float(math.floor(usable * (PON_LINK_DATARATE / onus)))


def transmission_time(byte_length: float) -> float:
    """Return the time in seconds to put ``byte_length`` bytes on the PON link."""
    if byte_length < 0:
        raise ValueError(f"byte length must not be negative, got {byte_length}")
    return byte_length * 8 / PON_LINK_DATARATE