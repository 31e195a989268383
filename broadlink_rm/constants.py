# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by broadlink_rm"""

DISCOVERY_PORT = 80
"""The UDP port on which RM devices listen for discovery broadcasts."""

DEFAULT_BROADCAST_ADDRESS = "255.255.255.255"
"""The default address discovery packets are broadcast to."""

DEFAULT_DISCOVERY_WAIT_TIME = 5.0
"""The default time (in seconds) to wait for devices to answer discovery and finish their handshake."""

DEFAULT_HANDSHAKE_TIMEOUT = 5.0
"""The default time (in seconds) to wait for a handshake reply from a device."""

RF_SWEEP_POLL_DELAY = 10.0
"""Seconds after entering RF sweep mode before the sweep state is polled. Gives the user
   time to press and hold the remote button."""

RF_SWEEP_TIMEOUT = 30.0
"""Seconds after entering RF sweep mode before the sweep is cancelled and fails."""

RF_CONFIRM_POLL_DELAY = 5.0
"""Seconds after asking the device to find the RF packet before learned data is polled."""

RF_CONFIRM_TIMEOUT = 10.0
"""Seconds after asking the device to find the RF packet before the confirm step fails."""

IR_LEARN_TIMEOUT = 30.0
"""Seconds to wait for an IR code after entering learning mode."""

IR_LEARN_POLL_INTERVAL = 1.0
"""Seconds between check-data polls while learning an IR code."""
