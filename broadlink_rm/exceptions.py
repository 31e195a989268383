#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from typing import Optional

class BroadlinkRmError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class PacketFormatError(BroadlinkRmError):
  """A packet could not be built or parsed because its layout is invalid."""
  pass

class RfLearningError(BroadlinkRmError):
  """Base class for failures of an RF learning sequence."""
  pass

class RfNotSupportedError(RfLearningError):
  """An RF operation was requested on a device without RF capability. Nothing was sent."""
  pass

class RfSweepFailedError(RfLearningError):
  """The device reported that the frequency sweep did not find a signal."""
  pass

class RfSweepTimeoutError(RfLearningError):
  """No sweep result arrived before the sweep timeout."""

  timeout_secs: Optional[float]

  def __init__(self, msg: str, timeout_secs: Optional[float]=None):
    super().__init__(msg)
    self.timeout_secs = timeout_secs

class RfConfirmTimeoutError(RfLearningError):
  """No learned RF code arrived before the confirm timeout."""

  timeout_secs: Optional[float]

  def __init__(self, msg: str, timeout_secs: Optional[float]=None):
    super().__init__(msg)
    self.timeout_secs = timeout_secs
