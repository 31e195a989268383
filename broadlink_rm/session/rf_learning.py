# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RF code learning.

Learning an RF code takes two steps, each driven by a device command, a delayed poll
and a timeout:

  1. Sweep. The device scans frequencies while the user holds the remote button.
     After RF_SWEEP_POLL_DELAY seconds the sweep state is polled; the device answers
     asynchronously with a SweepResultEvent. If nothing arrives by RF_SWEEP_TIMEOUT,
     learning is cancelled on the device and the step fails.

  2. Confirm. The user presses the button again briefly. After RF_CONFIRM_POLL_DELAY
     seconds learned data is polled; the device answers with a RawDataEvent carrying
     the code. If nothing arrives by RF_CONFIRM_TIMEOUT the step fails.

The device does not answer either poll synchronously, so local timers stand in for a
request/response turnaround. Whichever of an event or the timeout arrives first
settles the step and cancels the other.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from aenum import Enum as AEnum

from ..internal_types import *
from ..pkg_logging import logger
from ..exceptions import (
    RfNotSupportedError,
    RfSweepFailedError,
    RfSweepTimeoutError,
    RfConfirmTimeoutError,
  )
from .events import SessionEvent, SweepResultEvent, RawDataEvent

if TYPE_CHECKING:
    from .device_session import DeviceSession

class RfLearningState(AEnum):
    IDLE                        = "idle"
    """Not started."""

    IN_FLIGHT                   = "in_flight"
    """The device command was sent; waiting for an event or the timeout."""

    COMPLETED                   = "completed"
    """Settled by an event, the timeout, or cancellation of the result future."""

class RfLearningStep(ABC):
    """One sweep or confirm invocation. Settles its future exactly once."""

    name: str = "rf_learning_step"

    session: DeviceSession
    poll_delay: float
    timeout: float
    state: RfLearningState = RfLearningState.IDLE
    future: asyncio.Future[Any]

    _poll_timer: Optional[asyncio.TimerHandle] = None
    _timeout_timer: Optional[asyncio.TimerHandle] = None
    _handler_id: Optional[int] = None

    def __init__(self, session: DeviceSession, poll_delay: float, timeout: float) -> None:
        self.session = session
        self.poll_delay = poll_delay
        self.timeout = timeout

    @property
    def done(self) -> bool:
        return self.state == RfLearningState.COMPLETED

    def start(self) -> asyncio.Future[Any]:
        """Sends the step's device command and arms the poll and timeout timers.

        Must be called from within the running event loop.
        """
        assert self.state == RfLearningState.IDLE
        loop = asyncio.get_running_loop()
        self.future = loop.create_future()
        self.future.add_done_callback(self._on_future_done)
        self.state = RfLearningState.IN_FLIGHT
        self._handler_id = self.session.add_event_handler(self._on_event)
        self._poll_timer = loop.call_later(self.poll_delay, self._on_poll_timer)
        self._timeout_timer = loop.call_later(self.timeout, self._on_timeout_timer)
        logger.debug(f"{self}: started (poll at +{self.poll_delay}s, timeout at +{self.timeout}s)")
        self.send_start()
        return self.future

    def _settle(self, result: Any=None, exc: Optional[BaseException]=None) -> None:
        if self.state == RfLearningState.COMPLETED:
            return
        self.state = RfLearningState.COMPLETED
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
        if self._timeout_timer is not None:
            self._timeout_timer.cancel()
            self._timeout_timer = None
        if self._handler_id is not None:
            self.session.remove_event_handler(self._handler_id)
            self._handler_id = None
        if not self.future.done():
            if exc is None:
                logger.debug(f"{self}: resolved")
                self.future.set_result(result)
            else:
                logger.debug(f"{self}: rejected: {exc}")
                self.future.set_exception(exc)

    def _on_future_done(self, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            logger.debug(f"{self}: result cancelled by caller")
            self._settle()

    def _on_poll_timer(self) -> None:
        self._poll_timer = None
        if self.state == RfLearningState.IN_FLIGHT:
            self.send_poll()

    def _on_timeout_timer(self) -> None:
        self._timeout_timer = None
        if self.state == RfLearningState.IN_FLIGHT:
            self.on_timeout()

    def _on_event(self, event: SessionEvent) -> None:
        if self.state == RfLearningState.IN_FLIGHT:
            self.on_event(event)

    @abstractmethod
    def send_start(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    def send_poll(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    def on_event(self, event: SessionEvent) -> None:
        raise NotImplementedError()

    @abstractmethod
    def on_timeout(self) -> None:
        raise NotImplementedError()

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.session.identity_str}, {self.state.name})"

    def __repr__(self) -> str:
        return str(self)

class RfSweepStep(RfLearningStep):
    """Idle -> Sweeping -> Succeeded | Failed | TimedOut"""

    name = "sweep"

    def send_start(self) -> None:
        self.session.dispatcher.enter_rf_sweep()

    def send_poll(self) -> None:
        self.session.dispatcher.check_rf_sweep()

    def on_event(self, event: SessionEvent) -> None:
        if isinstance(event, SweepResultEvent):
            if event.success:
                self._settle(None)
            else:
                self._settle(exc=RfSweepFailedError(f"{self.session}: RF frequency sweep was unsuccessful"))

    def on_timeout(self) -> None:
        logger.info(f"{self.session}: RF sweep timed out after {self.timeout}s; cancelling learning")
        self.session.dispatcher.cancel_learn()
        self._settle(exc=RfSweepTimeoutError(
            f"{self.session}: RF frequency sweep timed out after {self.timeout} seconds", self.timeout))

class RfConfirmStep(RfLearningStep):
    """Idle -> AwaitingPress -> Resolved | TimedOut"""

    name = "confirm"

    def send_start(self) -> None:
        self.session.dispatcher.find_rf_packet()

    def send_poll(self) -> None:
        self.session.dispatcher.check_data()

    def on_event(self, event: SessionEvent) -> None:
        if isinstance(event, RawDataEvent):
            self._settle(event.data)

    def on_timeout(self) -> None:
        self._settle(exc=RfConfirmTimeoutError(
            f"{self.session}: no RF code received within {self.timeout} seconds", self.timeout))

class RfLearningStateMachine:
    """Tracks the sweep and confirm steps of one session, allowing at most one of
       each in flight. Invoking a step while one is pending returns the pending future."""

    session: DeviceSession
    sweep_step: Optional[RfSweepStep] = None
    confirm_step: Optional[RfConfirmStep] = None

    def __init__(self, session: DeviceSession) -> None:
        self.session = session

    @property
    def sweep_state(self) -> RfLearningState:
        return RfLearningState.IDLE if self.sweep_step is None else self.sweep_step.state

    @property
    def confirm_state(self) -> RfLearningState:
        return RfLearningState.IDLE if self.confirm_step is None else self.confirm_step.state

    def _refused(self, step_name: str) -> asyncio.Future[Any]:
        logger.warning(f"{self.session}: RF {step_name} refused; device has no RF capability")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        future.set_exception(RfNotSupportedError(
            f"{self.session}: {self.session.classification.description} does not support RF"))
        return future

    def sweep_frequency(self) -> asyncio.Future[None]:
        """Starts an RF frequency sweep, or returns the pending sweep's future.

        The future resolves to None on success, and fails with RfSweepFailedError,
        RfSweepTimeoutError, or RfNotSupportedError.
        """
        if not self.session.is_rf_capable:
            return self._refused("sweep")
        if self.sweep_step is not None and self.sweep_step.state == RfLearningState.IN_FLIGHT:
            return self.sweep_step.future
        config = self.session.config
        self.sweep_step = RfSweepStep(self.session, config.sweep_poll_delay_secs, config.sweep_timeout_secs)
        return self.sweep_step.start()

    def confirm_frequency(self) -> asyncio.Future[bytes]:
        """Asks the device for the learned RF code, or returns the pending confirm's future.

        Only meaningful after a successful sweep. The future resolves to the raw
        learned code bytes, or fails with RfConfirmTimeoutError or RfNotSupportedError.
        """
        if not self.session.is_rf_capable:
            return self._refused("confirm")
        if self.confirm_step is not None and self.confirm_step.state == RfLearningState.IN_FLIGHT:
            return self.confirm_step.future
        config = self.session.config
        self.confirm_step = RfConfirmStep(self.session, config.confirm_poll_delay_secs, config.confirm_timeout_secs)
        return self.confirm_step.start()
