"""Tests for the RF sweep and confirm state machines."""

from __future__ import annotations

import asyncio

import pytest

from broadlink_rm.exceptions import (
    RfConfirmTimeoutError,
    RfNotSupportedError,
    RfSweepFailedError,
    RfSweepTimeoutError,
)
from broadlink_rm.session import RawDataEvent, RfLearningState, SweepResultEvent

from conftest import DEVICE_HOST, build_data_reply, sent_operations


class TestSweepFrequency:
    """Tests for the sweep step."""

    @pytest.mark.asyncio
    async def test_success_before_timeout(self, rm_plus_session):
        session, transport = rm_plus_session
        future = session.sweep_frequency()
        assert session.rf.sweep_state == RfLearningState.IN_FLIGHT
        assert sent_operations(transport) == [0x19]

        await asyncio.sleep(0.1)
        assert sent_operations(transport) == [0x19, 0x1A]

        session.datagram_received(build_data_reply(0x1A, bytes([1])), DEVICE_HOST)
        assert await future is None
        assert session.rf.sweep_state == RfLearningState.COMPLETED

        # the timeout timer was cancelled; no cancel-learn follows
        await asyncio.sleep(0.3)
        assert sent_operations(transport) == [0x19, 0x1A]
        assert session.event_handlers == {}

    @pytest.mark.asyncio
    async def test_success_before_poll(self, rm_plus_session):
        session, transport = rm_plus_session
        future = session.sweep_frequency()
        session.emit(SweepResultEvent(True))
        await future
        await asyncio.sleep(0.1)
        assert sent_operations(transport) == [0x19]

    @pytest.mark.asyncio
    async def test_failure(self, rm_plus_session):
        session, _ = rm_plus_session
        future = session.sweep_frequency()
        session.emit(SweepResultEvent(False))
        with pytest.raises(RfSweepFailedError):
            await future

    @pytest.mark.asyncio
    async def test_timeout_sends_cancel(self, rm_plus_session):
        session, transport = rm_plus_session
        future = session.sweep_frequency()
        with pytest.raises(RfSweepTimeoutError) as exc_info:
            await future
        assert exc_info.value.timeout_secs == session.config.sweep_timeout_secs
        assert sent_operations(transport) == [0x19, 0x1A, 0x1E]

    @pytest.mark.asyncio
    async def test_late_result_ignored(self, rm_plus_session):
        session, _ = rm_plus_session
        future = session.sweep_frequency()
        with pytest.raises(RfSweepTimeoutError):
            await future
        session.emit(SweepResultEvent(True))
        assert isinstance(future.exception(), RfSweepTimeoutError)

    @pytest.mark.asyncio
    async def test_reinvocation_returns_pending_future(self, rm_plus_session):
        session, transport = rm_plus_session
        first = session.sweep_frequency()
        second = session.sweep_frequency()
        assert first is second
        assert sent_operations(transport) == [0x19]
        session.emit(SweepResultEvent(True))
        await first

        # a new sweep may start once the previous one settled
        third = session.sweep_frequency()
        assert third is not first
        third.cancel()
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_cancelled_future_cleans_up(self, rm_plus_session):
        session, transport = rm_plus_session
        future = session.sweep_frequency()
        future.cancel()
        await asyncio.sleep(0)
        assert session.rf.sweep_state == RfLearningState.COMPLETED
        assert session.event_handlers == {}
        await asyncio.sleep(0.35)
        assert sent_operations(transport) == [0x19]

    @pytest.mark.asyncio
    async def test_not_rf_capable(self, rm_session):
        session, transport = rm_session
        future = session.sweep_frequency()
        with pytest.raises(RfNotSupportedError):
            await future
        assert transport.sent == []
        assert session.rf.sweep_state == RfLearningState.IDLE


class TestConfirmFrequency:
    """Tests for the confirm step."""

    @pytest.mark.asyncio
    async def test_resolves_with_received_bytes(self, rm_plus_session):
        session, transport = rm_plus_session
        future = session.confirm_frequency()
        assert sent_operations(transport) == [0x1B]
        loop = asyncio.get_running_loop()
        loop.call_later(0.1, session.emit, RawDataEvent(bytes([0x01, 0x02, 0x03])))
        assert await future == bytes([0x01, 0x02, 0x03])
        assert sent_operations(transport) == [0x1B, 0x04]

    @pytest.mark.asyncio
    async def test_resolves_from_data_reply(self, rm_plus_session):
        session, _ = rm_plus_session
        code = bytes([0xB2, 0x00, 0x04, 0x00]) + bytes(range(8))
        future = session.confirm_frequency()
        session.datagram_received(build_data_reply(0x04, code), DEVICE_HOST)
        assert await future == code

    @pytest.mark.asyncio
    async def test_timeout(self, rm_plus_session):
        session, transport = rm_plus_session
        future = session.confirm_frequency()
        with pytest.raises(RfConfirmTimeoutError):
            await future
        assert sent_operations(transport) == [0x1B, 0x04]
        assert session.rf.confirm_state == RfLearningState.COMPLETED

    @pytest.mark.asyncio
    async def test_reinvocation_returns_pending_future(self, rm_plus_session):
        session, transport = rm_plus_session
        first = session.confirm_frequency()
        assert session.confirm_frequency() is first
        assert sent_operations(transport) == [0x1B]
        session.emit(RawDataEvent(b"\x01"))
        await first

    @pytest.mark.asyncio
    async def test_not_rf_capable(self, rm_session):
        session, transport = rm_session
        with pytest.raises(RfNotSupportedError):
            await session.confirm_frequency()
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_full_learning_sequence(self, rm_plus_session):
        session, transport = rm_plus_session
        sweep = session.sweep_frequency()
        session.datagram_received(build_data_reply(0x1A, bytes([1])), DEVICE_HOST)
        await sweep
        confirm = session.confirm_frequency()
        session.datagram_received(build_data_reply(0x04, bytes(range(12))), DEVICE_HOST)
        assert await confirm == bytes(range(12))
        assert sent_operations(transport) == [0x19, 0x1B]
