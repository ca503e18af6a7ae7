"""Tests for PodStatusPoller."""

import asyncio

import pytest
from unittest.mock import MagicMock
from kubernetes.client.exceptions import ApiException

from pod_deployer import EventPublisher, PodStatusPoller


def _pod(phase):
    return {"metadata": {"name": "web"}, "status": {"phase": phase}}


class TestPodStatusPoller:
    """Test cases for PodStatusPoller."""

    @pytest.mark.asyncio
    async def test_polls_until_running(self):
        """Test that polling stops once the pod is Running."""
        read_pod = MagicMock(side_effect=[_pod("Pending"), _pod("Pending"), _pod("Running")])
        updates = []
        completed = []
        poller = PodStatusPoller(
            read_pod, interval=0.01, on_update=updates.append, on_complete=completed.append
        )

        poller.start("web", "default")
        pod = await poller.wait()

        assert pod["status"]["phase"] == "Running"
        assert read_pod.call_count == 3
        read_pod.assert_called_with("web", "default")
        assert [p["status"]["phase"] for p in updates] == ["Pending", "Pending", "Running"]
        assert completed == [pod]
        assert not poller.running

    @pytest.mark.asyncio
    async def test_completion_event(self):
        """Test that reaching Running emits an event."""
        publisher = EventPublisher()
        received = []
        publisher.register_handler(received.append)
        poller = PodStatusPoller(
            MagicMock(return_value=_pod("Running")), interval=0.01, event_publisher=publisher
        )

        poller.start("web", "default")
        await poller.wait()

        assert [e.name for e in received] == ["deploy.pod.running"]

    @pytest.mark.asyncio
    async def test_cancel_mid_interval(self):
        """Test that cancelling during the wait stops all further reads."""
        read_pod = MagicMock(return_value=_pod("Pending"))
        on_update = MagicMock()
        poller = PodStatusPoller(read_pod, interval=10, on_update=on_update)

        poller.start("web", "default")
        await asyncio.sleep(0.05)
        poller.cancel()
        result = await poller.wait()

        assert result is None
        assert read_pod.call_count == 1
        assert on_update.call_count == 1
        assert not poller.running

        await asyncio.sleep(0.05)
        assert read_pod.call_count == 1

    @pytest.mark.asyncio
    async def test_cancel_before_first_read(self):
        """Test cancelling immediately after start."""
        read_pod = MagicMock(return_value=_pod("Pending"))
        on_update = MagicMock()
        poller = PodStatusPoller(read_pod, interval=0.01, on_update=on_update)

        poller.start("web", "default")
        poller.cancel()

        assert await poller.wait() is None
        on_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self):
        """Test cancelling a finished or never started poller."""
        poller = PodStatusPoller(MagicMock(return_value=_pod("Running")), interval=0.01)

        poller.cancel()
        poller.start("web", "default")
        await poller.wait()
        poller.cancel()
        poller.cancel()

        assert not poller.running

    @pytest.mark.asyncio
    async def test_read_error_surfaces(self):
        """Test that a read error ends polling and is raised from wait()."""
        read_pod = MagicMock(side_effect=ApiException(status=404, reason="Not Found"))
        poller = PodStatusPoller(read_pod, interval=0.01)

        poller.start("web", "default")

        with pytest.raises(ApiException):
            await poller.wait()
        assert read_pod.call_count == 1

    @pytest.mark.asyncio
    async def test_start_twice(self):
        """Test that a running poller cannot be started again."""
        poller = PodStatusPoller(MagicMock(return_value=_pod("Pending")), interval=10)

        poller.start("web", "default")
        try:
            with pytest.raises(RuntimeError):
                poller.start("web", "default")
        finally:
            poller.cancel()

    @pytest.mark.asyncio
    async def test_wait_without_start(self):
        """Test waiting on a poller that never started."""
        poller = PodStatusPoller(MagicMock(), interval=0.01)

        assert await poller.wait() is None
