"""Pod status polling until the pod is running."""

import asyncio
import logging
from typing import Any, Callable, Optional

from tenacity import AsyncRetrying, retry_if_result, stop_never, wait_fixed

from .events import POD_RUNNING_EVENT, EventPublisher
from .models import PodPhase

logger = logging.getLogger(__name__)


def pod_phase(pod: Optional[dict[str, Any]]) -> Optional[str]:
    """Return ``status.phase`` of a pod dict."""
    if not pod:
        return None
    return (pod.get("status") or {}).get("phase")


def _not_running(pod: Optional[dict[str, Any]]) -> bool:
    return pod_phase(pod) != PodPhase.RUNNING.value


class PodStatusPoller:
    """
    Re-reads a pod at a fixed interval until it is Running.

    The poller owns a single asyncio task. ``cancel()`` stops it at once,
    including during the wait between two reads, and no callback is invoked
    afterwards.
    """

    def __init__(
        self,
        read_pod: Callable[[str, str], dict[str, Any]],
        interval: float = 2.0,
        on_update: Optional[Callable[[dict[str, Any]], None]] = None,
        on_complete: Optional[Callable[[dict[str, Any]], None]] = None,
        event_publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize poller.

        Args:
            read_pod: Blocking function reading a pod by (name, namespace)
            interval: Seconds between two reads
            on_update: Called with each pod read
            on_complete: Called once with the Running pod
            event_publisher: Receives the completion event
        """
        self.read_pod = read_pod
        self.interval = interval
        self.on_update = on_update
        self.on_complete = on_complete
        self.event_publisher = event_publisher

        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self.last_pod: Optional[dict[str, Any]] = None

    @property
    def running(self) -> bool:
        """True while the polling task is active."""
        return self._task is not None and not self._task.done()

    def start(self, name: str, namespace: str) -> asyncio.Task:
        """
        Start polling a pod.

        Args:
            name: Pod name
            namespace: Kubernetes namespace

        Returns:
            The polling task
        """
        if self.running:
            raise RuntimeError("Poller already running")

        self._cancelled = False
        self._task = asyncio.create_task(self._poll(name, namespace))
        logger.info(f"Polling status of pod {namespace}/{name} every {self.interval}s")
        return self._task

    async def _check(self, name: str, namespace: str) -> dict[str, Any]:
        pod = await asyncio.to_thread(self.read_pod, name, namespace)
        if self._cancelled:
            raise asyncio.CancelledError()
        self.last_pod = pod
        if self.on_update:
            self.on_update(pod)
        return pod

    async def _poll(self, name: str, namespace: str) -> dict[str, Any]:
        retrying = AsyncRetrying(
            retry=retry_if_result(_not_running),
            wait=wait_fixed(self.interval),
            stop=stop_never,
        )
        try:
            pod = await retrying(self._check, name, namespace)
        except asyncio.CancelledError:
            logger.info(f"Polling cancelled for pod {namespace}/{name}")
            raise
        except Exception as e:
            logger.error(f"Error polling pod {namespace}/{name}: {e}", exc_info=True)
            raise

        logger.info(f"Pod {namespace}/{name} is running")
        if self.on_complete:
            self.on_complete(pod)
        if self.event_publisher:
            self.event_publisher.emit(POD_RUNNING_EVENT, {"namespace": namespace})
        return pod

    def cancel(self) -> None:
        """Stop polling. Safe to call at any time, any number of times."""
        self._cancelled = True
        if self._task and not self._task.done():
            self._task.cancel()

    async def wait(self) -> Optional[dict[str, Any]]:
        """
        Wait for polling to end.

        Returns:
            The Running pod, or None if polling was cancelled or never started

        Raises:
            Exception: Any error raised while reading the pod
        """
        if not self._task:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            if self._cancelled:
                return None
            raise
