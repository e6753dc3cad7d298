"""Shared status monitor: one status subprocess, several consumers.

Spawns ONE ``voxlink status --follow --format json`` subprocess and fans each
JSON line out to every registered consumer channel. When the subprocess exits
a synthetic ``{"class":"stopped"}`` line is sent so consumers can react, then
the bus reconnects after a short delay. The bus stops by itself once every
consumer has closed its receiver.
"""

import logging
import subprocess
import threading
import time
from typing import Callable, List, Optional, Sequence

from ..models.events import BusLine
from .channel import ChannelClosed, Receiver, Sender, channel

logger = logging.getLogger(__name__)

STOPPED_LINE = '{"class":"stopped"}'


def fan_out(senders: Sequence[Sender], line) -> bool:
    """Send ``line`` to every sender.

    Returns:
        True if at least one consumer is still listening, False otherwise
        (including when there are no senders at all)
    """
    any_alive = False
    for sender in senders:
        try:
            sender.send(line)
            any_alive = True
        except ChannelClosed:
            continue
    return any_alive


class StatusBus:
    """Owns the status subprocess and broadcasts its lines."""

    SPAWN_RETRY_SECONDS = 5.0
    RECONNECT_DELAY_SECONDS = 2.0

    def __init__(self,
                 command: Sequence[str],
                 consumer_count: int = 2,
                 popen: Callable[..., subprocess.Popen] = subprocess.Popen,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize the bus.

        Args:
            command: argv of the status-streaming subprocess
            consumer_count: number of consumer channels handed out by start()
            popen: process factory (swapped out in tests)
            sleep: delay function (swapped out in tests)
        """
        self.command = list(command)
        self.consumer_count = consumer_count
        self._popen = popen
        self._sleep = sleep
        self.thread: Optional[threading.Thread] = None
        self.process: Optional[subprocess.Popen] = None
        self.spawn_count = 0
        self._stopped = threading.Event()

    def start(self) -> List[Receiver]:
        """Start the bus thread and return one receiver per consumer."""
        if self.thread is not None:
            raise RuntimeError("Status bus already started")

        senders = []
        receivers = []
        for _ in range(self.consumer_count):
            sender, receiver = channel()
            senders.append(sender)
            receivers.append(receiver)

        self.thread = threading.Thread(target=self.run, args=(senders,), name="status-bus", daemon=True)
        self.thread.start()
        logger.info(f"Status bus started with {len(receivers)} consumers: {' '.join(self.command)}")
        return receivers

    def run(self, senders: Sequence[Sender]) -> None:
        """Core bus loop: spawn, read lines, fan out, retry on failure."""
        while not self._stopped.is_set():
            process = self._spawn()
            if process is None:
                if not any(sender.is_connected for sender in senders):
                    logger.info("All status consumers disconnected, stopping status bus")
                    return
                self._sleep(self.SPAWN_RETRY_SECONDS)
                continue

            self.process = process
            try:
                if self._stopped.is_set():
                    break
                if not self._pump(process, senders):
                    logger.info("All status consumers disconnected, stopping status bus")
                    return
            finally:
                self.process = None
                self._reap(process)

            if self._stopped.is_set():
                break

            # Subprocess exited: notify consumers so they can show "stopped"
            if not fan_out(senders, BusLine(STOPPED_LINE)):
                logger.info("All status consumers disconnected, stopping status bus")
                return

            logger.info(f"Status subprocess ended, reconnecting in {self.RECONNECT_DELAY_SECONDS}s")
            self._sleep(self.RECONNECT_DELAY_SECONDS)

        logger.info("Status bus stopped")

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the bus and reap the running status subprocess.

        The bus thread may be blocked reading a subprocess that never writes
        (the daemon is down), so the subprocess is terminated from here.
        """
        self._stopped.set()
        process = self.process
        if process is not None:
            logger.debug(f"Terminating status subprocess pid={process.pid}")
            self._terminate(process, timeout)
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout)

    def _spawn(self) -> Optional[subprocess.Popen]:
        try:
            process = self._popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            logger.warning(f"Status bus: failed to spawn {self.command[0]}: {e}")
            return None

        if process.stdout is None:
            logger.warning("Status bus: no stdout from subprocess")
            self._reap(process)
            return None

        self.spawn_count += 1
        logger.debug(f"Status subprocess spawned (pid={process.pid}, attempt={self.spawn_count})")
        return process

    def _pump(self, process: subprocess.Popen, senders: Sequence[Sender]) -> bool:
        """Forward lines until the stream ends. Returns False once nobody listens."""
        try:
            for raw in process.stdout:
                line = BusLine(raw.rstrip("\r\n"))
                logger.debug(f"Status line: {line.raw}")
                if not fan_out(senders, line):
                    return False
        except (OSError, ValueError) as e:
            logger.warning(f"Status bus: stream error: {e}")
        return True

    def _terminate(self, process: subprocess.Popen, timeout: float = 2.0) -> None:
        if process.poll() is None:
            process.terminate()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Status subprocess pid={process.pid} did not exit, killing it")
            process.kill()
            process.wait()

    def _reap(self, process: subprocess.Popen) -> None:
        self._terminate(process)
        if process.stdout is not None:
            process.stdout.close()
