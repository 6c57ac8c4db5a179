"""Public IP change monitoring.

Each check re-reads the config document, asks the IP provider for the current
address, and records and announces any change. Lookup and email failures are
logged and never stop the loop; storage failures propagate.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from ipwatch.config import Config, load_config
from ipwatch.errors import NetworkError, NotifyError
from ipwatch.ip_provider import IpProvider
from ipwatch.store import DocumentStore

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Protocol for the notifier dependency."""

    def notify(self, config: Config, new_ip: str) -> None:
        ...

    def notify_failures(self, config: Config, failures: int) -> None:
        ...


class CheckStatus(Enum):
    """Outcome of a single IP check."""

    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"


@dataclass
class CheckResult:
    """Result of a single IP check.

    Attributes:
        status: What the check found.
        ip: Address reported by the provider, None on failure.
        previous_ip: Address stored before the check.
        notified: Whether an email went out (change or failure alert).
        error: Lookup error message on failure.
        interval_minutes: Check interval from the config used for this check.
    """

    status: CheckStatus
    ip: str | None = None
    previous_ip: str | None = None
    notified: bool = False
    error: str | None = None
    interval_minutes: int = 5


class IpMonitor:
    """Polls the public IP and emails the recipient when it changes.

    All collaborators are injected, including the sleep function, so tests
    can drive the loop without waiting.
    """

    def __init__(
        self,
        store: DocumentStore,
        ip_provider: IpProvider,
        notifier: Notifier,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize IP monitor.

        Args:
            store: Document store holding the configuration.
            ip_provider: Source of the current public IP.
            notifier: Sends change and failure emails.
            sleep: Called with the number of seconds to wait between checks.
        """
        self._store = store
        self._ip_provider = ip_provider
        self._notifier = notifier
        self._sleep = sleep
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the loop is active."""
        return self._running

    def check_once(self) -> CheckResult:
        """Perform one IP check.

        Returns:
            What the check found.

        Raises:
            StorageError: If the config document cannot be read or written.
        """
        config = load_config(self._store)

        try:
            new_ip = self._ip_provider.fetch_public_ip()
        except NetworkError as e:
            return self._handle_failure(config, e)

        if config.failure_count:
            logger.info(f"IP lookup recovered after {config.failure_count} failures")
            self._store.set_key("failureCount", 0)

        if new_ip == config.ip_address:
            logger.info(f"IP has not changed ({new_ip})")
            return CheckResult(
                status=CheckStatus.UNCHANGED,
                ip=new_ip,
                previous_ip=config.ip_address,
                interval_minutes=config.check_interval_minutes,
            )

        logger.info(f"IP has changed! Old: {config.ip_address}, New: {new_ip}")

        # Record before sending so a failed email is not re-sent for this change
        self._store.set_key("ipAddress", new_ip)
        notified = self._notify_change(config, new_ip)

        return CheckResult(
            status=CheckStatus.CHANGED,
            ip=new_ip,
            previous_ip=config.ip_address,
            notified=notified,
            interval_minutes=config.check_interval_minutes,
        )

    def run(self, max_iterations: int | None = None) -> int:
        """Check repeatedly, sleeping the configured interval in between.

        Args:
            max_iterations: Stop after this many checks. Runs until
                ``stop()`` when None.

        Returns:
            Number of checks performed.
        """
        self._running = True
        iterations = 0
        logger.info(f"Watching public IP, config at {self._store.path}")

        try:
            while self._running:
                result = self.check_once()
                iterations += 1
                if max_iterations is not None and iterations >= max_iterations:
                    break
                self._sleep(result.interval_minutes * 60)
        finally:
            self._running = False

        return iterations

    def stop(self) -> None:
        """Stop the loop after the current check."""
        self._running = False

    def _notify_change(self, config: Config, new_ip: str) -> bool:
        try:
            self._notifier.notify(config, new_ip)
        except NotifyError as e:
            logger.error(f"Could not send IP change email: {e}")
            return False
        return True

    def _handle_failure(self, config: Config, error: NetworkError) -> CheckResult:
        failures = config.failure_count + 1
        self._store.set_key("failureCount", failures)
        logger.warning(f"Error getting public IP ({failures} in a row): {error}")

        notified = False
        if config.failure_threshold and failures == config.failure_threshold:
            try:
                self._notifier.notify_failures(config, failures)
                notified = True
            except NotifyError as e:
                logger.error(f"Could not send failure alert: {e}")

        return CheckResult(
            status=CheckStatus.FAILED,
            previous_ip=config.ip_address,
            notified=notified,
            error=str(error),
            interval_minutes=config.check_interval_minutes,
        )
