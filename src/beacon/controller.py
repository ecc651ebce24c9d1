"""Registration lifecycle for this process's discovery entry.

The controller keeps exactly one piece of mutable state: the plugin
identity the registry assigned to us, if any. While no identity is held
a RetryTimer keeps calling :meth:`RegistrationController.attempt_registration`;
once an attempt registers *and* publishes, the identity is stored and the
timer is cancelled. Every failure path goes through the same
compensating deregistration, which never raises and always clears the
identity.

Thread Safety:
    Attempts run on the timer's single thread. ``stop()`` may be called
    from any thread; it cancels the timer and then takes the same lock the
    attempt holds, so it never interleaves with an in-flight attempt.
    ``is_registered`` and ``plugin`` read a published reference and never
    take the lock, so they answer immediately during an attempt.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional

from .config import AgentConfig, callback_url, connect_url, resolve_jmx_port
from .errors import StateInvariantViolation
from .registry import DiscoveryNode, DiscoveryTarget, PluginInfo, RegistrationInfo
from .timer import RetryTimer


logger = logging.getLogger(__name__)


class RegistrationState(Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


@dataclass(frozen=True)
class ControllerState:
    """Point-in-time snapshot of the controller."""
    plugin: Optional[PluginInfo]
    timer_active: bool
    started: bool
    stopped: bool

    @property
    def registration(self) -> RegistrationState:
        if self.plugin is not None:
            return RegistrationState.REGISTERED
        return RegistrationState.UNREGISTERED

    @property
    def consistent(self) -> bool:
        """Identity held iff the retry timer is inactive (while running)."""
        if not self.started or self.stopped:
            return True
        return (self.plugin is not None) != self.timer_active


class RegistrationController:
    """Registers this process with the discovery registry and keeps it registered.

    *client* needs ``register``, ``update`` and ``deregister`` methods
    returning :class:`~beacon.registry.CallResult` values; normally a
    :class:`~beacon.registry.RegistryClient`. *timer_factory* is called
    as ``timer_factory(interval, callback)`` and must return an object with
    ``start()``, ``cancel()`` and ``active``.
    """

    def __init__(self, config: AgentConfig, client,
                 timer_factory: Callable[..., RetryTimer] = RetryTimer,
                 environ: Optional[Mapping[str, str]] = None):
        self._config = config
        self._client = client
        self._timer_factory = timer_factory
        self._environ = environ
        self._lock = threading.RLock()
        self._plugin: Optional[PluginInfo] = None
        # Set only once an attempt has published; read without the lock
        self._registered: Optional[PluginInfo] = None
        self._timer = None
        self._started = False
        self._stopped = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        with self._lock:
            return ControllerState(
                plugin=self._plugin,
                timer_active=self._timer is not None and self._timer.active,
                started=self._started,
                stopped=self._stopped,
            )

    @property
    def plugin(self) -> Optional[PluginInfo]:
        """The published identity. Does not wait for an in-flight attempt."""
        return self._registered

    @property
    def is_registered(self) -> bool:
        return self.plugin is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Arm the retry timer. The first attempt fires immediately on its thread."""
        with self._lock:
            if self._started or self._stopped:
                return
            timer = self._timer_factory(self._config.retry_interval,
                                        self.attempt_registration)
            self._timer = timer
            self._started = True
            timer.start()

    def stop(self) -> None:
        """Cancel retries and deregister if registered. Never raises."""
        timer = self._timer
        if timer is not None:
            timer.cancel()
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
            if self._plugin is not None:
                self._deregister()
                logger.info("%s -> %s", RegistrationState.REGISTERED.value,
                            RegistrationState.UNREGISTERED.value)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def attempt_registration(self) -> bool:
        """Register and publish once. Returns True if we end up registered."""
        with self._lock:
            if self._stopped:
                return False
            if self._plugin is not None:
                return True

            try:
                registered = self._register_and_publish()
            except StateInvariantViolation:
                raise
            except Exception:
                logger.warning("registration attempt raised, will retry", exc_info=True)
                registered = False
            if not registered:
                self._deregister()
                return False

            self._registered = self._plugin
            if self._timer is not None:
                self._timer.cancel()
            logger.info("%s -> %s [%s]", RegistrationState.UNREGISTERED.value,
                        RegistrationState.REGISTERED.value, self._plugin.id)
            return True

    def _register_and_publish(self) -> bool:
        info = RegistrationInfo.create(self._config.app_name, callback_url(self._config))
        logger.info("registering self as %s at %s", info.realm, self._config.registry_url)
        result = self._client.register(info)
        if not result.ok:
            logger.warning("registration failed, will retry: %s", result.error)
            return False

        # Held so that a failed publish deregisters this identity
        self._plugin = result.value
        return self._publish()

    def _publish(self) -> bool:
        if self._plugin is None:
            raise StateInvariantViolation("publish attempted with no pending plugin identity")

        port = resolve_jmx_port(self._config, self._environ)
        target = DiscoveryTarget(
            connect_url=connect_url(self._config.jmx_host, port),
            alias=self._config.app_name,
        )
        node = DiscoveryNode(node_id=f"{self._config.app_name}-{self._plugin.id}", target=target)

        logger.info("publishing self as %s", target.connect_url)
        result = self._client.update(self._plugin.id, [node])
        if not result.ok:
            logger.warning("publishing discovery node failed, will retry: %s", result.error)
            return False
        return True

    def _deregister(self) -> None:
        """Best-effort removal of our registry entry; always clears the identity."""
        plugin = self._plugin
        if plugin is None:
            return
        try:
            logger.info("deregistering as %s", plugin.id)
            result = self._client.deregister(plugin.id)
            if result.ok:
                logger.info("deregistered from discovery registry [%s]", plugin.id)
            else:
                logger.warning("failed to deregister from discovery registry [%s]: %s",
                               plugin.id, result.error)
        except Exception:
            logger.warning("failed to deregister from discovery registry [%s]",
                           plugin.id, exc_info=True)
        finally:
            self._plugin = None
            self._registered = None
