"""Connectivity signal for the driver's device.

The effective signal is the network state AND NOT the operator's forced-offline
toggle. Listeners are told only when the effective value changes.
"""

from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    def __init__(self, network_online: bool = True, forced_offline: bool = False):
        self._network_online = network_online
        self._forced_offline = forced_offline
        self._listeners: list[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._network_online and not self._forced_offline

    @property
    def forced_offline(self) -> bool:
        return self._forced_offline

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def network_changed(self, online: bool) -> None:
        """Record a network up/down notification from the platform."""
        self._update(network_online=online, forced_offline=self._forced_offline)

    def force_offline(self, forced: bool) -> None:
        """Operator toggle that simulates loss of connectivity."""
        self._update(network_online=self._network_online, forced_offline=forced)

    def _update(self, network_online: bool, forced_offline: bool) -> None:
        was_online = self.is_online
        self._network_online = network_online
        self._forced_offline = forced_offline
        if self.is_online == was_online:
            return

        logger.info("Connectivity changed", online=self.is_online, forced_offline=forced_offline)
        for listener in list(self._listeners):
            listener(self.is_online)
