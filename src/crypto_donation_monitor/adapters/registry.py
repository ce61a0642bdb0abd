# -*- coding: utf-8 -*-
"""Maps each Network to the adapter that serves it."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import structlog

from crypto_donation_monitor.adapters.base import NetworkAdapter
from crypto_donation_monitor.config.networks import Network, parse_network
from crypto_donation_monitor.exceptions import ConfigurationError


class AdapterRegistry:
    """Lookup table of network adapters.

    Every supported network is expected to have an adapter; a missing one is a
    wiring mistake and is raised as ConfigurationError, not a provider failure.
    """

    def __init__(
        self,
        adapters: Iterable[NetworkAdapter] = (),
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._adapters: dict[Network, NetworkAdapter] = {}
        self._logger = get_logger(logger_name or self.__class__.__name__)
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: NetworkAdapter) -> None:
        if adapter.network in self._adapters:
            self._logger.warning("adapter_replaced", adapter_network=adapter.network.value)
        self._adapters[adapter.network] = adapter

    def get(self, network: str | Network) -> NetworkAdapter:
        """Return the adapter for network (name, alias or enum).

        Raises:
            UnsupportedNetworkError: If the name is not a supported network.
            ConfigurationError: If no adapter is registered for it.
        """
        resolved = parse_network(network)
        adapter = self._adapters.get(resolved)
        if adapter is None:
            raise ConfigurationError(f"No adapter registered for {resolved.value}")
        return adapter

    @property
    def networks(self) -> tuple[Network, ...]:
        return tuple(self._adapters)

    def __contains__(self, network: object) -> bool:
        return network in self._adapters
