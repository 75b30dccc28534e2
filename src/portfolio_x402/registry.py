"""Read-only registry mapping networks to signers."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .constants import (
    KNOWN_NETWORKS,
    NAMESPACE_FAMILIES,
    canonical_network,
    network_family,
    registry_key,
)
from .errors import RegistryError, UnsupportedNetworkError
from .signers import NetworkSigner

logger = logging.getLogger(__name__)


class NetworkSignerRegistry:
    """Immutable network -> signer lookup with most-specific-match resolution.

    Keys are either a specific network id (``solana-devnet``,
    ``eip155:84532``, ``evm:testnetX``) or a family (``evm``, ``svm``,
    ``eip155:*``). A specific match always wins over the family entry.
    Two entries that canonicalize to the same key are rejected at
    construction time.

    ``solana`` is the x402 v1 name of Solana mainnet, not the ``svm``
    family. A bare CAIP-2 namespace such as ``eip155`` would never match a
    network and is rejected; use ``eip155:*`` or ``evm`` instead.
    """

    def __init__(self, signers: Iterable[NetworkSigner]) -> None:
        entries: Dict[str, NetworkSigner] = {}
        for signer in signers:
            namespace = signer.network
            if namespace in NAMESPACE_FAMILIES and namespace not in KNOWN_NETWORKS:
                raise RegistryError(
                    f"Signer key {namespace!r} is a bare namespace; "
                    f"use '{namespace}:*' or '{NAMESPACE_FAMILIES[namespace]}'"
                )
            key = registry_key(signer.network)
            existing = entries.get(key)
            if existing is not None:
                raise RegistryError(
                    f"Ambiguous signer configuration for {key}: "
                    f"{existing.network!r} and {signer.network!r} are equally specific"
                )
            entries[key] = signer
        self._entries: Mapping[str, NetworkSigner] = MappingProxyType(entries)

    def _candidates(self, network: str) -> List[Tuple[str, str]]:
        return [
            ("network", canonical_network(network)),
            ("family", network_family(network)),
        ]

    def find(self, network: str) -> Optional[NetworkSigner]:
        for level, key in self._candidates(network):
            signer = self._entries.get(key)
            if signer is not None:
                logger.debug("resolved %s signer %s for network %s", level, signer.network, network)
                return signer
        return None

    def resolve(self, network: str) -> NetworkSigner:
        signer = self.find(network)
        if signer is None:
            raise UnsupportedNetworkError(
                f"No signer configured for network {network} (configured: {', '.join(self.networks) or 'none'})",
                network=network,
            )
        return signer

    def supports(self, network: str) -> bool:
        return self.find(network) is not None

    @property
    def networks(self) -> List[str]:
        return [signer.network for signer in self._entries.values()]

    def __iter__(self) -> Iterator[NetworkSigner]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"NetworkSignerRegistry({self.networks!r})"
