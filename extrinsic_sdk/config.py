"""
Network configuration for the extrinsic SDK.

Known networks live in the packaged ``networks.json``. RPC endpoints can be
overridden per call or through ``<NETWORK>_RPC_URL`` environment variables.
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, FrozenSet, Optional

logger = logging.getLogger(__name__)

# Reference usage builds transactions valid for 64 blocks
DEFAULT_ERA_PERIOD = 64

POLKADOT_SS58_PREFIX = 0
KUSAMA_SS58_PREFIX = 2
GENERIC_SS58_PREFIX = 42

# Signing payloads above this size are hashed before signing
MAX_UNHASHED_PAYLOAD = 256


class NetworkConfig:
    """Lookup of network parameters from the packaged networks.json."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions, caching them after the first read.

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        resource = importlib.resources.files("extrinsic_sdk").joinpath("networks.json")
        with resource.open("r", encoding="utf-8") as f:
            cls._networks_cache = json.load(f)
        logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get the configuration of a network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{name}'. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL of a network.

        Precedence: explicit override, then the ``<NAME>_RPC_URL`` environment
        variable, then the packaged configuration.
        """
        if override:
            return override
        env_var = f"{name.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_ss58_prefix(cls, name: str) -> int:
        return int(cls.get_network(name)["ss58Prefix"])

    @classmethod
    def registered_prefixes(cls) -> FrozenSet[int]:
        """All SS58 prefixes registered for this deployment."""
        return frozenset(int(n["ss58Prefix"]) for n in cls.load_networks().values())

    @classmethod
    def network_for_prefix(cls, prefix: int) -> Optional[str]:
        for name, network in cls.load_networks().items():
            if int(network["ss58Prefix"]) == prefix:
                return name
        return None
