from typing import Dict, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from pool_deployment.constants import CHAIN_IDS, KNOWN_ADDRESSES, LOCAL_CHAIN_IDS
from pool_deployment.exceptions import NotConfigured


class NetworkProfile(NamedTuple):
    """Chain identity plus the external contracts that already exist on it."""

    name: str
    chain_id: int
    known_addresses: Dict[str, ChecksumAddress]
    local: bool

    def resolve_known_address(self, logical_name: str) -> ChecksumAddress:
        try:
            return self.known_addresses[logical_name]
        except KeyError:
            raise NotConfigured(logical_name=logical_name, chain_id=self.chain_id)


def is_local_chain(chain_id: int) -> bool:
    return chain_id in LOCAL_CHAIN_IDS


def get_network_name(chain_id: int) -> Optional[str]:
    for name, known_chain_id in CHAIN_IDS.items():
        if known_chain_id == chain_id:
            return name
    return None


def resolve_known_address(logical_name: str, chain_id: int) -> ChecksumAddress:
    """Looks up a pre-existing external contract on a chain."""
    return get_profile(chain_id).resolve_known_address(logical_name)


def get_profile(chain_id: int, name: Optional[str] = None) -> NetworkProfile:
    known_addresses = {
        logical_name: to_checksum_address(address)
        for logical_name, address in KNOWN_ADDRESSES.get(chain_id, {}).items()
    }
    return NetworkProfile(
        name=name or get_network_name(chain_id) or str(chain_id),
        chain_id=chain_id,
        known_addresses=known_addresses,
        local=is_local_chain(chain_id),
    )
