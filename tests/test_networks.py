import pytest
from eth_utils import to_checksum_address

from pool_deployment.constants import CHAIN_IDS, KNOWN_ADDRESSES, WFIL
from pool_deployment.exceptions import NotConfigured
from pool_deployment.networks import (
    get_network_name,
    get_profile,
    is_local_chain,
    resolve_known_address,
)


@pytest.mark.parametrize("name,chain_id", CHAIN_IDS.items())
def test_profiles(name, chain_id):
    profile = get_profile(chain_id)
    assert profile.name == name
    assert profile.chain_id == chain_id
    assert get_network_name(chain_id) == name


def test_local_chains():
    assert is_local_chain(CHAIN_IDS["localnet"])
    assert is_local_chain(CHAIN_IDS["hardhat"])
    assert not is_local_chain(CHAIN_IDS["filecoin"])
    assert not get_profile(CHAIN_IDS["calibration"]).local


@pytest.mark.parametrize("network", ["filecoin", "calibration"])
def test_known_wfil(network):
    chain_id = CHAIN_IDS[network]
    expected = to_checksum_address(KNOWN_ADDRESSES[chain_id][WFIL])
    assert resolve_known_address(WFIL, chain_id) == expected
    assert get_profile(chain_id).resolve_known_address(WFIL) == expected


def test_unknown_chain():
    profile = get_profile(12345)
    assert profile.name == "12345"
    assert not profile.local
    assert get_network_name(12345) is None
    assert get_profile(12345, name="custom").name == "custom"


@pytest.mark.parametrize("chain_id", [CHAIN_IDS["localnet"], 12345])
def test_not_configured(chain_id):
    with pytest.raises(NotConfigured) as error:
        resolve_known_address(WFIL, chain_id)
    assert error.value.logical_name == WFIL
    assert error.value.chain_id == chain_id
