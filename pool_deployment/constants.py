from pathlib import Path

import pool_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(pool_deployment.__file__).parent
PARAMS_DIR = DEPLOYMENT_DIR / "params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

FILECOIN_MAINNET = "filecoin"
CALIBRATION = "calibration"
LOCALNET = "localnet"
DEVELOPMENT = "development"
HARDHAT = "hardhat"

CHAIN_IDS = {
    FILECOIN_MAINNET: 314,
    CALIBRATION: 314159,
    LOCALNET: 31415926,
    DEVELOPMENT: 1337,
    HARDHAT: 31337,
}

SUPPORTED_NETWORKS = list(CHAIN_IDS)

# chains where mocks of external infrastructure are deployed instead of looked up
LOCAL_CHAIN_IDS = {CHAIN_IDS[LOCALNET], CHAIN_IDS[DEVELOPMENT], CHAIN_IDS[HARDHAT]}

#
# Known external contracts
#

WFIL = "WFIL"

# chain id -> logical name -> address
KNOWN_ADDRESSES = {
    CHAIN_IDS[FILECOIN_MAINNET]: {
        WFIL: "0x60E1773636CF5E4A227d9AC24F20fEca034ee25A",
    },
    CHAIN_IDS[CALIBRATION]: {
        WFIL: "0xaC26a4Ab9cF2A8c5DBaB6fb4351ec0F4b07356c4",
    },
}

EXTERNAL_CONTRACTS = [WFIL]

#
# Contracts
#

PROXY_CONTRACT = "ERC1967Proxy"
INITIALIZER = "initialize"
UPGRADE_METHOD = "upgradeToAndCall"
# OpenZeppelin v4 UUPS rejects upgradeToAndCall with empty data
UPGRADE_TO_METHOD = "upgradeTo"
VERSION_METHOD = "version"

# EIP1967 Implementation slot - https://eips.ethereum.org/EIPS/eip-1967#logic-contract-address
EIP1967_IMPLEMENTATION_SLOT = 0x360894A13BA1A3210667C828492DB98DCA3E2076CC3735A920A3CA505D382BBC

# Revert data reported by OpenZeppelin Initializable when called twice (v4 message, v5 error)
ALREADY_INITIALIZED_MARKERS = (
    "Initializable: contract is already initialized",
    "InvalidInitialization",
)

#
# Timeouts (seconds)
#

# Filecoin blocks are slow to include proxy deployments
PROXY_CONFIRMATION_TIMEOUT = 1000
