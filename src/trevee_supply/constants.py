"""Token, chain and endpoint constants."""

from typing import TypedDict


class ChainDefaults(TypedDict):
    name: str
    rpc_urls: list[str]


TOKEN_ADDRESS = "0xe90FE2DE4A415aD48B6DcEc08bA6ae98231948Ac"

ETHEREUM = "ethereum"
SONIC = "sonic"
PLASMA = "plasma"

DEFAULT_CHAINS: list[ChainDefaults] = [
    {
        "name": ETHEREUM,
        "rpc_urls": [
            "https://eth.llamarpc.com",
            "https://rpc.ankr.com/eth",
            "https://ethereum.publicnode.com",
        ],
    },
    {
        "name": SONIC,
        "rpc_urls": ["https://rpc.soniclabs.com"],
    },
    {
        "name": PLASMA,
        "rpc_urls": ["https://rpc.plasma.to", "https://plasma.drpc.org"],
    },
]

ALCHEMY_ETHEREUM_URL = "https://eth-mainnet.g.alchemy.com/v2/{api_key}"

# Burn addresses, DAO treasuries and the migration contract
DEFAULT_EXCLUDED_ADDRESSES: list[str] = [
    "0x0000000000000000000000000000000000000000",
    "0x000000000000000000000000000000000000dEaD",
    "0x1Ae6DCBc88d6f81A7BCFcCC7198397D776F3592E",  # Ethereum DAO
    "0xE2a7De3C3190AFd79C49C8E8f2Fa30Ca78B97DFd",  # Sonic DAO
    "0x7481b40c3453D0b5D9b8f82427c77C2eCAd397d1",  # Plasma DAO
    "0x99fe40e501151e92f10ac13ea1c06083ee170363",  # Sonic migration contract
]

SERVICE_NAME = "TREVEE Multi-Chain Supply API"
SERVICE_VERSION = "1.0.0"
