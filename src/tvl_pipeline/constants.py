"""
Mainnet defaults for the share ledger: contract addresses, strategies and
the block where eligibility switches to the AVS manager registry.
"""

BEACON_CHAIN_STRATEGY = "0xbeac0eeeeeeeeeeeeeeeeeeeeeeeeeeeeeebeac0"

DELEGATION_MANAGER = "0x39053d51b77dc0d36036fc1fcc8cb819df8ef37a"
UNIFI_AVS_MANAGER = "0x2d86e90ed40a034c753931ee31b1bd5e1970113d"

# First block at which getRestakeableStrategies() is authoritative
RESTAKEABLE_STRATEGIES_CUTOVER_BLOCK = 20878429

# EIGEN token strategy, tracked in its own aggregate
EIGEN_STRATEGY = "0xacb55c530acdb2849e6d4f36992cd8c9d50ed8f7"

# Liquid staking token strategies counted before the cutover
LST_STRATEGIES = [
    "0x93c4b944d05dfe6df7645a86cd2206016c51564d",  # stETH
    "0x1bee69b7dfffa4e2d53c2a2df135c388ad25dcd2",  # rETH
    "0x54945180db7943c0ed0fee7edab2bd24620256bc",  # cbETH
    "0x9d7ed45ee2e8fc5482fa2428f15c971e6369011d",  # ETHx
    "0x13760f50a9d7377e4f20cb8cf9e4c26586c658ff",  # ankrETH
    "0xa4c637e0f704745d182e4d38cab7e7485321d059",  # OETH
    "0x57ba429517c3473b6d34ca9acd56c0e735b94c02",  # osETH
    "0x0fe4f44bee93503346a3ac9ee5a26b130a5796d6",  # swETH
    "0x7ca911e83dabf90c90dd3de5411a10f1a6112184",  # wBETH
    "0x8ca7a5d6f3acd3a7a8bc468a8cd0fb14b6bd28b6",  # sfrxETH
    "0xae60d8180437b5c34bb956822ac2710972584473",  # lsETH
    "0x298afb19a105d59e74658c4c334ff360bade6dd2",  # mETH
]

STATIC_ELIGIBLE_STRATEGIES = [BEACON_CHAIN_STRATEGY, *LST_STRATEGIES]

TOTAL_SHARES_ID = "1"
