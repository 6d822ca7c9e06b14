import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# RPC endpoints for supported networks
RPC_URLS = {
    "primary": os.getenv('PRIMARY_RPC_URL'),
    "secondary": os.getenv('SECONDARY_RPC_URL'),
}

# Token contract deployed on each network
TOKEN_ADDRESSES = {
    "primary": os.getenv('TOKEN_ADDRESS'),
    "secondary": os.getenv('SECONDARY_TOKEN_ADDRESS'),
}

# Multicall3 is deployed at the same address on every supported network
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

# Burned tokens are sent to the zero address
BURN_ADDRESS = "0x0000000000000000000000000000000000000000"

# Network configuration.
# units_per_day converts pool lock/vesting durations to days:
# 86400 when pools report seconds, 172800 on a 0.5s block chain reporting blocks
NETWORKS = {
    "primary": {
        "multicall_address": MULTICALL3_ADDRESS,
        "burn_address": BURN_ADDRESS,
        "units_per_day": int(os.getenv('PRIMARY_UNITS_PER_DAY', '86400')),
    },
    "secondary": {
        "multicall_address": MULTICALL3_ADDRESS,
        "burn_address": BURN_ADDRESS,
        "units_per_day": int(os.getenv('SECONDARY_UNITS_PER_DAY', '172800')),
    },
}

# Token settings
TOKEN_DECIMALS = os.getenv('TOKEN_DECIMALS')  # Read from the token contract when unset
TGE_TIMESTAMP = os.getenv('TGE_TIMESTAMP')  # Required when any vesting schedule is configured

# HTTP provider timeout in seconds
RPC_TIMEOUT = int(os.getenv('RPC_TIMEOUT', '30'))
