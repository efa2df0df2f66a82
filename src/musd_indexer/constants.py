__all__ = (
    "GLOBAL_STATS_ID",
    "MAX_UINT256",
    "MIN_UINT256",
    "PERCENTAGE_SCALE",
    "PRICE_SCALE",
    "RWA_POOL_TEMPLATE",
    "ZERO_ADDRESS",
)


MIN_UINT256 = 0
MAX_UINT256 = 2**256 - 1

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Collateral prices are reported as 18 decimal fixed-point values
PRICE_SCALE = 10**18

# Health factors follow the on-chain percentage convention (100 = 1.0x)
PERCENTAGE_SCALE = 100

# Key of the singleton protocol stats record
GLOBAL_STATS_ID = "global"

# Template name for pools registered as dynamic data sources by the pool factory
RWA_POOL_TEMPLATE = "RWAPool"
