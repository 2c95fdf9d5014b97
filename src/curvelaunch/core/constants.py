"""
curvelaunch Constants

Fixed-point bases and launch defaults shared by the curve, the factory and
the configuration layer. Everything a test may want to vary is copied into
CurveConfig at construction; these values are only defaults.
"""

from typing import Final

# =============================================================================
# FIXED-POINT BASES
# =============================================================================

WAD: Final[int] = 10**18  # 18-decimal base for settlement and USD values
PRICE_DECIMALS: Final[int] = 10**6  # curve unit price is quoted in micro-USD
ORACLE_DECIMALS: Final[int] = 18  # reference prices are normalised to 18 decimals
PERCENT_BASE: Final[int] = 100

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_5_MINUTES: Final[int] = 300
SECONDS_PER_HOUR: Final[int] = 3600

# =============================================================================
# CURVE DEFAULTS
# =============================================================================

# Supply is counted in whole, indivisible asset units
DEFAULT_TOTAL_SUPPLY: Final[int] = 1_000_000_000
DEFAULT_SALE_THRESHOLD: Final[int] = 800_000_000  # 80% of supply
DEFAULT_RAISE_TARGET_USD: Final[int] = 18_000 * WAD  # 6 BERA at $3000

# Unit price = multiplier * oracle price / normalizer (micro-USD)
# At $3000 per BERA the curve runs from $0.000007 to $0.000075
DEFAULT_INITIAL_MULTIPLIER: Final[int] = 7
DEFAULT_FINAL_MULTIPLIER: Final[int] = 75
DEFAULT_PRICE_NORMALIZER: Final[int] = 3000 * WAD

DEFAULT_FEE_PERCENT: Final[int] = 1
MAX_FEE_PERCENT: Final[int] = 10

DEFAULT_PRICE_UPDATE_INTERVAL: Final[int] = SECONDS_5_MINUTES

# =============================================================================
# LIQUIDITY DEPLOYMENT SPLIT
# =============================================================================

DEFAULT_DEPLOY_UNITS: Final[int] = 200_000_000
DEFAULT_DEPLOY_SETTLEMENT: Final[int] = 5 * WAD
DEFAULT_DEPLOY_FEE_SETTLEMENT: Final[int] = 1 * WAD

# =============================================================================
# FACTORY
# =============================================================================

DEFAULT_CREATION_FEE: Final[int] = 2 * 10**15  # 0.002 BERA
MAX_NAME_LENGTH: Final[int] = 64
MAX_SYMBOL_LENGTH: Final[int] = 16
