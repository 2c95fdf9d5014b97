"""
curvelaunch - Oracle-Priced Bonding Curve Launchpad

Issues fungible assets priced by a linear bonding curve against a reference
currency, and graduates each asset to an external liquidity venue once its
adoption threshold is crossed.

Main Components:
- Bonding Curve: pricing, fees, buy/sell execution and the deployment latch
- Price Oracle: interval-cached reference price ingestion
- Asset Ledger: balances and allowances of the issued asset
- Liquidity Sink: one-shot graduation deposit into a venue
- Token Factory: launches ledger + curve + liquidity manager together
"""

__version__ = "0.1.0"

__all__ = []
