"""
Bonding Curve Metrics for curvelaunch

Prometheus metrics for curve trading, fee extraction, oracle refreshes and
liquidity graduation.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram


class CurveMetrics:
    """Metrics for bonding curve operations."""

    def __init__(self, registry=None):
        self.registry = registry or REGISTRY

        # Trade metrics
        self.purchases_total = Counter(
            'curvelaunch_purchases_total',
            'Total number of curve purchases executed',
            ['curve'],
            registry=self.registry
        )

        self.sales_total = Counter(
            'curvelaunch_sales_total',
            'Total number of curve sales executed',
            ['curve'],
            registry=self.registry
        )

        self.units_traded = Counter(
            'curvelaunch_units_traded_total',
            'Total asset units moved by trades',
            ['curve', 'side'],
            registry=self.registry
        )

        self.settlement_volume = Counter(
            'curvelaunch_settlement_volume_wei_total',
            'Total settlement value traded in wei',
            ['curve', 'side'],
            registry=self.registry
        )

        self.purchase_size = Histogram(
            'curvelaunch_purchase_size_settlement',
            'Purchase size in whole settlement units',
            buckets=[0.01, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=self.registry
        )

        self.fees_collected = Counter(
            'curvelaunch_fees_collected_wei_total',
            'Total fees forwarded to the fee sink in wei',
            ['curve'],
            registry=self.registry
        )

        self.failures_total = Counter(
            'curvelaunch_operation_failures_total',
            'Rejected or rolled back curve operations',
            ['curve', 'operation', 'error_type'],
            registry=self.registry
        )

        # State metrics
        self.unit_price = Gauge(
            'curvelaunch_unit_price_micro_usd',
            'Current curve unit price in micro-USD',
            ['curve'],
            registry=self.registry
        )

        self.unsold_inventory = Gauge(
            'curvelaunch_unsold_inventory_units',
            'Units still held by the curve',
            ['curve'],
            registry=self.registry
        )

        self.raised_usd = Gauge(
            'curvelaunch_raised_usd',
            'Cumulative reference-currency value raised',
            ['curve'],
            registry=self.registry
        )

        self.oracle_refreshes = Counter(
            'curvelaunch_oracle_refreshes_total',
            'Reference price cache refreshes',
            ['curve'],
            registry=self.registry
        )

        self.liquidity_deployments = Counter(
            'curvelaunch_liquidity_deployments_total',
            'Curves that deployed graduation liquidity',
            registry=self.registry
        )

    def record_trade(self, curve: str, side: str, units: int, settlement: int, fee: int):
        """Record a successful buy or sell."""
        if side == "buy":
            self.purchases_total.labels(curve=curve).inc()
            self.purchase_size.observe(settlement / 10**18)
        else:
            self.sales_total.labels(curve=curve).inc()
        self.units_traded.labels(curve=curve, side=side).inc(units)
        self.settlement_volume.labels(curve=curve, side=side).inc(settlement)
        if fee:
            self.fees_collected.labels(curve=curve).inc(fee)

    def record_failure(self, curve: str, operation: str, error_type: str):
        self.failures_total.labels(curve=curve, operation=operation, error_type=error_type).inc()

    def update_state(self, curve: str, price: int, unsold: int, raised_usd: int):
        self.unit_price.labels(curve=curve).set(price)
        self.unsold_inventory.labels(curve=curve).set(unsold)
        self.raised_usd.labels(curve=curve).set(raised_usd / 10**18)
