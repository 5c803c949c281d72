"""
ContextAgent: tenant-scoped store statistics for prompt grounding.

Runs five independent aggregate queries in parallel, every one filtered by
the tenant column, and assembles a StoreContext.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any

from storechat.agents.base import BaseAgent
from storechat.connectors import BaseConnector, ConnectorError
from storechat.models import (
    ContextAgentInput,
    Err,
    ErrorKind,
    Ok,
    Result,
    StoreContext,
    is_valid_tenant_id,
)

DEFAULT_CURRENCY = "USD"

ORDER_STATS_QUERY = """
    SELECT COUNT(*) AS total_orders,
           MIN(date_created) AS earliest_order_date,
           MAX(date_created) AS latest_order_date
    FROM orders
    WHERE store_id = $1
"""
PRODUCT_COUNT_QUERY = "SELECT COUNT(*) AS count FROM products WHERE store_id = $1"
CUSTOMER_COUNT_QUERY = "SELECT COUNT(*) AS count FROM customers WHERE store_id = $1"
CATEGORY_COUNT_QUERY = "SELECT COUNT(*) AS count FROM categories WHERE store_id = $1"
CURRENCY_QUERY = """
    SELECT currency
    FROM orders
    WHERE store_id = $1
    ORDER BY date_created DESC
    LIMIT 1
"""


def _first_row(rows: list[dict[str, Any]]) -> dict[str, Any]:
    return rows[0] if rows else {}


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


def _to_iso(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class ContextAgent(BaseAgent):
    """Fetches StoreContext for a tenant via the primary connector."""

    def __init__(self, connector: BaseConnector, logger: logging.Logger | None = None):
        super().__init__(name="ContextAgent", logger=logger)
        self.connector = connector

    async def execute(self, input: ContextAgentInput) -> Result[StoreContext]:
        tenant_id = input.tenant_id
        if not is_valid_tenant_id(tenant_id):
            return Err(kind=ErrorKind.INPUT, detail="Invalid storeId: must be a valid UUID")

        params = [tenant_id]
        try:
            order_stats, products, customers, categories, currency = await asyncio.gather(
                self.connector.execute(ORDER_STATS_QUERY, params),
                self.connector.execute(PRODUCT_COUNT_QUERY, params),
                self.connector.execute(CUSTOMER_COUNT_QUERY, params),
                self.connector.execute(CATEGORY_COUNT_QUERY, params),
                self.connector.execute(CURRENCY_QUERY, params),
            )
        except ConnectorError as e:
            return Err(
                kind=ErrorKind.CONTEXT,
                detail=f"Failed to fetch store context for store {tenant_id}: {e}",
                context={"error_type": type(e).__name__},
            )

        stats = _first_row(order_stats.rows)
        currency_row = _first_row(currency.rows)

        context = StoreContext(
            tenant_id=tenant_id,
            currency=currency_row.get("currency") or DEFAULT_CURRENCY,
            total_orders=_to_int(stats.get("total_orders")),
            total_products=_to_int(_first_row(products.rows).get("count")),
            total_customers=_to_int(_first_row(customers.rows).get("count")),
            total_categories=_to_int(_first_row(categories.rows).get("count")),
            earliest_order_date=_to_iso(stats.get("earliest_order_date")),
            latest_order_date=_to_iso(stats.get("latest_order_date")),
        )

        self.logger.info(
            "Store context fetched",
            extra={
                "tenant_id": tenant_id,
                "total_orders": context.total_orders,
                "total_products": context.total_products,
            },
        )
        return Ok(context)
