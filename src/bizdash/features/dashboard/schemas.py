"""Dashboard API Schemas

Pydantic models for the dashboard reporting endpoints:

1. Overview (revenue, inventory value, expenses, new customers, sales)
2. Sales over time
3. Expense by category
4. Top products and top customers
5. Average order value
6. Inventory overview
7. Top selling products (with stock status)
8. Customer retention

Fields are snake_case in Python and camelCase on the wire, which is what
the dashboard front end reads."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DashboardSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class DashboardQuery(BaseModel):
    date: Optional[str] = Field(None, description="YYYY-MM-DD / YYYY/MM/DD, or YYYY-MM / YYYY/MM for monthly reports")
    filter_type: Optional[str] = Field(None, description="day, month or year")


# 1. Overview
class OverviewResponse(DashboardSchema):
    total_revenue: float
    total_inventory_value: float
    total_expenses: float
    new_customer: int
    total_sales: float


# 2. Sales over time
class SalesOverTimeResponse(DashboardSchema):
    total_sales: float


# 3. Expense by category
class ExpenseCategoryTotal(DashboardSchema):
    category: str
    total: str = Field(..., description="Two decimal total, e.g. \"12.34\"")


class ExpenseByCategoryResponse(DashboardSchema):
    category: List[ExpenseCategoryTotal]


# 4. Top products and customers
class TopProduct(DashboardSchema):
    item_id: str
    item_name: str
    total_sold: float
    total_amount: float
    category: Optional[str] = None
    item_image: Optional[str] = None
    current_stock: str = Field(..., description="In Stock, Out of Stock, or undefined for unknown items")


class TopCustomer(DashboardSchema):
    customer_id: str
    customer_name: str
    total_spent: float


class TopProductsCustomersResponse(DashboardSchema):
    top_products: List[TopProduct]
    top_customers: List[TopCustomer]


# 5. Average order value
class AverageOrderValueResponse(DashboardSchema):
    average_order_value: float


# 6. Inventory overview
class InventoryOverviewResponse(DashboardSchema):
    total_inventory_value: float
    total_item_count: float
    total_out_of_stock: int
    new_items: int


# 7. Top selling products
class TopSellingProductsResponse(DashboardSchema):
    top_products: List[TopProduct]


# 8. Customer retention
class DailyRetention(DashboardSchema):
    date: str = Field(..., description="YYYY-MM-DD in the organization's timezone")
    retention_rate: float


class CustomerRetentionResponse(DashboardSchema):
    retention_rate: float
    churn_rate: float
    daily_retention: List[DailyRetention]
