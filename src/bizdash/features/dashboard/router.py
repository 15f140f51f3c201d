import logging
from fastapi import APIRouter, Depends, Query
from typing import Annotated, Optional

from ..auth.security import get_current_active_user, get_current_organization
from ..organizations.models import Organization

from .repository import DashboardRepository, TortoiseDashboardRepository
from .schemas import (
    DashboardQuery, OverviewResponse, SalesOverTimeResponse, ExpenseByCategoryResponse,
    TopProductsCustomersResponse, AverageOrderValueResponse, InventoryOverviewResponse,
    TopSellingProductsResponse, CustomerRetentionResponse,
)
from .service import DashboardReport, generate_report

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
    # Apply auth dependency to all routes in this router
    dependencies=[Depends(get_current_active_user)],
    responses={
        400: {"description": "Invalid or missing date or filterType"},
        404: {"description": "Organization not found"},
    },
)


async def get_dashboard_repository(
    organization: Annotated[Organization, Depends(get_current_organization)],
) -> DashboardRepository:
    return TortoiseDashboardRepository(organization_id=organization.public_id)


# Missing parameters are reported as 400 by the pipeline, not as 422 by FastAPI
def dashboard_query(
    date: Optional[str] = Query(None, description="YYYY-MM-DD or YYYY/MM/DD (YYYY-MM for monthly reports)"),
    filter_type: Optional[str] = Query(None, alias="filterType", description="day, month or year"),
) -> DashboardQuery:
    return DashboardQuery(date=date, filter_type=filter_type)


Repository = Annotated[DashboardRepository, Depends(get_dashboard_repository)]
ReportQuery = Annotated[DashboardQuery, Depends(dashboard_query)]


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.OVERVIEW, repository, query.date, query.filter_type)


@router.get("/sales-over-time", response_model=SalesOverTimeResponse)
async def get_sales_over_time(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.SALES_OVER_TIME, repository, query.date, query.filter_type)


@router.get("/expense-by-category", response_model=ExpenseByCategoryResponse)
async def get_expense_by_category(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.EXPENSE_BY_CATEGORY, repository, query.date, query.filter_type)


@router.get("/top-products-customers", response_model=TopProductsCustomersResponse)
async def get_top_products_customers(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.TOP_PRODUCTS_CUSTOMERS, repository, query.date, query.filter_type)


@router.get("/average-order-value", response_model=AverageOrderValueResponse)
async def get_average_order_value(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.AVERAGE_ORDER_VALUE, repository, query.date, query.filter_type)


# Monthly reports: date is YYYY-MM or YYYY/MM, filterType is ignored
@router.get("/inventory/overview", response_model=InventoryOverviewResponse)
async def get_inventory_overview(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.INVENTORY_OVERVIEW, repository, query.date)


@router.get("/inventory/top-selling", response_model=TopSellingProductsResponse)
async def get_top_selling_products(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.TOP_SELLING_PRODUCTS, repository, query.date)


@router.get("/customers/retention", response_model=CustomerRetentionResponse)
async def get_customer_retention(repository: Repository, query: ReportQuery):
    return await generate_report(DashboardReport.CUSTOMER_RETENTION, repository, query.date)
