"""Dashboard reporting API endpoints for bizdash

This package provides the dashboard reports of an organization: revenue,
inventory valuation, expenses by category, top products and customers,
average order value and customer retention over a requested day, month or
year. Access requires authentication; the organization comes from the
authenticated user.

All routes delegate to one report pipeline in ``service`` which resolves the
period in the organization's timezone and aggregates the records read
through a ``DashboardRepository``."""
