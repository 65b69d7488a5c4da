"""
FastAPI routers for all API endpoints.

Each module defines a router for one integration concern (checkout, Stripe
webhook, QuickBooks, vendor profiles, notifications). Routers validate the
request, call one service, and map service errors to HTTP responses.
"""
