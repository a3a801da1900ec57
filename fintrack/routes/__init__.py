"""
FastAPI routers for all API endpoints.

Each module defines a router for one area (accounts, transactions, summary, chat).
Routes authenticate, validate, call a service and map the result to a response model.
"""
