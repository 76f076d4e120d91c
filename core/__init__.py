"""
Catalog Core Module

This package contains the service components:
- config: settings loaded from the environment
- db: MongoDB client, collection validator and indexes
- services: models, validation and the ProductRepository
- routers: FastAPI routers
- middleware: request timeout
"""
