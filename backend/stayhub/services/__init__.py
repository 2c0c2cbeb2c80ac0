# Services package init
"""
Business logic layer. Each module exposes a service class and a module-level
singleton; routes call the singleton with the request's database session.
"""
