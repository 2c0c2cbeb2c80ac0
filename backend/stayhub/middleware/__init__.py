# Middleware package init
"""
StayHub Backend: Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: reject abusive clients before any database work
    2. Request ID: correlation id for the access log and error envelopes
    3. Logging: one access line per request, with duration

    Authentication is NOT middleware. Public routes (register, login, logout,
    health, payment webhook) simply don't declare the authenticator
    dependency; every other route does.
"""
