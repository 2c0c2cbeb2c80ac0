# Schemas package init
"""
StayHub Backend: API Contracts
===============================

Pydantic models for request bodies and response envelopes, one module per
resource. Python attribute names are snake_case; the JSON the mobile and web
clients already consume mixes raw column names (price, created_at) with
camelCase computed fields (isNew, roomName), so those fields carry aliases.
FastAPI serializes response models by alias.
"""
