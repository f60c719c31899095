"""
API Module - FastAPI Backend

This module provides the REST API for the MOF field calculator.
It exposes the core calculations and stores meter sessions per device.

Key Components:
- main.py: FastAPI application and root endpoints
- models.py: Pydantic schemas for request/response validation
- database.py: SQLAlchemy connection and snapshot storage
- routes/: API endpoint implementations

Endpoints:
- GET /api/v1/meter/table: CT table for a reading
- GET /api/v1/meter/aiss: AISS setting for a capacity
- GET/PUT /api/v1/sessions/{device_id}: Stored meter session
- POST /api/v1/sessions/{device_id}/keys: Apply key presses
- POST /api/v1/projection: Resource projection
"""

__version__ = "0.1.0"
