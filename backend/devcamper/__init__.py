"""
DevCamper API
=============

Bootcamp directory REST API: bootcamps, their courses, user reviews and
user accounts with role-based access.

Layers:
    routes/        HTTP concerns only (request parsing, status codes, envelope)
    dependencies   access control gate and query-string translation
    services/      business rules, side effects, aggregates, upstream clients
    models/        SQLAlchemy ORM tables
    schemas/       Pydantic request/response contracts
    database       async engine and per-request session
"""

__version__ = "1.0.0"
