"""
DevCamper API: Request/Response Schemas
========================================

What:  Pydantic models defining the API contract.
How:   Inputs are validated by FastAPI; outputs are built from ORM objects
       with `from_model()` and serialized with camelCase aliases, omitting
       unset (None) values.
"""
