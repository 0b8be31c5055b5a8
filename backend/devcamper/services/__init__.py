# Services package init
"""
DevCamper API: Services Layer
==============================

What:  Business rules between routes (HTTP) and models (persistence).
How:   Each service is a module-level singleton taking the request's
       AsyncSession as its first argument. Services flush; the session
       dependency commits.

Service Inventory:
    - query_service:     listing query grammar → filtered, paginated SQL
    - auth_service:      registration, login, password changes and resets
    - user_service:      admin user management
    - bootcamp_service:  bootcamp CRUD, radius search, photo upload
    - course_service:    course CRUD
    - review_service:    review CRUD
    - aggregate_service: averageCost / averageRating recomputation
    - geocoder_service:  address → coordinates (httpx + tenacity)
    - email_service:     SMTP delivery of password reset mail
    - file_service:      photo validation and storage
"""
