"""
DevCamper API: Routes Package
==============================

What:  HTTP route handlers. Each module owns one resource.

Route Inventory (all under /api/v1 except health):
    - auth.py:       /auth/register, /auth/login, /auth/logout, /auth/me,
                     /auth/updatedetails, /auth/updatepassword,
                     /auth/forgotpassword, /auth/resetpassword/{token}
    - bootcamps.py:  /bootcamps, /bootcamps/{id}, /bootcamps/{id}/photo,
                     /bootcamps/radius/{zipcode}/{distance}
    - courses.py:    /courses, /courses/{id}, /bootcamps/{id}/courses
    - reviews.py:    /reviews, /reviews/{id}, /bootcamps/{id}/reviews
    - users.py:      /users, /users/{id} (admin only)
    - health.py:     GET /health

Routes stay thin: pull data out of the request, call a service, wrap the
result in the response envelope. Business rules live in services.
"""

API_PREFIX = "/api/v1"
