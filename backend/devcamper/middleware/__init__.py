"""
DevCamper API: Middleware Package
==================================

Middleware chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [CORS] → Route

    - Rate limit rejects over-quota clients before any work is done.
    - Request ID is set before the access log line is written, so the
      log line carries it.
"""
