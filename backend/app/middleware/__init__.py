"""
Inkpost API: Middleware Package
=================================

Cross-cutting concerns applied to every request.

Execution order on the way in (the reverse of `add_middleware` calls in
main.py):

    Request → [Request ID] → [Login Throttle] → [Access Log] → [GZip] → [CORS] → Route

    1. Request ID first: every response, a 429 included, carries X-Request-ID
    2. Login throttle: a throttled login attempt never reaches the database
    3. Access log: sees the final status code and total duration
"""
