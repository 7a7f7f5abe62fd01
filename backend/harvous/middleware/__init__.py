"""
Harvous Backend - Middleware
=============================

Request path through the stack (last added in create_app runs first):

    Request → RateLimit → RequestID → Logging → GZip → CORS → route

    RateLimitMiddleware     per-client sliding window, 429 before any work
    RequestIDMiddleware     X-Request-ID in/out, stored in request_id_var
    RequestLoggingMiddleware one access line per request, level by status
"""
