# Middleware package init
"""
Synth Backend: Middleware Package
==================================

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation id for logs and error responses
    2. Logging: access log line with status and duration
    3. CORS: FastAPI's CORSMiddleware for the single-page front end
"""
