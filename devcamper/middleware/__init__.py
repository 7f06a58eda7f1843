"""
DevCamper API — Middleware Package
====================================

Middleware Chain (request direction):
    [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route Handler

The request id is set first so every log line and every error body,
429 rejections included, carries it. Rate limiting then rejects before
any route work happens.
"""
