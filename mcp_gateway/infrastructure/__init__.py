"""Infrastructure — logging setup, request context middleware, rate limiting."""
