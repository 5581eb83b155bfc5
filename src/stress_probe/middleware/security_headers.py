"""HTTP security headers middleware.

The API serves JSON only; the one HTML surface is the flasgger Swagger UI,
which loads its own static assets and needs inline script and style.
"""

# Swagger UI is the only page; everything else is JSON
CSP_POLICY = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data:; "
    "connect-src 'self'; "
    "frame-ancestors 'none'; "
    "base-uri 'self'; "
    "form-action 'self';"
)


def init_security_headers(app):
    """Add security headers to all responses.

    Headers applied:
    - X-Content-Type-Options: Prevents MIME-type sniffing
    - X-Frame-Options: Blocks iframe embedding
    - Strict-Transport-Security: Forces HTTPS (not in debug mode)
    - Content-Security-Policy: Restricts resource sources
    - Referrer-Policy: Limits referrer leakage
    - Cache-Control: Live utilization readings must never be cached

    Args:
        app: Flask application instance
    """

    @app.after_request
    def add_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        # Local development has no TLS
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        response.headers["Content-Security-Policy"] = CSP_POLICY
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # A cached /metrics response would show stale usage
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store, max-age=0"

        return response

    app.logger.info("Security headers middleware enabled")
