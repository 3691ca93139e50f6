# relay/cors.py
# Fixed-origin CORS; preflight is answered here and never reaches a route.
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"


class FixedOriginCORSMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, origin: str):
        super().__init__(app)
        self.headers = {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
        }

    async def dispatch(self, request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)
        response = await call_next(request)
        response.headers.update(self.headers)
        return response
