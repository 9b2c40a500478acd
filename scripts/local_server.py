"""
local_server.py — Serve the system registration Lambda as a plain HTTP process.

Converts each HTTP request into an API Gateway REST proxy event, invokes
system_registration.handler.lambda_handler and maps the result back to an
HTTP response. Listens on SYS_REGISTRATION_PORT (default 3011).

Usage:
    USER_SERVICE_URL=http://localhost:8767 \\
    TENANT_SERVICE_URL=http://localhost:8768 \\
        uv run python scripts/local_server.py
"""

from __future__ import annotations

import base64
import uuid
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool

from system_registration.config import service_name, service_port
from system_registration.handler import lambda_handler

app = FastAPI(title="local-system-registration")


class LocalLambdaContext:
    function_name = "system-registration-local"
    memory_limit_in_mb = 256
    invoked_function_arn = "arn:aws:lambda:local:000000000000:function:system-registration"

    def __init__(self) -> None:
        self.aws_request_id = str(uuid.uuid4())


async def to_event(request: Request) -> dict[str, Any]:
    raw = await request.body()
    is_base64 = False
    try:
        body = raw.decode("utf-8")
    except UnicodeDecodeError:
        body = base64.b64encode(raw).decode("ascii")
        is_base64 = True
    return {
        "httpMethod": request.method,
        "path": request.url.path,
        "headers": dict(request.headers),
        "queryStringParameters": dict(request.query_params) or None,
        "body": body or None,
        "isBase64Encoded": is_base64,
        "requestContext": {"requestId": str(uuid.uuid4())},
    }


@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
async def proxy(request: Request) -> Response:
    event = await to_event(request)
    # lambda_handler blocks on downstream calls
    result = await run_in_threadpool(lambda_handler, event, LocalLambdaContext())
    return Response(
        content=result.get("body") or b"",
        status_code=int(result["statusCode"]),
        headers=result.get("headers") or {},
    )


def main() -> None:
    port = service_port()
    print(f"{service_name()} service started on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
