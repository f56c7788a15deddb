"""Mock ShareASale service for shareasale-client integration tests.

Serves the generic action endpoint and checks request signatures the way the
real service does. It can be run standalone or spawned by pytest fixtures.

Usage:
    python -m tests.integration.mock_server --port 9999 --token tok --secret-key key

Canned replies per action:
    void, edit, new   plain text confirmation
    find              "Invalid Request" text
    ledger            XML with two <ledger> records
    balance           XML with one <balance> record
    activitysummary   XML with records under a different tag
    dealList          malformed XML
    staterevenue      HTTP 500
"""

from __future__ import annotations

import argparse
import hashlib

import uvicorn
from fastapi import FastAPI, Request, Response


def create_app(token: str, secret_key: str) -> FastAPI:
    app = FastAPI(title="Mock ShareASale")

    def expected_signature(timestamp: str, action: str) -> str:
        message = f"{token}:{timestamp}:{action}:{secret_key}"
        return hashlib.sha256(message.encode("utf-8")).hexdigest()

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/w.cfm")
    async def action_endpoint(request: Request) -> Response:
        params = request.query_params
        action = params.get("action", "")
        timestamp = request.headers.get("x-shareasale-date", "")
        signature = request.headers.get("x-shareasale-authentication", "")

        if params.get("token") != token or not params.get("merchantID") or not params.get("version"):
            return _text("Error Code 4000 - Invalid Request: missing credentials")
        if not timestamp or signature != expected_signature(timestamp, action):
            return _text("Error Code 4002 - Authentication Error")

        if action in ("void", "edit", "new"):
            order = params.get("ordernumber", "?")
            return _text(f"\n  Transaction {action} OK for order {order}\n")
        if action == "find":
            return _text("Invalid Request - ordernumber not found")
        if action == "ledger":
            return _xml(
                "<ledgerreport>"
                "<ledger><ledgerid>1</ledgerid><impact>10.00</impact></ledger>"
                "<ledger><ledgerid>2</ledgerid><impact>-2.50</impact></ledger>"
                "</ledgerreport>"
            )
        if action == "balance":
            return _xml("<balancereport><balance><amount>123.45</amount></balance></balancereport>")
        if action == "activitysummary":
            return _xml(
                "<activitysummaryreport>"
                "<activitysummaryreportrecord><clicks>5</clicks></activitysummaryreportrecord>"
                "<activitysummaryreportrecord><clicks>7</clicks></activitysummaryreportrecord>"
                "</activitysummaryreport>"
            )
        if action == "dealList":
            return _xml("<deallistreport><deal><id>1</id></deallistreport>")
        if action == "staterevenue":
            return Response(content="Internal Server Error", status_code=500, media_type="text/plain")

        return _text(f"Invalid Request - unknown action {action}")

    return app


def _text(body: str) -> Response:
    return Response(content=body, media_type="text/plain")


def _xml(body: str) -> Response:
    return Response(content='<?xml version="1.0" encoding="UTF-8"?>\n' + body, media_type="text/xml")


def main() -> None:
    parser = argparse.ArgumentParser(description="Mock ShareASale service")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=9999)
    parser.add_argument("--token", required=True)
    parser.add_argument("--secret-key", required=True)
    args = parser.parse_args()

    uvicorn.run(create_app(args.token, args.secret_key), host=args.host, port=args.port, log_level="warning")


if __name__ == "__main__":
    main()
