"""FastAPI frontend for the CodePilot agent orchestrator."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from codepilot import service
from codepilot.utils.errors import ConfigurationError, InvalidRequestError, OrchestrationError


APP_TITLE = "CodePilot - Developer/QA Agent Orchestrator"

# Single-turn routes answer errors in the agent reply shape
AGENT_TURN_ROUTES = {
    "/api/developer-agent": "developer",
    "/api/qa-agent": "qa",
}

logger = logging.getLogger(__name__)

app = FastAPI(title=APP_TITLE)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidRequestError.invalid_value("body", "<unparseable>", "valid JSON") from exc


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    logger.info(f"Rejected {request.url.path}: {exc.context.message}")
    body: Dict[str, Any] = {"error": exc.context.message}
    role = AGENT_TURN_ROUTES.get(request.url.path)
    if role is not None:
        body = {"from": role, "content": f"Invalid request: {exc.context.message}", **body}
    return JSONResponse(body, status_code=400)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse({"error": exc.context.message, "details": exc.to_dict()}, status_code=500)


@app.exception_handler(OrchestrationError)
async def orchestration_error_handler(request: Request, exc: OrchestrationError) -> JSONResponse:
    logger.error(f"Orchestrator error on {request.url.path}: {exc}")
    return JSONResponse({"error": exc.context.message, "details": exc.to_dict()}, status_code=500)


@app.post("/api/collaborate")
async def collaborate(request: Request) -> JSONResponse:
    payload = await _read_json(request)
    result = await service.run_collaboration(payload)
    return JSONResponse(result)


@app.post("/api/dispatch-instruction")
async def dispatch_instruction(request: Request) -> JSONResponse:
    payload = await _read_json(request)
    result = await service.run_negotiation(payload)
    return JSONResponse(result)


@app.post("/api/developer-agent")
async def developer_agent(request: Request) -> JSONResponse:
    payload = await _read_json(request)
    status, body = await service.ask_agent("developer", payload)
    return JSONResponse(body, status_code=status)


@app.post("/api/qa-agent")
async def qa_agent(request: Request) -> JSONResponse:
    payload = await _read_json(request)
    status, body = await service.ask_agent("qa", payload)
    return JSONResponse(body, status_code=status)


@app.get("/healthz")
async def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}
