# server.py
# HTTP shell around the agent. Request/response shaping only.
#
#   POST /api/linear   {messages: [{role, content}, ...]}
#     → 200 chat-completion envelope (answers and in-loop errors alike)
#     → 400 when there is no user message content, or the body is malformed
#     → 500 envelope with "Server error: ..." on anything unexpected

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from task_agent import display
from task_agent.harness import TaskAgent
from task_agent.models import ChatCompletion, ChatRequest

NO_USER_MESSAGE = "Bad Request: No user message content found."


def create_app(agent: TaskAgent) -> FastAPI:
    """Build the FastAPI app. The agent's clients are closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await agent.aclose()

    app = FastAPI(
        title="Linear Task Agent",
        description="Chat-completion style endpoint that manages Linear tasks.",
        lifespan=lifespan,
    )
    app.state.agent = agent

    @app.post("/api/linear", response_model=ChatCompletion)
    async def linear(body: ChatRequest, request: Request) -> ChatCompletion | JSONResponse:
        content = body.last_user_content()
        if not content:
            display.bad_request(NO_USER_MESSAGE)
            return JSONResponse(status_code=400, content={"error": NO_USER_MESSAGE})
        return await request.app.state.agent.run(content)

    @app.exception_handler(RequestValidationError)
    async def malformed(request: Request, exc: RequestValidationError) -> JSONResponse:
        display.bad_request(NO_USER_MESSAGE)
        return JSONResponse(status_code=400, content={"error": NO_USER_MESSAGE})

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        message = str(exc) or type(exc).__name__
        display.server_error(f"Error processing {request.url.path} request: {message}")
        envelope = ChatCompletion.from_text(f"Server error: {message}")
        return JSONResponse(status_code=500, content=envelope.model_dump())

    return app
