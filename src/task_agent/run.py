# run.py
# Entry point. Config and wiring only, no logic lives here.
#
#   task-agent serve            start the HTTP server (default port 3000)
#   task-agent ask "message"    run one message through the agent locally

import asyncio

import typer
import uvicorn

from task_agent import display
from task_agent.config import ConfigError, load_config
from task_agent.harness import TaskAgent
from task_agent.server import create_app

app = typer.Typer(help="Conversational task agent for Linear.", no_args_is_help=True)


def _agent() -> TaskAgent:
    try:
        return TaskAgent.from_config(load_config())
    except ConfigError as exc:
        display.server_error(str(exc))
        raise typer.Exit(code=1) from exc


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: int = typer.Option(3000, help="Port to listen on."),
) -> None:
    """Serve POST /api/linear."""
    server_app = create_app(_agent())
    display.server_listening(host, port)
    uvicorn.run(server_app, host=host, port=port)


@app.command()
def ask(message: str = typer.Argument(..., help="Message to send to the agent.")) -> None:
    """Run a single message and print the reply."""
    agent = _agent()

    async def _run() -> None:
        try:
            await agent.run(message)
        finally:
            await agent.aclose()

    asyncio.run(_run())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
