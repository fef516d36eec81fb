# harness.py
# Planner loop and response synthesis.
#
# The agent is the kernel. The model only answers questions; this class
# owns all control flow, state and validation. The tracker is reached only
# through the ActionExecutor.
#
# Control flow, per iteration (at most MAX_ITERATIONS):
#   decrement budget → decide (pick a tool) → terminal? stop
#   → describe (fill the tool's schema) → validate → execute → record result
#
# Any failure ends the loop; the user gets a fixed apology instead of a
# second model call. All terminal output is delegated to display.py.

import json
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from task_agent import display
from task_agent.actions import ActionExecutor
from task_agent.config import AgentConfig
from task_agent.linear import LinearClient
from task_agent.llm import OpenAIReasoner, Reasoner
from task_agent.models import (
    ChatCompletion,
    Decision,
    LoopOutcome,
    LoopState,
    LoopStatus,
)
from task_agent.prompts import decide_prompt, describe_prompt, final_prompt
from task_agent.tools import TOOLS, ToolArgumentsError, ToolRegistry

# Hard ceiling on decide/execute rounds for one request.
MAX_ITERATIONS = 15

MISSING_MESSAGE_REPLY = "Error: initial user message is required."


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DecisionError(Exception):
    """Raised when the decide step returns an invalid object or an unknown tool."""


class ArgumentsError(Exception):
    """Raised when described arguments fail the chosen tool's schema."""

    def __init__(self, message: str, *, tool: str, field: str) -> None:
        super().__init__(message)
        self.tool = tool
        self.field = field


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def error_reply(cause: str) -> str:
    """The fixed apology used when the loop ends in an error."""
    return f"I encountered an error: {cause.rstrip('.')}. I had to stop processing your request."


def _decision_schema(tools: ToolRegistry) -> dict[str, Any]:
    schema = Decision.model_json_schema(by_alias=True)
    schema["properties"]["action"]["enum"] = list(tools.names())
    return schema


def _summarize(results: list[dict[str, Any]]) -> str:
    return json.dumps(results, ensure_ascii=False)


# ---------------------------------------------------------------------------
# TaskAgent
# ---------------------------------------------------------------------------


class TaskAgent:
    """
    Conversational task agent for one Linear workspace.

    One instance serves many requests: every call to run() gets a fresh
    LoopState, so nothing carries over between requests.

    Example:
        agent = TaskAgent.from_config(load_config())
        reply = await agent.run("remind me to call Jane tomorrow")
        print(reply.content)
    """

    def __init__(
        self,
        config: AgentConfig,
        reasoner: Reasoner,
        executor: ActionExecutor,
        *,
        tools: ToolRegistry = TOOLS,
        clock: Callable[[], datetime] = datetime.now,
        closers: Sequence[Callable[[], Awaitable[None]]] = (),
    ) -> None:
        self._config = config
        self._reasoner = reasoner
        self._executor = executor
        self._tools = tools
        self._clock = clock
        self._closers = tuple(closers)
        self._decision_schema = _decision_schema(tools)

    @classmethod
    def from_config(cls, config: AgentConfig) -> "TaskAgent":
        """Wire the OpenAI reasoner and the Linear client from config."""
        reasoner = OpenAIReasoner(
            config.model,
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
        )
        tracker = LinearClient(config.linear_api_key, url=config.linear_api_url)
        display.banner(config.model, len(config.projects), TOOLS.names())
        return cls(
            config,
            reasoner,
            ActionExecutor(tracker),
            closers=(reasoner.aclose, tracker.aclose),
        )

    async def aclose(self) -> None:
        for close in self._closers:
            await close()

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    def _assistant(self, state: LoopState, content: str) -> None:
        display.assistant_message(content)
        state.add("assistant", content)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def decide(self, state: LoopState, now: datetime) -> Decision:
        """
        Ask the model which tool to use next.

        Raises DecisionError if the output does not validate or names a
        tool outside the registry.
        """
        display.deciding()
        raw = await self._reasoner.generate_object(
            state.transcript,
            decide_prompt(self._config, self._tools, now),
            self._decision_schema,
            name="decision",
        )
        try:
            decision = Decision.model_validate(raw, context={"tool_names": self._tools.names()})
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "<root>"
            raise DecisionError(f"Invalid decision from model: {field}: {first['msg']}") from exc

        display.decision(decision.action, decision.thinking)
        return decision

    async def describe(self, state: LoopState, action: str, now: datetime) -> Any:
        """Ask the model for arguments matching `action`'s schema. Returns raw output."""
        tool = self._tools.get(action)
        display.describing(action)
        return await self._reasoner.generate_object(
            state.transcript,
            describe_prompt(self._config, action, now),
            tool.json_schema(),
            name=action,
        )

    async def execute(self, action: str, raw: Any) -> list[dict[str, Any]]:
        """
        Validate described arguments and run the action.

        Returns the results in their serialized (camelCase) form. Raises
        ArgumentsError on invalid arguments, ActionFailure on tracker errors.
        """
        tool = self._tools.get(action)
        try:
            args = tool.validate(raw, defaults=self._config.schema_defaults())
        except ToolArgumentsError as exc:
            raise ArgumentsError(str(exc), tool=exc.tool, field=exc.field) from exc

        display.arguments(args.model_dump(mode="json", by_alias=True, exclude_none=True))
        display.executing(action)
        results = await self._executor.execute(action, args)
        rows = [result.model_dump(mode="json", by_alias=True) for result in results]
        display.action_result(rows)
        return rows

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def plan(self, message: str) -> LoopOutcome:
        """
        Run the decide → describe → execute loop for one user message.

        The budget is spent before any work in an iteration, so failed
        attempts count too. Ends DONE on the terminal action, ERRORED on
        the first failure, EXHAUSTED when the budget runs out.
        """
        state = LoopState(remaining_iterations=MAX_ITERATIONS)
        state.add("user", message)
        executed = 0

        while state.remaining_iterations > 0 and not self._tools.is_terminal(state.last_action):
            iteration = MAX_ITERATIONS - state.remaining_iterations + 1
            display.iteration_start(iteration, state.remaining_iterations)
            state.remaining_iterations -= 1

            # Every in-loop failure is terminal for the request.
            try:
                now = self._clock()
                decision = await self.decide(state, now)
                state.last_action = decision.action
                self._assistant(state, f"Okay, I will use the '{decision.action}' tool.")

                if self._tools.is_terminal(decision.action):
                    display.terminal_action(decision.action)
                    return LoopOutcome(status=LoopStatus.DONE, state=state, executed=executed)

                raw = await self.describe(state, decision.action, now)
                rows = await self.execute(decision.action, raw)
                executed += 1
                self._assistant(
                    state,
                    f"I have executed the '{decision.action}' action. Result: {_summarize(rows)}",
                )
            except Exception as exc:
                display.loop_error(iteration, str(exc))
                return LoopOutcome(
                    status=LoopStatus.ERRORED,
                    state=state,
                    executed=executed,
                    error=str(exc),
                )

        display.budget_exhausted(MAX_ITERATIONS)
        return LoopOutcome(status=LoopStatus.EXHAUSTED, state=state, executed=executed)

    # ------------------------------------------------------------------
    # Synthesis
    # ------------------------------------------------------------------

    async def respond(self, outcome: LoopOutcome) -> str:
        """Final reply: a fixed apology on error, otherwise one more model call."""
        if outcome.status is LoopStatus.ERRORED:
            display.using_error_response()
            return error_reply(outcome.error or "unknown error")

        display.synthesis_start()
        return await self._reasoner.generate_text(
            outcome.state.transcript,
            final_prompt(self._config, self._clock()),
        )

    async def run(self, message: str) -> ChatCompletion:
        """
        Full pipeline entry point.

        Returns the chat-completion envelope in all cases handled by the
        loop, whether the content is an answer or an error message.
        """
        if not message or not message.strip():
            return ChatCompletion.from_text(MISSING_MESSAGE_REPLY)

        display.request_received(message)
        outcome = await self.plan(message)
        display.loop_finished(outcome.status.value, outcome.executed)

        content = await self.respond(outcome)
        display.final_result(content)
        return ChatCompletion.from_text(content)
