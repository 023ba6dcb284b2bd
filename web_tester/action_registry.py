from __future__ import annotations

"""Process-wide table of named browser actions.

`BrowserSession` methods register themselves at import time through the
`@browser_action(name, description)` decorator. The orchestrator enumerates
the table to build its command menu and dispatches `{name, payload}` pairs.
"""

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from .errors import WebTesterError

if TYPE_CHECKING:
    from .browser_session import BrowserSession

logger = logging.getLogger(__name__)

ActionHandler = Callable[["BrowserSession", str], Awaitable[str]]


@dataclass(frozen=True)
class RegisteredAction:
    name: str
    description: str
    handler: ActionHandler


_ACTION_REGISTRY: Dict[str, RegisteredAction] = {}


def register_action(name: str, description: str, handler: ActionHandler) -> RegisteredAction:
    """Insert or replace an action. Re-registering a name silently wins."""
    action = RegisteredAction(name=name, description=description, handler=handler)
    _ACTION_REGISTRY[name] = action
    return action


def browser_action(name: str, description: str) -> Callable[[ActionHandler], ActionHandler]:
    def decorator(func: ActionHandler) -> ActionHandler:
        register_action(name, description, func)
        return func

    return decorator


def get_registered_actions() -> List[RegisteredAction]:
    return list(_ACTION_REGISTRY.values())


def get_action(name: str) -> Optional[RegisteredAction]:
    return _ACTION_REGISTRY.get(name)


def format_action_menu() -> str:
    """One `- name: description` line per action, for prompt building."""
    return "\n".join(f"- {a.name}: {a.description}" for a in get_registered_actions())


async def dispatch(session: "BrowserSession", name: str, payload: str = "") -> str:
    """Run one action and always come back with a result string."""
    action = get_action(name)
    if action is None:
        logger.info("Unknown action '%s'", name)
        return f"Unknown action: '{name}'. No action found."
    logger.debug("Invoking action '%s' with payload: %s", name, payload)
    try:
        return await action.handler(session, payload)
    except (PlaywrightError, WebTesterError) as e:
        logger.warning("Action '%s' failed: %s", name, e)
        return f"Error: {e}"


# ----------------------------------------------------------------------
# orchestrator-facing invocation format ---------------------------------

@dataclass
class ActionInvocation:
    name: str
    payload: str = ""
    message: Optional[str] = None
    bug: Any = None  # opaque bug report, passed through untouched


@dataclass
class ActionOutcome:
    result: str
    bug: Any = None


def parse_invocation(text: str) -> Optional[ActionInvocation]:
    """Read `{"tool": ..., "arguments"|"args": ...}` JSON; None for anything else."""
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("tool"), str):
        return None
    payload = parsed.get("arguments", parsed.get("args", ""))
    if not isinstance(payload, str):
        return None
    message = parsed.get("message")
    return ActionInvocation(
        name=parsed["tool"],
        payload=payload,
        message=message if isinstance(message, str) else None,
        bug=parsed.get("bug"),
    )


async def run_invocation(session: "BrowserSession", invocation: ActionInvocation) -> ActionOutcome:
    result = await dispatch(session, invocation.name, invocation.payload)
    return ActionOutcome(result=result, bug=invocation.bug)
