"""Extract action calls from free-form model text and format their results.

Model output interleaves prose with zero or more JSON objects of the form::

    {"action": "calculator", "parameters": {"expression": "15 * 23"}}

Objects are found by brace-depth scanning rather than a regex because
``parameters`` may itself contain nested objects and arrays.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from actionloop.action.base import ActionCall, ActionResult

logger = logging.getLogger(__name__)

ACTION_MARKER = '"action"'
PARAMETERS_MARKER = '"parameters"'


def looks_like_action_call(text: str) -> bool:
    """Cheap check: does the text mention both action-call keys?"""
    return ACTION_MARKER in text and PARAMETERS_MARKER in text


def parse_action_calls(text: str) -> list[ActionCall]:
    """Return every well-formed action call in ``text``, left to right.

    Malformed candidates are skipped. A candidate that fails to parse (or
    never closes) does not consume the text after its opening brace, so a
    stray ``{`` in prose cannot hide a later valid block.
    """
    calls: list[ActionCall] = []
    if not text:
        return calls

    pos = 0
    while True:
        start = text.find("{", pos)
        if start == -1:
            break

        end = _find_object_end(text, start)
        if end is None:
            # Unbalanced from here: retry from the next brace.
            pos = start + 1
            continue

        candidate = text[start : end + 1]
        if not looks_like_action_call(candidate):
            pos = end + 1
            continue

        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed action JSON: %s", candidate[:200])
            pos = start + 1
            continue

        call = _to_action_call(data)
        if call is not None:
            calls.append(call)
        pos = end + 1

    return calls


def _find_object_end(text: str, start: int) -> int | None:
    """Index of the brace closing the object opened at ``start``, if any."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i

    return None


def _to_action_call(data: object) -> ActionCall | None:
    if not isinstance(data, dict):
        return None
    action = data.get("action")
    parameters = data.get("parameters")
    if not isinstance(action, str) or not action:
        return None
    if not isinstance(parameters, dict):
        return None
    return ActionCall(action=action, parameters=parameters)


def format_action_results(results: Iterable[ActionResult]) -> str:
    """Render results as one text block for the next model round.

    Returns an empty string when there is nothing to report.
    """
    lines = []
    for result in results:
        if result.success:
            lines.append(
                f"Action '{result.action}' completed successfully. "
                f"Result: {_describe(result.result)}"
            )
        else:
            lines.append(f"Action '{result.action}' failed. Error: {result.error}")

    if not lines:
        return ""
    return "Action results:\n" + "\n".join(lines)


def _describe(value: object) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)
