"""
Pre-capture page actions.

Actions arrive as a comma separated ``type:value`` list, e.g.
``"click:#accept,wait:1000,scroll:600"``, and are parsed into a closed set of
variants. Nothing outside that set is executed; ``js:`` is the one explicit
escape hatch and is still a named variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

from .surface import RenderSurface

ACTION_SETTLE_MS = 500
SELECTOR_TIMEOUT_MS = 3000
WAIT_FOR_TIMEOUT_MS = 5000
DEFAULT_WAIT_MS = 1000

SMOOTH_SCROLL_SCRIPT = "(y) => window.scrollTo({ top: y, behavior: 'smooth' })"
RUN_SCRIPT_WRAPPER = "(code) => { new Function(code)(); }"


@dataclass(frozen=True)
class Scroll:
    y: int


@dataclass(frozen=True)
class Click:
    selector: str


@dataclass(frozen=True)
class Wait:
    ms: int


@dataclass(frozen=True)
class Hover:
    selector: str


@dataclass(frozen=True)
class TypeText:
    selector: str
    text: str


@dataclass(frozen=True)
class RunScript:
    code: str


@dataclass(frozen=True)
class WaitForSelector:
    selector: str


PageAction = Union[Scroll, Click, Wait, Hover, TypeText, RunScript, WaitForSelector]
ACTION_TYPES = (Scroll, Click, Wait, Hover, TypeText, RunScript, WaitForSelector)


def split_first(text: str, delimiter: str) -> Tuple[str, str]:
    head, sep, tail = text.partition(delimiter)
    if not sep:
        return text.strip(), ""
    return head.strip(), tail.strip()


def _to_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def parse_action(raw: str) -> PageAction:
    kind, value = split_first(raw, ":")
    kind = kind.lower()
    if kind == "scroll":
        return Scroll(_to_int(value, 0))
    if kind == "click":
        return Click(value)
    if kind == "wait":
        return Wait(_to_int(value, DEFAULT_WAIT_MS))
    if kind == "hover":
        return Hover(value)
    if kind == "type":
        selector, text = split_first(value, ":")
        if not selector:
            raise ValueError(f"type action needs 'type:<selector>:<text>', got '{raw}'")
        return TypeText(selector, text)
    if kind == "js":
        return RunScript(value)
    if kind == "waitfor":
        return WaitForSelector(value)
    raise ValueError(f"Unknown action '{kind}'")


def parse_actions(action_list: str) -> List[PageAction]:
    actions: List[PageAction] = []
    if not action_list:
        return actions
    for raw in action_list.split(","):
        raw = raw.strip()
        if not raw:
            continue
        try:
            actions.append(parse_action(raw))
        except ValueError as exc:
            print(f"Warning: skipping action: {exc}", flush=True)
    return actions


def run_action(surface: RenderSurface, action: PageAction) -> None:
    if isinstance(action, Scroll):
        surface.evaluate(SMOOTH_SCROLL_SCRIPT, action.y)
        surface.wait(ACTION_SETTLE_MS)
    elif isinstance(action, Click):
        surface.wait_for_selector(action.selector, SELECTOR_TIMEOUT_MS)
        surface.click(action.selector)
        surface.wait(ACTION_SETTLE_MS)
    elif isinstance(action, Wait):
        surface.wait(action.ms)
    elif isinstance(action, Hover):
        surface.wait_for_selector(action.selector, SELECTOR_TIMEOUT_MS)
        surface.hover(action.selector)
        surface.wait(ACTION_SETTLE_MS)
    elif isinstance(action, TypeText):
        surface.wait_for_selector(action.selector, SELECTOR_TIMEOUT_MS)
        surface.type_text(action.selector, action.text)
        surface.wait(ACTION_SETTLE_MS)
    elif isinstance(action, RunScript):
        surface.evaluate(RUN_SCRIPT_WRAPPER, action.code)
        surface.wait(ACTION_SETTLE_MS)
    elif isinstance(action, WaitForSelector):
        surface.wait_for_selector(action.selector, WAIT_FOR_TIMEOUT_MS)
    else:
        raise TypeError(f"Unsupported page action: {action!r}")


def run_actions(surface: RenderSurface, actions: List[PageAction]) -> int:
    """Run actions in order; a failing action is reported and the rest still run. Returns the failure count."""
    unsupported = [a for a in actions if not isinstance(a, ACTION_TYPES)]
    if unsupported:
        raise TypeError(f"Unsupported page actions: {unsupported!r}")

    failures = 0
    for action in actions:
        try:
            run_action(surface, action)
        except Exception as exc:
            failures += 1
            print(f"Warning: action {action} failed: {exc}", flush=True)
    return failures
