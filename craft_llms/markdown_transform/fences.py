from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

FENCE_MARKERS = ("```", "~~~")


@dataclass(frozen=True)
class FenceState:
    in_fence: bool = False
    marker: str = ""


NO_FENCE = FenceState()


def fence_marker(line: str) -> str:
    """Return the fence marker opening ``line`` (after stripping), or ''."""
    trimmed = line.strip()
    for marker in FENCE_MARKERS:
        if trimmed.startswith(marker):
            return marker
    return ""


def update_fence_state(line: str, state: FenceState) -> FenceState:
    """
    Advance the fence state by one line.
    A marker opens a fence when none is open; only the same marker closes it.
    """
    marker = fence_marker(line)
    if not marker:
        return state
    if not state.in_fence:
        return FenceState(True, marker)
    if state.marker == marker:
        return NO_FENCE
    return state


def iter_fenced_lines(lines: Iterable[str]) -> Iterator[Tuple[str, bool]]:
    """
    Yield ``(line, fenced)`` pairs. Opening and closing marker lines count as
    fenced, so callers can pass them through untouched together with the body.
    """
    state = NO_FENCE
    for line in lines:
        was_fenced = state.in_fence
        state = update_fence_state(line, state)
        yield line, was_fenced or state.in_fence
