"""Output panel state.

The panels are plain values: every render function returns a fresh
``RenderedOutput`` and nothing is merged with the previous submission.
``SubmissionMachine`` tracks where a submission is in its round trip and
``CopyButton`` models the "Copied!" feedback on each panel.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from .formatting import format_value, parse_json_safe
from .prompts import BASIC_RESPONSE_KEYS, BASIC_SECTIONS, LEAD_NOT_APPLICABLE, SECTIONS

GENERATING = "Generating response…"
LEAD_DISABLED = "Lead criteria disabled."

FALLBACKS = {
    "main": "No content returned.",
    "tone": "No tone guidance returned.",
    "intro": "No intro message returned.",
    "guardrails": "No guardrails returned.",
    "lead": "No lead criteria returned.",
    "exit": "No exit conditions returned.",
}


@dataclass(frozen=True)
class RenderedOutput:
    sections: Mapping[str, str]
    busy: bool = False

    def __getitem__(self, section: str) -> str:
        return self.sections[section]

    def as_dict(self) -> Dict[str, str]:
        return dict(self.sections)


def _output(values: Dict[str, str], busy: bool = False) -> RenderedOutput:
    return RenderedOutput(sections=MappingProxyType(values), busy=busy)


def sections_for(variant: str) -> tuple:
    return BASIC_SECTIONS if variant == "basic" else SECTIONS


def empty_output(sections: Iterable[str]) -> RenderedOutput:
    return _output({name: "" for name in sections})


def generating_output(sections: Iterable[str]) -> RenderedOutput:
    return _output({name: GENERATING for name in sections}, busy=True)


def error_output(sections: Iterable[str], message: str) -> RenderedOutput:
    return _output({name: f"Error: {message}" for name in sections})


def render_section(section: str, raw: Optional[str]) -> str:
    """Format one section's model text, substituting the fallback when nothing usable came back."""
    parsed = parse_json_safe(raw)
    text = format_value(parsed) if parsed is not None else (raw or "").strip()
    return text or FALLBACKS[section]


def render_basic(raw_content: str, *, lead_enabled: bool) -> RenderedOutput:
    parsed = parse_json_safe(raw_content)
    if not isinstance(parsed, dict):
        parsed = {}
    values = {}
    for section in BASIC_SECTIONS:
        values[section] = format_value(parsed.get(BASIC_RESPONSE_KEYS[section]))
    # Unparseable answers still show up in the main panel
    values["main"] = values["main"] or (raw_content or "").strip() or FALLBACKS["main"]
    for section in ("tone", "guardrails", "exit"):
        values[section] = values[section] or FALLBACKS[section]
    values["lead"] = (values["lead"] or FALLBACKS["lead"]) if lead_enabled else LEAD_DISABLED
    return _output(values)


def render_extended(results: Mapping[str, str]) -> RenderedOutput:
    values = {}
    for section in SECTIONS:
        if section == "lead" and section not in results:
            values[section] = LEAD_NOT_APPLICABLE
        else:
            values[section] = render_section(section, results.get(section))
    return _output(values)


class SubmissionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    FETCHING_BUSINESS_NAME = "fetching_business_name"
    SUMMARIZING = "summarizing"
    REQUESTING_SECTIONS = "requesting_sections"
    RENDERING = "rendering"
    ERROR = "error"


_IN_FLIGHT = {
    SubmissionState.SUBMITTING,
    SubmissionState.FETCHING_BUSINESS_NAME,
    SubmissionState.SUMMARIZING,
    SubmissionState.REQUESTING_SECTIONS,
    SubmissionState.RENDERING,
}

TRANSITIONS = {
    SubmissionState.IDLE: {SubmissionState.SUBMITTING},
    SubmissionState.SUBMITTING: {
        SubmissionState.FETCHING_BUSINESS_NAME,
        SubmissionState.SUMMARIZING,
        SubmissionState.REQUESTING_SECTIONS,
    },
    SubmissionState.FETCHING_BUSINESS_NAME: {SubmissionState.SUMMARIZING, SubmissionState.REQUESTING_SECTIONS},
    SubmissionState.SUMMARIZING: {SubmissionState.REQUESTING_SECTIONS},
    SubmissionState.REQUESTING_SECTIONS: {SubmissionState.RENDERING},
    SubmissionState.RENDERING: {SubmissionState.IDLE},
    SubmissionState.ERROR: {SubmissionState.IDLE},
}


class InvalidTransition(Exception):
    pass


@dataclass
class SubmissionMachine:
    sections: tuple = SECTIONS
    state: SubmissionState = SubmissionState.IDLE
    output: Optional[RenderedOutput] = None
    history: list = field(default_factory=list)

    def __post_init__(self):
        if self.output is None:
            self.output = empty_output(self.sections)

    def _move(self, target: SubmissionState) -> None:
        # Any in-flight stage may fail
        allowed = target in TRANSITIONS[self.state] or (
            target == SubmissionState.ERROR and self.state in _IN_FLIGHT
        )
        if not allowed:
            raise InvalidTransition(f"{self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    def submit(self) -> RenderedOutput:
        if self.state == SubmissionState.ERROR:
            self._move(SubmissionState.IDLE)
        self._move(SubmissionState.SUBMITTING)
        self.output = generating_output(self.sections)
        return self.output

    def advance(self, target: SubmissionState) -> None:
        self._move(target)

    def finish(self, output: RenderedOutput) -> RenderedOutput:
        self._move(SubmissionState.RENDERING)
        self.output = output
        self._move(SubmissionState.IDLE)
        return output

    def fail(self, message: str) -> RenderedOutput:
        self._move(SubmissionState.ERROR)
        self.output = error_output(self.sections, message)
        return self.output


class CopyState(str, Enum):
    IDLE = "idle"
    COPIED = "copied"


@dataclass
class CopyButton:
    """Copy-to-clipboard feedback: ``Idle -> Copied`` on copy, back to ``Idle`` when the timer fires."""

    label: str = "Copy"
    copied_label: str = "Copied!"
    reset_after: float = 1.2
    state: CopyState = CopyState.IDLE

    @property
    def text(self) -> str:
        return self.copied_label if self.state == CopyState.COPIED else self.label

    def copy_succeeded(self) -> float:
        """Returns the delay after which the caller must deliver ``timer_elapsed``."""
        self.state = CopyState.COPIED
        return self.reset_after

    def timer_elapsed(self) -> None:
        self.state = CopyState.IDLE
