"""
Incremental extraction of top-level fields from a JSON document that is still
being streamed.

`attempt_partial_parse` does a shallow regex scan for a few known keys and
surfaces each one as soon as its value is syntactically complete. The caller
keeps a cursor (`last_index`) so that a field is reported once; the function
itself holds no state. `extract_sections` and `extract_partial_step` follow
the same cursor contract for the trailing sections of a routine and for the
step that is still being written.

Known limitation: escaped quotes inside a string value (`\\"`) end the scalar
match early, since the pattern stops at the first quote.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional

from thrive_stream._config import DEFAULT_FIELDS, FieldNames, debug_enabled

if TYPE_CHECKING:
    from thrive_stream.session import StreamSession

ExtractionType = Literal["title", "description", "step"]
SectionType = Literal["journalTemplate", "recommendations", "outcomes", "tips", "safety"]
ResultType = Literal[ExtractionType, SectionType, "partial_step"]

# Secciones de lista que se cierran después de los steps, en orden de prioridad.
SECTION_KEYS: tuple[tuple[str, SectionType], ...] = (
    ("additionalRecommendations", "recommendations"),
    ("expectedOutcomes", "outcomes"),
    ("proTips", "tips"),
    ("safetyNotes", "safety"),
)
JOURNAL_TEMPLATE_KEY = "journalTemplate"
PLACEHOLDER_DESCRIPTION = "Loading step details..."
DEFAULT_STEP_DURATION = 5


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """
    Outcome of one extraction attempt.
    `parsed=False` means nothing new is complete yet; it is not an error.
    """

    parsed: bool
    last_index: int
    type: Optional[ResultType] = None
    data: Any = None
    index: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ParsedStep:
    step: dict[str, Any]
    index: int
    end_pos: int


@lru_cache(maxsize=32)
def _scalar_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf'"{re.escape(key)}"\s*:\s*"([^"]+)"')


@lru_cache(maxsize=32)
def _array_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf'"{re.escape(key)}"\s*:\s*\[([\s\S]*?)\]')


def attempt_partial_parse(
    content: str,
    last_index: int = 0,
    fields: FieldNames = DEFAULT_FIELDS,
) -> ExtractionResult:
    """
    Try to pull one newly completed field out of the accumulated text.

    Title wins over description, description over steps. Only the first
    occurrence of each key is considered, and only when it starts strictly
    after `last_index`. For the steps array just the first element is
    returned; the array must be closed and valid JSON.

    Args:
        content: All text received so far.
        last_index: Cursor returned by the previous successful call (0 at start).
        fields: Keys to look for.

    Returns:
        An ExtractionResult; on a hit, `last_index` points just past the match.
    """
    for kind, key in (("title", fields.title), ("description", fields.description)):
        match = _scalar_pattern(key).search(content)
        if match and match.start() > last_index:
            return ExtractionResult(
                parsed=True,
                type=kind,
                data=match.group(1),
                last_index=match.end(),
            )

    match = _array_pattern(fields.steps).search(content)
    if match and match.start() > last_index:
        try:
            steps = json.loads(f"[{match.group(1)}]")
        except (ValueError, RecursionError):
            # El array todavía no está completo.
            steps = None
        if steps:
            return ExtractionResult(
                parsed=True,
                type="step",
                data=steps[0],
                index=0,
                last_index=match.end(),
            )

    return ExtractionResult(parsed=False, last_index=last_index)


_JOURNAL_TEMPLATE = re.compile(rf'"{JOURNAL_TEMPLATE_KEY}"\s*:\s*\{{')


def extract_sections(content: str, last_index: int = 0) -> ExtractionResult:
    """
    Try to pull one newly completed trailing section of a routine document.

    `journalTemplate` is checked first and only counts once it decodes to an
    object with a `journalType`. Then the list sections follow in
    SECTION_KEYS order; each must be a closed, non-empty JSON array and is
    returned whole. The cursor rule is the same as `attempt_partial_parse`.

    Args:
        content: All text received so far.
        last_index: Cursor returned by the previous successful call.

    Returns:
        An ExtractionResult typed as the section name (`tips`, `safety`, ...).
    """
    match = _JOURNAL_TEMPLATE.search(content)
    end = _find_object_end(content, match.end() - 1) if match and match.start() > last_index else -1
    if end != -1:
        try:
            template = json.loads(content[match.end() - 1 : end])
        except (ValueError, RecursionError):
            template = None
        if isinstance(template, dict) and template.get("journalType"):
            return ExtractionResult(
                parsed=True,
                type="journalTemplate",
                data=template,
                last_index=end,
            )

    for key, kind in SECTION_KEYS:
        match = _array_pattern(key).search(content)
        if not match or match.start() <= last_index:
            continue
        try:
            items = json.loads(f"[{match.group(1)}]")
        except (ValueError, RecursionError):
            continue
        if items:
            return ExtractionResult(parsed=True, type=kind, data=items, last_index=match.end())

    return ExtractionResult(parsed=False, last_index=last_index)


def _find_object_end(content: str, start: int) -> int:
    """Index just past the object opened at `start`, or -1 if it is not closed yet."""
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(content)):
        char = content[pos]
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
        elif char == '"':
            in_string = not in_string
        elif not in_string:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return pos + 1
    return -1


def _step_title(obj: dict[str, Any]) -> Any:
    return obj.get("title") or obj.get("stepTitle")


def parse_steps_progressive(
    content: str,
    from_index: int = 0,
    already_parsed: set[str] | None = None,
) -> list[ParsedStep]:
    """
    Find every complete step object from `from_index` onward.

    A step is any closed JSON object with a title (`title`/`stepTitle`) and a
    description (`description`/`stepDescription`). Titles already present in
    `already_parsed` are skipped, and new ones are added to it, so repeated
    calls over growing text report each step once.

    Args:
        content: All text received so far.
        from_index: Where to start scanning.
        already_parsed: Titles reported by previous calls; updated in place.

    Returns:
        New steps in document order, indexed after the already parsed ones.
    """
    seen = already_parsed if already_parsed is not None else set()
    steps: list[ParsedStep] = []
    step_index = len(seen)
    search_pos = max(from_index, 0)

    while search_pos < len(content):
        start = content.find("{", search_pos)
        if start == -1:
            break

        end = _find_object_end(content, start)
        if end == -1:
            search_pos = start + 1
            continue

        try:
            obj = json.loads(content[start:end])
        except (ValueError, RecursionError):
            obj = None

        title = _step_title(obj) if isinstance(obj, dict) else None
        if not (isinstance(title, str) and (obj.get("description") or obj.get("stepDescription"))):
            # Not a step: look inside it, the steps may be nested.
            search_pos = start + 1
            continue

        if title not in seen:
            seen.add(title)
            steps.append(ParsedStep(step=obj, index=step_index, end_pos=end))
            step_index += 1
        search_pos = end

    return steps


_PARTIAL_TITLE = re.compile(r'"(?:title|stepTitle)"\s*:\s*"([^"]+)"')
_PARTIAL_DESCRIPTION = re.compile(r'"(?:description|stepDescription)"\s*:\s*"([^"]+)"')
_PARTIAL_DURATION = re.compile(r'"duration"\s*:\s*["\']?(\d+)')


def extract_partial_step(
    content: str,
    last_index: int = 0,
    fields: FieldNames = DEFAULT_FIELDS,
) -> ExtractionResult:
    """
    Report the step object that is still being written, before it closes.

    Walks the first steps array, counting closed objects, and stops at the
    first unclosed one. If that object starts after `last_index` and its title
    is already complete, the result is a `partial_step` with the title, the
    description if present (a placeholder otherwise), the leading digits of
    `duration` (5 by default) and a 1-based `stepNumber`.

    Args:
        content: All text received so far.
        last_index: Cursor returned by the previous successful call.
        fields: Keys to look for; only `steps` is used.

    Returns:
        An ExtractionResult whose `index` is the position of the step in the
        array and whose `last_index` points just past the title.
    """
    match = re.search(rf'"{re.escape(fields.steps)}"\s*:\s*\[', content)
    if match is None:
        return ExtractionResult(parsed=False, last_index=last_index)

    step_index = 0
    pos = match.end()
    while True:
        start = content.find("{", pos)
        close = content.find("]", pos)
        if start == -1 or (close != -1 and close < start):
            break

        end = _find_object_end(content, start)
        if end != -1:
            step_index += 1
            pos = end
            continue

        title = _PARTIAL_TITLE.search(content, start)
        if title is None or start <= last_index:
            break
        description = _PARTIAL_DESCRIPTION.search(content, start)
        duration = _PARTIAL_DURATION.search(content, start)
        return ExtractionResult(
            parsed=True,
            type="partial_step",
            data={
                "title": title.group(1),
                "description": description.group(1) if description else PLACEHOLDER_DESCRIPTION,
                "duration": int(duration.group(1)) if duration else DEFAULT_STEP_DURATION,
                "stepNumber": step_index + 1,
            },
            index=step_index,
            last_index=title.end(),
        )

    return ExtractionResult(parsed=False, last_index=last_index)


class FieldReader:
    """
    Keeps the extraction cursor for one stream and drains every field that
    became complete since the last call.

        reader = FieldReader(on_field=print)
        reader.attach(session)
    """

    def __init__(
        self,
        *,
        fields: FieldNames | None = None,
        on_field: Callable[[ExtractionResult], None] | None = None,
        sections: bool = True,
    ) -> None:
        self.fields = fields or DEFAULT_FIELDS
        self.on_field = on_field
        self.sections = sections
        self._cursor = 0
        self._debug = debug_enabled()

    @property
    def cursor(self) -> int:
        return self._cursor

    def reset(self) -> None:
        self._cursor = 0

    def _next(self, content: str) -> ExtractionResult:
        result = attempt_partial_parse(content, self._cursor, self.fields)
        if not result.parsed and self.sections:
            result = extract_sections(content, self._cursor)
        return result

    def feed(self, content: str) -> list[ExtractionResult]:
        """
        Run extraction until nothing new is found.

        Args:
            content: The accumulated text of the stream.

        Returns:
            The hits found by this call, in the order they were reported.
        """
        if self._cursor > len(content):
            # El texto se reinició (nuevo turno): el cursor ya no aplica.
            self.reset()

        hits: list[ExtractionResult] = []
        while True:
            result = self._next(content)
            if not result.parsed:
                return hits
            # last_index > cursor en cada acierto, el bucle siempre termina.
            self._cursor = result.last_index
            hits.append(result)
            if self._debug:
                logging.warning("Extracted %s up to index %s", result.type, result.last_index)
            if self.on_field is not None:
                self.on_field(result)

    def attach(self, session: StreamSession) -> StreamSession:
        """
        Chain onto the session's delta callback so each fragment triggers a drain
        over the accumulated content. An existing `on_delta` keeps being called first.
        `session.reset()` also resets this reader, so the next turn starts at 0.
        """
        previous = session.on_delta
        session_reset = session.reset

        def _on_delta(fragment: str) -> None:
            if previous is not None:
                previous(fragment)
            self.feed(session.get_accumulated_content())

        def _reset() -> None:
            session_reset()
            self.reset()

        session.on_delta = _on_delta
        session.reset = _reset
        return session
