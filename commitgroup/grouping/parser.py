"""Parse and validate grouping responses from the model.

Contains:
- extract_json_object: Find the first balanced JSON object in free-form text
- parse_grouping_response: Turn raw model output into validated commit groups
- fallback_response: One fallback group per file, used when output is unusable
"""

import json
import logging
import math
from typing import Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from commitgroup.config import DEFAULT_GROUP_CONFIDENCE, FALLBACK_CONFIDENCE
from commitgroup.errors import ResponseParseError
from commitgroup.grouping.policy import fallback_message, validate_commit_message
from commitgroup.models import (
    AggregatedCommitResponse,
    ChangeRecord,
    CommitGroup,
    GroupingResponsePayload,
    GroupPayload,
)
from commitgroup.sanitizer import SanitizedRecord

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> str:
    """Return the first balanced {...} substring of text.

    Braces inside JSON strings (including escaped quotes) are ignored.
    When an opening brace is never closed, scanning resumes at the next one.

    Args:
        text: Raw model output, possibly wrapped in prose or markdown fences.

    Returns:
        The JSON object text.

    Raises:
        ResponseParseError: If no balanced object exists.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]

        start = text.find("{", start + 1)

    raise ResponseParseError("No JSON object found in response")


def _load_payload(raw: str) -> GroupingResponsePayload:
    json_text = extract_json_object(raw or "")
    try:
        return GroupingResponsePayload.model_validate(json.loads(json_text))
    except (ValueError, PydanticValidationError) as e:
        raise ResponseParseError(f"Response does not match the expected shape: {e}") from e


def _clamp_confidence(value: Optional[float]) -> float:
    if value is None or math.isnan(value):
        return DEFAULT_GROUP_CONFIDENCE
    return min(max(float(value), 0.0), 1.0)


def _fallback_group(record: ChangeRecord) -> CommitGroup:
    return CommitGroup(
        files=[record.file],
        message=fallback_message(record),
        confidence=FALLBACK_CONFIDENCE,
    )


def fallback_response(records: Sequence[ChangeRecord]) -> AggregatedCommitResponse:
    """Build a response with every file in its own fallback group.

    Args:
        records: The accepted change records.

    Returns:
        AggregatedCommitResponse with one singleton group per record.
    """
    return AggregatedCommitResponse(groups=[_fallback_group(record) for record in records])


def parse_grouping_response(
    raw: str,
    records: Sequence[ChangeRecord],
    sanitized: Sequence[SanitizedRecord],
) -> AggregatedCommitResponse:
    """Parse raw model output into commit groups covering every file.

    The result always contains each record's file exactly once. Files the
    model did not place, placed twice, or that the response cannot be
    parsed for, end up in singleton fallback groups.

    Args:
        raw: The raw text returned by the model.
        records: Original change records, in prompt order.
        sanitized: The sanitized records the prompt was built from, aligned
            by position with records.

    Returns:
        AggregatedCommitResponse with validated groups.
    """
    if len(records) != len(sanitized):
        raise ValueError("records and sanitized records must be aligned")

    try:
        payload = _load_payload(raw)
    except ResponseParseError as e:
        logger.warning("Unusable model response, falling back to one group per file: %s", e)
        return fallback_response(records)

    # Names the model saw, mapped back to original paths
    name_to_path: dict[str, str] = {}
    for record, clean in zip(records, sanitized):
        name_to_path.setdefault(clean.file, record.file)
    by_path = {record.file: record for record in records}

    claimed: set[str] = set()
    groups: list[CommitGroup] = []

    for index, item in enumerate(payload.groups):
        try:
            group = GroupPayload.model_validate(item)
        except PydanticValidationError as e:
            logger.warning("Skipping malformed group %d: %s", index, e.errors()[0]["msg"])
            continue

        files: list[str] = []
        for name in group.files:
            path = name_to_path.get(name)
            if path is None:
                logger.debug("Dropping unknown file %r from group %d", name, index)
                continue
            if path in claimed:
                logger.debug("Dropping %s from group %d, already grouped", path, index)
                continue
            claimed.add(path)
            files.append(path)

        if not files:
            continue

        validation = validate_commit_message(group.message)
        if validation.is_valid:
            message = validation.corrected_message
        else:
            logger.warning("Rejected message %r (%s), using fallback", group.message, validation.reason)
            message = fallback_message(by_path[files[0]])

        groups.append(
            CommitGroup(
                files=files,
                message=message,
                description=(group.description or "").strip() or None,
                confidence=_clamp_confidence(group.confidence),
            )
        )

    # Every file the model left out gets its own group
    for record in records:
        if record.file not in claimed:
            claimed.add(record.file)
            groups.append(_fallback_group(record))

    return AggregatedCommitResponse(groups=groups)
