"""Prompt construction and reply parsing for AI feedback."""
import json
import math
import re
from typing import Any, Dict, List, Optional

SYSTEM_PROMPT = (
    "You are a teaching assistant who writes constructive, specific feedback "
    "on student work. Be encouraging but honest, cite the submission when you "
    "can, and never invent requirements that are not in the assignment. "
    "Reply with a single JSON object and nothing else."
)

TRUNCATION_NOTICE = "\n\n[Submission truncated for length]"

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class FeedbackParseError(ValueError):
    """The model reply could not be turned into feedback."""


def _format_rubric(rubric: List[Dict[str, Any]]) -> str:
    lines = []
    for criterion in rubric:
        lines.append(f"- {criterion['name']} ({criterion['points']:g} points): {criterion['description']}")
    return "\n".join(lines)


def build_feedback_prompt(
    title: str,
    instructions: Optional[str],
    rubric: Optional[List[Dict[str, Any]]],
    max_score: float,
    submission_text: str,
    max_chars: int,
) -> str:
    """Build the user message asking for feedback on one submission."""
    text = submission_text.strip()
    if len(text) > max_chars:
        text = text[:max_chars] + TRUNCATION_NOTICE

    parts = [f"Assignment: {title}"]
    if instructions:
        parts.append(f"Instructions:\n{instructions.strip()}")

    if rubric:
        parts.append(f"Rubric:\n{_format_rubric(rubric)}")
        scoring = (
            'Score every rubric criterion. "criteria" must contain one entry per '
            'criterion: {"criterion": <name exactly as in the rubric>, '
            '"score": <number from 0 to its points>, "comment": <one or two sentences>}.'
        )
    else:
        scoring = (
            f'There is no rubric. Give an overall "score" from 0 to {max_score:g} '
            'and leave "criteria" empty.'
        )

    parts.append(f"Student submission:\n\"\"\"\n{text}\n\"\"\"")
    parts.append(
        "Respond with JSON of the form "
        '{"summary": <short paragraph>, "strengths": [<string>, ...], '
        '"improvements": [<string>, ...], "criteria": [...], "score": <number>}. '
        + scoring
    )
    return "\n\n".join(parts)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _number(value: Any) -> Optional[float]:
    """Finite float from a JSON number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    # json.loads accepts NaN and Infinity
    return number if math.isfinite(number) else None


def parse_feedback_response(
    content: str,
    rubric: Optional[List[Dict[str, Any]]],
    max_score: float,
) -> Dict[str, Any]:
    """
    Validate a model reply and normalise it into feedback fields.

    Criterion scores are clamped to [0, points] and the overall score is the
    sum of the criterion scores. Without a rubric the reported score is
    clamped to [0, max_score].

    Raises:
        FeedbackParseError: If the reply is not a JSON object with a summary
            and usable scores.
    """
    raw = (content or "").strip()
    fenced = _FENCE_RE.match(raw)
    if fenced:
        raw = fenced.group(1)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise FeedbackParseError(f"Reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise FeedbackParseError("Reply is not a JSON object")

    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise FeedbackParseError("Reply has no summary")

    result = {
        "summary": summary.strip(),
        "strengths": _string_list(data.get("strengths")),
        "improvements": _string_list(data.get("improvements")),
        "criteria_scores": [],
    }

    if rubric:
        criteria = data.get("criteria")
        if criteria is None:
            criteria = []
        if not isinstance(criteria, list):
            raise FeedbackParseError("Reply criteria is not a list")
        reported = {}
        for entry in criteria:
            if isinstance(entry, dict) and isinstance(entry.get("criterion"), str):
                reported[entry["criterion"].strip().lower()] = entry

        matched = 0
        for criterion in rubric:
            points = float(criterion["points"])
            entry = reported.get(criterion["name"].strip().lower())
            score = _number(entry.get("score")) if entry else None
            if score is None:
                score = 0.0
                comment = "Not assessed."
            else:
                matched += 1
                comment = entry.get("comment") if isinstance(entry.get("comment"), str) else ""
            result["criteria_scores"].append({
                "criterion": criterion["name"],
                "score": round(_clamp(score, 0.0, points), 2),
                "max_points": points,
                "comment": comment.strip(),
            })

        if matched == 0:
            raise FeedbackParseError("Reply scored none of the rubric criteria")
        result["score"] = round(sum(c["score"] for c in result["criteria_scores"]), 2)
    else:
        score = _number(data.get("score"))
        if score is None:
            raise FeedbackParseError("Reply has no numeric score")
        result["score"] = round(_clamp(score, 0.0, float(max_score)), 2)

    return result
