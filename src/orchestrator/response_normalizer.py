"""
Provider Response Normalizer for Label Check Engine

The LLM provider is an untrusted, loosely-typed boundary. Its parsed JSON is
kept as an untyped value until this module materializes it field by field
into a ClassificationResult.

Field rules:
- score: number (or numeric string) -> rounded, clamped to [1, 10]; otherwise 5
- pros / cons: list -> non-blank strings, deduplicated in order; otherwise []
- summary: non-blank string; otherwise "Análisis generado."
- hasGluten / hasLactose / crossContam: real booleans only; otherwise False
- glutenOrigin: absent when the key is missing or hasGluten is false;
  "no especificado" when hasGluten is true but no usable origin was given

After field defaults, cons are reconciled with the booleans so the result
always satisfies the ClassificationResult invariants.
"""

import math
from typing import Any, List, Optional, Tuple

from classifiers.label_classifier import ClassificationResult
from classifiers.label_rules import LABELS, SUMMARIES, UNSPECIFIED_ORIGIN, clamp_score

DEFAULT_PROVIDER_SCORE = 5


class MalformedResponseError(ValueError):
    """Provider response is not a JSON object."""


def _coerce_score(value: Any) -> Optional[int]:
    # bool is an int subclass
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return clamp_score(int(round(value)))
    return None


def _coerce_string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    items: List[str] = []
    for item in value:
        if isinstance(item, str) and item.strip() and item.strip() not in items:
            items.append(item.strip())
    return items


def _coerce_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def normalize_provider_response_with_report(raw: Any) -> Tuple[ClassificationResult, List[str]]:
    """
    Materialize a provider response into a ClassificationResult.

    Args:
        raw: Parsed provider JSON (any type)

    Returns:
        Tuple of (result, defaulted_fields) where defaulted_fields lists the
        wire names that were missing or mistyped

    Raises:
        MalformedResponseError: If raw is not a JSON object
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(raw).__name__}")

    defaulted: List[str] = []

    score = _coerce_score(raw.get("score"))
    if score is None:
        defaulted.append("score")
        score = DEFAULT_PROVIDER_SCORE

    flags = {}
    for key in ("hasGluten", "hasLactose", "crossContam"):
        flag = _coerce_bool(raw.get(key))
        if flag is None:
            defaulted.append(key)
            flag = False
        flags[key] = flag

    lists = {}
    for key in ("pros", "cons"):
        items = _coerce_string_list(raw.get(key))
        if items is None:
            defaulted.append(key)
            items = []
        lists[key] = items

    summary = raw.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        defaulted.append("summary")
        summary = SUMMARIES["provider_default"]

    has_gluten = flags["hasGluten"]
    gluten_origin = None
    if "glutenOrigin" not in raw:
        defaulted.append("glutenOrigin")
    elif has_gluten:
        origin = raw["glutenOrigin"]
        gluten_origin = origin.strip() if isinstance(origin, str) and origin.strip() else None
    if has_gluten and gluten_origin is None:
        gluten_origin = UNSPECIFIED_ORIGIN

    cons = lists["cons"]
    if has_gluten and LABELS["gluten"] not in cons:
        cons.append(LABELS["gluten"])
    if not (flags["crossContam"] and not has_gluten):
        cons = [c for c in cons if c != LABELS["cross_contamination"]]

    result = ClassificationResult(
        has_gluten=has_gluten,
        gluten_origin=gluten_origin,
        has_lactose=flags["hasLactose"],
        cross_contam=flags["crossContam"],
        pros=tuple(lists["pros"]),
        cons=tuple(cons),
        score=score,
        summary=summary.strip(),
    )
    return result, defaulted


def normalize_provider_response(raw: Any) -> ClassificationResult:
    """Materialize a provider response; see normalize_provider_response_with_report."""
    result, _ = normalize_provider_response_with_report(raw)
    return result
