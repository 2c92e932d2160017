"""
Heuristic Label Classifier for Label Check Engine

Classifies food-label text for gluten and lactose using the fixed rule tables
in classifiers.label_rules. Pure and deterministic: same input -> same output,
no I/O, no state shared between calls.

Pipeline (strict order):
1. Normalize text (lowercase, strip diacritics)
2. Run every matcher independently (gluten sources, dairy, advisories, pros, cons)
3. Resolve gluten origin by fixed precedence
4. Assemble pros/cons in fixed order
5. Score (10 minus penalties, clamped to [1, 10])
6. Synthesize the templated summary

Output format (ClassificationResult.to_dict(), camelCase wire names):
- hasGluten, glutenOrigin, hasLactose, crossContam, pros, cons, score, summary
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from normalize.label_normalizer import normalize_label_text
from classifiers.label_rules import (
    CONS_MARKERS,
    CROSS_CONTAMINATION,
    GLUTEN_PRECEDENCE,
    GLUTEN_SOURCES,
    LABELS,
    LACTOSE_MARKERS,
    PROS_MARKERS,
    SCORE_MAX,
    SCORE_WEIGHTS,
    SUMMARIES,
    UNSPECIFIED_ORIGIN,
    clamp_score,
)


@dataclass(frozen=True)
class ClassificationResult:
    """
    Immutable classification of one food label.

    Invariants:
    - gluten_origin is set if and only if has_gluten
    - score is an int in [1, 10]
    - pros / cons hold no duplicates
    """
    has_gluten: bool = False
    gluten_origin: Optional[str] = None
    has_lactose: bool = False
    cross_contam: bool = False
    pros: Tuple[str, ...] = field(default_factory=tuple)
    cons: Tuple[str, ...] = field(default_factory=tuple)
    score: int = SCORE_MAX
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON wire shape."""
        return {
            "hasGluten": self.has_gluten,
            "glutenOrigin": self.gluten_origin,
            "hasLactose": self.has_lactose,
            "crossContam": self.cross_contam,
            "pros": list(self.pros),
            "cons": list(self.cons),
            "score": self.score,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class LabelFindings:
    """Raw matcher output for one normalized text."""
    gluten_hits: Tuple[str, ...]
    has_lactose: bool
    cross_contam: bool
    pros_findings: Tuple[str, ...]
    cons_findings: Tuple[str, ...]

    @property
    def has_gluten(self) -> bool:
        return bool(self.gluten_hits)

    @property
    def gluten_origin(self) -> Optional[str]:
        for key in GLUTEN_PRECEDENCE:
            if key in self.gluten_hits:
                return key
        return None


def detect_findings(text: str) -> LabelFindings:
    """
    Run every matcher against already-normalized text.

    Matchers are independent: one text can trigger several categories.
    An allergen word inside an advisory clause ("puede contener trazas de trigo")
    still counts as a direct gluten hit.
    """
    gluten_hits = tuple(source.key for source in GLUTEN_SOURCES if source.pattern.search(text))
    return LabelFindings(
        gluten_hits=gluten_hits,
        has_lactose=any(marker.search(text) for marker in LACTOSE_MARKERS),
        cross_contam=bool(CROSS_CONTAMINATION.search(text)),
        pros_findings=tuple(m.finding for m in PROS_MARKERS if m.pattern.search(text)),
        cons_findings=tuple(m.finding for m in CONS_MARKERS if m.pattern.search(text)),
    )


def build_pros(findings: LabelFindings) -> List[str]:
    return [m.label for m in PROS_MARKERS if m.finding in findings.pros_findings]


def build_cons(findings: LabelFindings) -> List[str]:
    """Cons order: sugar, sodium, artificial, seed oils, gluten, lactose, cross-contamination."""
    cons = [m.label for m in CONS_MARKERS if m.finding in findings.cons_findings]
    if findings.has_gluten:
        cons.append(LABELS["gluten"])
    if findings.has_lactose:
        cons.append(LABELS["lactose"])
    # Redundant once gluten is confirmed
    if findings.cross_contam and not findings.has_gluten:
        cons.append(LABELS["cross_contamination"])
    return cons


def compute_score(findings: LabelFindings) -> int:
    """Start at 10, subtract each penalty independently, clamp to [1, 10]."""
    score = SCORE_MAX
    for finding in findings.cons_findings:
        score -= SCORE_WEIGHTS[finding]
    if findings.has_gluten:
        score -= SCORE_WEIGHTS["gluten"]
    elif findings.cross_contam:
        score -= SCORE_WEIGHTS["cross_contamination"]
    if findings.has_lactose:
        score -= SCORE_WEIGHTS["lactose"]
    return clamp_score(score)


def build_summary(text: str, has_gluten: bool, gluten_origin: Optional[str],
                  cross_contam: bool, has_lactose: bool) -> str:
    if not text.strip():
        return SUMMARIES["empty"]

    if has_gluten:
        summary = SUMMARIES["gluten"].format(origin=gluten_origin or UNSPECIFIED_ORIGIN)
    elif cross_contam:
        summary = SUMMARIES["cross_contamination"]
    else:
        summary = SUMMARIES["no_gluten"]

    if has_lactose:
        summary = f"{summary} {SUMMARIES['lactose']}"
    return summary


class LabelClassifier:
    """
    Heuristic classifier for food-label text.

    Stateless: the rule tables are module-level immutable data, so one
    instance can be shared freely across threads.
    """

    classification_source = "HEURISTIC"

    def classify(self, raw: Optional[str]) -> ClassificationResult:
        """
        Classify one label.

        Args:
            raw: Label text in any case / accent form (None or "" allowed)

        Returns:
            ClassificationResult (never raises)
        """
        text = normalize_label_text(raw)
        findings = detect_findings(text)

        return ClassificationResult(
            has_gluten=findings.has_gluten,
            gluten_origin=findings.gluten_origin,
            has_lactose=findings.has_lactose,
            cross_contam=findings.cross_contam,
            pros=tuple(build_pros(findings)),
            cons=tuple(build_cons(findings)),
            score=compute_score(findings),
            summary=build_summary(
                text,
                findings.has_gluten,
                findings.gluten_origin,
                findings.cross_contam,
                findings.has_lactose,
            ),
        )

    def classify_batch(self, texts: Iterable[Optional[str]]) -> List[ClassificationResult]:
        """Classify several labels; results follow input order."""
        return [self.classify(text) for text in texts]


_DEFAULT_CLASSIFIER = LabelClassifier()


def classify(raw: Optional[str]) -> ClassificationResult:
    """Module-level shortcut for LabelClassifier().classify(raw)."""
    return _DEFAULT_CLASSIFIER.classify(raw)
