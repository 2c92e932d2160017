"""
Label Rules for Label Check Engine

Immutable rule tables used by the heuristic label classifier.
All patterns are matched against text that has already been lowercased and
stripped of diacritics (see normalize.label_normalizer), so they are written
without accents and without case variants.

Tables:
- GLUTEN_SOURCES: gluten source categories in origin precedence order
- LACTOSE_MARKERS: dairy / lactose markers (any hit -> has_lactose)
- CROSS_CONTAMINATION: advisory phrases ("puede contener", "may contain", ...)
- PROS_MARKERS / CONS_MARKERS: quality markers in output order
- SCORE_WEIGHTS: penalty per finding
- LABELS / SUMMARIES: user-facing wording (Spanish)
"""

import re
from types import MappingProxyType
from typing import NamedTuple, Tuple


class GlutenSource(NamedTuple):
    """A gluten source category and the patterns that reveal it."""
    key: str
    pattern: re.Pattern[str]


class QualityMarker(NamedTuple):
    """A pros/cons marker: finding id, user-facing label, pattern."""
    finding: str
    label: str
    pattern: re.Pattern[str]


# Order is origin precedence: the first matching category becomes gluten_origin.
GLUTEN_SOURCES: Tuple[GlutenSource, ...] = (
    GlutenSource(
        "trigo/wheat",
        re.compile(r"\btrigo\b|\bwheat\b|\bharina de trigo\b|\bwheat flour\b"),
    ),
    GlutenSource(
        "cebada/barley",
        re.compile(r"\bcebada\b|\bbarley\b|\bmalta\b|\bmaltead[oa]s?\b|\bmalt(ed)?\b"),
    ),
    GlutenSource(
        "centeno/rye",
        re.compile(r"\bcenteno\b|\brye\b"),
    ),
    GlutenSource(
        "avena/oats",
        re.compile(r"\bavena\b|\boats?\b"),
    ),
    GlutenSource(
        "salsa de soya/soy sauce",
        # Compounds need both words on the same line; anchored lookaheads keep the scan linear.
        re.compile(
            r"salsa de so(?:ya|ja)|soy sauce"
            r"|^(?=[^\n]*\bso(?:ya|ja)\b)(?=[^\n]*\btrigo\b)"
            r"|^(?=[^\n]*\bsoy\b)(?=[^\n]*\bwheat\b)",
            re.MULTILINE,
        ),
    ),
    GlutenSource(
        "levadura de cerveza/brewer's yeast",
        re.compile(r"levadura de cerveza|brewer'?s yeast"),
    ),
)

GLUTEN_PRECEDENCE: Tuple[str, ...] = tuple(source.key for source in GLUTEN_SOURCES)

LACTOSE_MARKERS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"\bleche\b|\bmilk\b"),
    re.compile(r"\blactosa\b|\blactose\b"),
    re.compile(r"\bqueso\b|\bcheese\b"),
    re.compile(r"\bmantequilla\b|\bbutter\b"),
    re.compile(r"\bcrema\b|\bcream\b"),
    re.compile(r"casein(a|ato)?|caseinate|casein\b"),
    re.compile(r"\bsuero\b|\bwhey\b"),
)

CROSS_CONTAMINATION: re.Pattern[str] = re.compile(
    r"puede contener|trazas|procesad[oa] en (?:una )?instalaciones?|elaborad[oa] en (?:una )?(?:planta|instalaciones?)"
    r"|may contain|\btraces\b|(?:processed|manufactured|produced) in a facility"
)

# Pros, in output order.
PROS_MARKERS: Tuple[QualityMarker, ...] = (
    QualityMarker(
        "gluten_free_claim",
        "Declarado sin gluten",
        re.compile(r"sin gluten|gluten[\s-]*free|libre de gluten"),
    ),
    QualityMarker(
        "lactose_free_claim",
        "Declarado sin lactosa",
        re.compile(r"sin lactosa|lactose[\s-]*free|libre de lactosa|deslactosad[oa]"),
    ),
    QualityMarker(
        "fiber",
        "Fuente de fibra/integral",
        re.compile(r"\b(fibra|integral|whole\s*grains?|fiber|fibre)\b"),
    ),
    QualityMarker(
        "protein",
        "Aporte de proteína",
        re.compile(r"\b(proteinas?|proteins?)\b"),
    ),
)

# Quality cons, in output order. Allergen cons are appended after these.
CONS_MARKERS: Tuple[QualityMarker, ...] = (
    QualityMarker(
        "added_sugar",
        "Azúcares añadidos",
        re.compile(
            r"\b(azucar(es)?|sugars?|sucrose|sacarosa|glucose|glucosa|dextrose|dextrosa|fructose|fructosa"
            r"|jarabe|syrup|sirup|corns?\s*syrup|high[- ]fructose\s*corn\s*syrup|hfcs)\b"
        ),
    ),
    QualityMarker(
        "sodium",
        "Puede ser alto en sodio",
        re.compile(r"\b(sal|sodio|salt|sodium)\b"),
    ),
    QualityMarker(
        "artificial_additives",
        "Aditivos / artificiales",
        re.compile(
            r"\b(colorantes?|color(ing)?|artificial(es)?|preservatives?|conservador(es)?|conservantes?)\b"
        ),
    ),
    QualityMarker(
        "seed_oils",
        "Aceites vegetales refinados",
        re.compile(
            r"\b(aceite de (soya|soja|girasol|maiz|canola)|soy(bean)? oil|sunflower oil|corn oil|canola oil)\b"
        ),
    ),
)

LABELS = MappingProxyType({
    "gluten": "Contiene gluten",
    "lactose": "Contiene lactosa/derivados",
    "cross_contamination": "Riesgo de contaminación cruzada",
})

SCORE_MAX = 10
SCORE_MIN = 1

SCORE_WEIGHTS = MappingProxyType({
    "added_sugar": 2,
    "seed_oils": 1,
    "sodium": 1,
    "artificial_additives": 1,
    "gluten": 3,
    "cross_contamination": 1,
    "lactose": 1,
})

UNSPECIFIED_ORIGIN = "no especificado"

SUMMARIES = MappingProxyType({
    "empty": "Escaneá un producto o pegá el texto de la etiqueta",
    "gluten": "Este producto CONTIENE gluten (origen: {origin}).",
    "cross_contamination": "No se detectó gluten en ingredientes, pero hay riesgo de contaminación cruzada.",
    "no_gluten": "No se detectó gluten en la lista de ingredientes.",
    "lactose": "También presenta lactosa o derivados lácteos.",
    "provider_default": "Análisis generado.",
})


def clamp_score(value: int) -> int:
    """Clamp a score to the valid [SCORE_MIN, SCORE_MAX] range."""
    return max(SCORE_MIN, min(SCORE_MAX, value))
