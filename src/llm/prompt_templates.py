"""
Label Check LLM Prompt Templates

These templates are used for LLM-based label classification.
All prompts are designed to:
1. Return a single JSON object with the ClassificationResult shape
2. Flag cross-contamination advisories ("puede contener", "may contain")
3. Keep the score on the same 1-10 scale as the heuristic classifier

Output fields:
- hasGluten, glutenOrigin, hasLactose, crossContam (booleans / origin string)
- pros, cons (arrays of short strings)
- score (integer 1-10)
- summary (one or two sentences)
"""

import json
from typing import Any, Dict, List, Optional

# Bumped whenever the wording below changes
PROMPT_VERSION = "1.0"

# System prompt for label analysis
LABEL_ANALYSIS_SYSTEM = """Sos un analista alimentario. Dado el texto de ingredientes o una foto de etiqueta,
extraé ingredientes y alérgenos (gluten, lácteos) y devolvé un JSON con:
{ hasGluten, glutenOrigin, hasLactose, crossContam, pros[], cons[], score (1-10), summary }.

REGLAS:
1. Devolvé SOLO un objeto JSON válido, sin markdown ni texto adicional
2. glutenOrigin es null cuando hasGluten es false
3. Identificá contaminación cruzada si hay frases tipo "puede contener" o "trazas"
4. score es un entero de 1 a 10 (10 = más saludable); es orientativo
5. pros y cons son frases cortas en español
"""

# User prompt when label text is available
LABEL_TEXT_USER = """Texto de etiqueta:
{text}

Devolvé SOLO el JSON pedido."""

# User prompt accompanying a label photo
LABEL_IMAGE_USER = "Extraé el texto y analizá alérgenos (gluten, lactosa). Devolvé SOLO el JSON pedido."


def build_image_data_url(image_base64: str, mime_type: str = "image/jpeg") -> str:
    """Wrap a base64 payload in a data URL (pass-through if it already is one)."""
    if image_base64.startswith("data:"):
        return image_base64
    return f"data:{mime_type};base64,{image_base64}"


def build_messages(text: Optional[str] = None,
                   image_base64: Optional[str] = None,
                   image_mime_type: str = "image/jpeg",
                   schema: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Build chat-completions messages for one label.

    The image takes precedence when both are given. When a schema is given it is
    appended to the system prompt.

    Raises:
        ValueError: If neither text nor image is provided
    """
    system_prompt = LABEL_ANALYSIS_SYSTEM
    if schema:
        system_prompt = f"{system_prompt}\nEsquema JSON:\n{get_json_schema_for_prompt(schema)}\n"
    messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]

    if image_base64:
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": LABEL_IMAGE_USER},
                {"type": "image_url", "image_url": {"url": build_image_data_url(image_base64, image_mime_type)}},
            ],
        })
    elif text:
        messages.append({
            "role": "user",
            "content": [{"type": "text", "text": LABEL_TEXT_USER.format(text=text)}],
        })
    else:
        raise ValueError("Either text or image_base64 is required")

    return messages


def get_json_schema_for_prompt(schema: Dict[str, Any]) -> str:
    """Render the output schema compactly for inclusion in a prompt."""
    return json.dumps(schema, ensure_ascii=False, indent=2)
