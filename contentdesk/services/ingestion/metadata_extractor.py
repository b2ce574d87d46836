"""LLM-powered extraction of user-defined metadata fields.

Each owner configures a set of
:class:`~contentdesk.models.ingestion.MetadataFieldDefinition` rows (e.g.
``speaker``, ``event_date``, ``topic``).  At ingestion time the
:class:`MetadataExtractor` asks an :class:`ILLMProvider` to fill those fields
from the document text and returns a ``{field_name: value}`` map.  The map is
merged into every vector row of the document so retrieval can filter on it.

The extraction flow:
1. The field names (plus example values, when configured) and the first
   ``max_chars`` characters of text are sent with a JSON-only instruction.
2. The model returns ``{"field": "value" | null, ...}``.
3. The JSON is parsed (handling markdown fences and surrounding prose).
4. Only requested fields with non-empty values are kept, coerced to str.

A failed LLM call raises :class:`~contentdesk.utils.errors.LLMError` so the
job runner can retry the step.  An unparseable reply is logged and yields an
empty map; ingestion continues without extracted fields.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

import structlog

from contentdesk.utils.errors import LLMError

if TYPE_CHECKING:
    from contentdesk.interfaces.llm_provider import ILLMProvider

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_CHARS = 20000

_EXTRACTION_SYSTEM_PROMPT = (
    "You extract structured metadata from documents. Reply with a single JSON "
    "object and nothing else."
)

_EXTRACTION_USER_PROMPT = """\
Extract the following fields from the text: {fields}.
Return JSON with exactly these keys. Each value must be a string, or null if
the text does not state it. Do not guess.
{examples}
Text:
{text}"""

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)


class MetadataExtractor:
    """Fills user-defined metadata fields from document text via an LLM.

    Parameters
    ----------
    llm:
        The LLM provider used for the extraction prompt (injected, swappable).
    max_chars:
        Upper bound on how much document text is sent (default 20000).
    """

    def __init__(self, llm: ILLMProvider, max_chars: int = DEFAULT_MAX_CHARS) -> None:
        self._llm = llm
        self._max_chars = max_chars

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract(
        self,
        field_names: list[str],
        text: str,
        examples: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Extract *field_names* from *text*.

        Parameters
        ----------
        field_names:
            Names of the fields to extract.  An empty list short-circuits to
            ``{}`` without calling the LLM.
        text:
            Source text; truncated to ``max_chars``.
        examples:
            Optional example value per field, shown to the model as a hint.

        Returns
        -------
        dict[str, str]
            Requested fields that were found.  Absent or null fields are
            omitted.

        Raises
        ------
        LLMError
            If the LLM call itself fails.
        """
        if not field_names:
            return {}

        example_lines = ""
        if examples:
            hints = [f'- {name}: e.g. "{value}"' for name, value in examples.items() if value]
            if hints:
                example_lines = "Examples:\n" + "\n".join(hints) + "\n"

        prompt = _EXTRACTION_USER_PROMPT.format(
            fields=", ".join(field_names),
            examples=example_lines,
            text=text[: self._max_chars],
        )

        try:
            response = await self._llm.complete(
                system_prompt=_EXTRACTION_SYSTEM_PROMPT,
                user_prompt=prompt,
                temperature=0.0,
                max_tokens=1000,
                json_mode=True,
            )
        except LLMError:
            raise
        except Exception as exc:
            raise LLMError(
                message=f"Metadata extraction failed: {exc}",
                provider_name=self._llm.get_provider_name(),
            ) from exc

        extracted = self._parse_response(response, field_names)
        logger.info(
            "metadata_extracted",
            requested=len(field_names),
            found=len(extracted),
        )
        return extracted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_response(response: str, field_names: list[str]) -> dict[str, str]:
        """Parse the LLM reply into ``{field: value}`` for requested fields only.

        Handles clean JSON, markdown-fenced JSON, and JSON embedded in prose.
        Returns ``{}`` when nothing parseable is found (never raises).
        """
        cleaned = response.strip()

        fence_match = _FENCE_RE.search(cleaned)
        if fence_match:
            cleaned = fence_match.group(1).strip()
        else:
            brace_start = cleaned.find("{")
            brace_end = cleaned.rfind("}")
            if brace_start != -1 and brace_end > brace_start:
                cleaned = cleaned[brace_start : brace_end + 1]

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning("metadata_json_parse_failed", response_preview=response[:200])
            return {}

        if not isinstance(data, dict):
            return {}

        result: dict[str, str] = {}
        for name in field_names:
            value = data.get(name)
            if value is None or isinstance(value, (dict, list)):
                continue
            value_str = str(value).strip()
            if value_str:
                result[name] = value_str
        return result
