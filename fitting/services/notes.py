import json
from datetime import date, datetime, timezone
from typing import List, Optional, Union

import structlog
from openai import AsyncOpenAI

from ..config import settings
from ..schemas.fitting import CatalogFitResult, CustomDesignFitResult


logger = structlog.get_logger("fitting")

# Region descriptors that need no follow-up
_SETTLED = {"Perfect fit", "Good fit", "Standard fit", "No data available"}


def _attention_regions(result: Union[CatalogFitResult, CustomDesignFitResult]) -> List[str]:
    return [f"{region} ({label.lower()})" for region, label in result.fit_details.items() if label not in _SETTLED]


def rule_based_notes(result: Union[CatalogFitResult, CustomDesignFitResult], today: Optional[date] = None) -> str:
    today = today or datetime.now(tz=timezone.utc).date()
    parts = [f"Virtual try-on completed on {today.isoformat()}."]
    attention = _attention_regions(result)
    if attention:
        parts.append(f"Areas to check: {', '.join(attention)}.")
    if result.size_recommendation == "Custom":
        parts.append("Made to measure.")
    else:
        parts.append(f"Recommended size: {result.size_recommendation}.")
    return " ".join(parts)


class FittingNotesWriter:
    def __init__(self) -> None:
        self.api_key = settings.openai_api_key
        self.model = settings.openai_model
        self.client = AsyncOpenAI(api_key=self.api_key) if self.api_key else None

    async def write(
        self,
        result: Union[CatalogFitResult, CustomDesignFitResult],
        size: str | None = None,
        today: Optional[date] = None,
    ) -> str:
        # Without a client, produce deterministic rule-based notes
        if not self.client:
            return rule_based_notes(result, today)

        prompt = (
            "You are a fitting-room assistant for a fashion store. Given a virtual try-on fit report "
            "(overall verdict, fit score, recommended size and a per-region fit description), "
            "write the fitting notes as a JSON object with one key 'notes': a single paragraph "
            "(max 50 words) saying what fits well, what may feel tight or loose, and whether to change size. "
            "Do not include markdown formatting, just the raw JSON."
        )
        content = {
            "selected_size": size,
            "fit": result.fit,
            "fit_score": result.fit_score,
            "size_recommendation": result.size_recommendation,
            "fit_details": result.fit_details,
        }
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": json.dumps(content)},
                ],
                temperature=0.3,
                max_tokens=150,
                response_format={"type": "json_object"},
            )
            raw_content = (resp.choices[0].message.content or "").strip()
            notes = json.loads(raw_content).get("notes")
            if not isinstance(notes, str) or not notes.strip():
                raise ValueError("empty notes")
            return notes.strip()
        except Exception as e:
            logger.warning("fitting_notes_llm_failed", error=str(e), error_type=type(e).__name__)
            return rule_based_notes(result, today)
