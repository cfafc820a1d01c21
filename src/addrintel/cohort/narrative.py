"""Cohort narrative: LLM interpretation with a deterministic fallback."""

import asyncio
import json
import logging
from typing import Any

from addrintel.cohort.models import Narrative
from addrintel.errors import ExternalServiceError
from addrintel.services.llm import LLMService

logger = logging.getLogger(__name__)


def build_prompt(wallet_count: int, demographics: dict[str, Any], behavioral: dict[str, Any]) -> str:
    scores = demographics["average_scores"]
    return f"""Analyze this group of {wallet_count} wallets and provide insights.

Group Demographics:
- Average Activity Score: {scores["activity_score"]}
- Average Engagement Score: {scores["engagement_score"]}
- Average Loyalty Score: {scores["loyalty_score"]}
- Average Viral Potential: {scores["viral_potential"]}
- Risk Profile: {demographics["risk_profile"]}

Marketing Segments: {json.dumps(demographics["marketing_segmentation"])}
Risk Tolerance: {json.dumps(behavioral["risk_tolerance"])}
Portfolio Composition: {json.dumps(behavioral["portfolio_composition"])}

Provide analysis in JSON format:
{{
  "summary": "2-3 sentence overview of this wallet group",
  "key_findings": ["finding1", "finding2", "finding3"],
  "actionable_insights": ["insight1", "insight2", "insight3"],
  "risk_assessment": "risk level and mitigation strategies",
  "marketing_strategy": "recommended marketing approach for this group"
}}"""


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_narrative(text: str) -> Narrative:
    """Parse a model reply into a Narrative.

    Raises:
        ValueError: If the reply is not a JSON object with a summary
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Narrative reply is not a JSON object")

    summary = _pick(data, "summary")
    if not summary:
        raise ValueError("Narrative reply has no summary")

    return Narrative(
        summary=str(summary),
        key_findings=_string_list(_pick(data, "key_findings", "keyFindings")),
        actionable_insights=_string_list(_pick(data, "actionable_insights", "actionableInsights")),
        risk_assessment=str(_pick(data, "risk_assessment", "riskAssessment") or ""),
        marketing_strategy=str(_pick(data, "marketing_strategy", "marketingStrategy") or ""),
        source="llm",
    )


def fallback_narrative(wallet_count: int, demographics: dict[str, Any]) -> Narrative:
    """Templated narrative built only from computed statistics."""
    scores = demographics["average_scores"]
    segmentation = demographics["marketing_segmentation"]
    primary_segment = next(iter(segmentation), "unknown")
    # Activity is compared on the 0-1000 wallet scale
    activity_level = "high" if scores["activity_score"] * 10 > 500 else "moderate"

    return Narrative(
        summary=(
            f"Analysis of {wallet_count} wallets with average engagement score of "
            f"{scores['engagement_score']}"
        ),
        key_findings=[
            f"Group shows {demographics['risk_profile']} characteristics",
            f"Primary marketing segment: {primary_segment}",
            f"Average activity level indicates {activity_level} engagement",
        ],
        actionable_insights=[
            "Customize marketing messages based on risk tolerance distribution",
            "Focus on high-activity segments for engagement campaigns",
            "Implement risk-appropriate product offerings",
        ],
        risk_assessment=f"Group classified as {demographics['risk_profile']}",
        marketing_strategy="Segment-based targeted campaigns recommended",
        source="fallback",
    )


async def generate_narrative(
    llm: LLMService,
    wallet_count: int,
    demographics: dict[str, Any],
    behavioral: dict[str, Any],
    timeout: float,
) -> Narrative:
    """Ask the model for a narrative, falling back on any failure."""
    prompt = build_prompt(wallet_count, demographics, behavioral)
    try:
        reply = await asyncio.wait_for(llm.complete(prompt, json_mode=True), timeout=timeout)
        return parse_narrative(reply)
    except asyncio.TimeoutError:
        logger.warning("AI analysis timed out after %.1fs, using fallback insights", timeout)
    except ExternalServiceError as e:
        logger.warning("AI analysis failed, using fallback insights: %s", e.message)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("AI analysis returned an unusable reply, using fallback insights: %s", e)
    except Exception as e:
        logger.warning("AI analysis failed unexpectedly, using fallback insights: %s", e)
    return fallback_narrative(wallet_count, demographics)
