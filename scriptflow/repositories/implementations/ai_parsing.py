"""Prompt building and response parsing shared by the AI adapters."""
import json
import re
from typing import Any, Dict, List, Optional

import structlog

from scriptflow.core.diffs import make_unified_diff
from scriptflow.core.errors import AIProviderError
from scriptflow.models.schemas import (
    InsightAnalysis, InsightCreate, InsightSeverity, RunSummary, ScriptEnhancement,
)

logger = structlog.get_logger()

ENHANCE_SYSTEM_PROMPT = (
    "You are an expert Playwright test automation engineer. You improve existing browser test scripts: "
    "stronger selectors, explicit waits, resilient flows, clearer assertions. Keep the script's intent.\n\n"
    "IMPORTANT: Reply with a single, valid JSON object ONLY (no markdown, no backticks, no commentary):\n"
    "{\n"
    "  \"script\": string,      // the complete improved script\n"
    "  \"confidence\": number,  // 0.0 - 1.0, how sure you are the change is correct\n"
    "  \"summary\": string      // one or two sentences describing the change\n"
    "}"
)

ANALYZE_SYSTEM_PROMPT = (
    "You are a test reliability analyst. Given a browser test script and its recent runs, report flaky steps, "
    "recurring failures and healing suggestions.\n\n"
    "Reply with a single JSON object ONLY:\n"
    "{\n"
    "  \"findings\": [\n"
    "    {\"type\": string, \"severity\": \"info\"|\"low\"|\"medium\"|\"high\"|\"critical\", "
    "\"summary\": string, \"details\": object}\n"
    "  ]\n"
    "}"
)


def build_enhance_prompt(content: str, prompt: str) -> str:
    return f"""Improve the following test script.

Instructions:
{prompt}

Current Script:
{content}
"""


def build_analyze_prompt(content: str, runs: List[RunSummary]) -> str:
    run_data = [run.model_dump(mode="json") for run in runs]
    return f"""Analyze the reliability of this test script.

Script:
{content}

Recent Runs (newest first):
{json.dumps(run_data, indent=2)}
"""


def extract_json(content: str) -> Optional[str]:
    """Extract a single JSON object from content.
    Handles code fences and finds the first balanced JSON object.
    """
    if not content:
        return None
    cleaned = content.strip()
    if cleaned.startswith("```"):
        # remove opening fence and optional language (e.g., ```json)
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else cleaned
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
    cleaned = cleaned.replace("```json", "").replace("```JSON", "").strip()

    m = re.search(r"\{[\s\S]*\}", cleaned)
    if m:
        try:
            json.loads(m.group())
            return m.group()
        except ValueError:
            pass

    # Fallback: balanced braces scan
    depth = 0
    start = -1
    for i, ch in enumerate(cleaned):
        if ch == '{':
            if depth == 0:
                start = i
            depth += 1
        elif ch == '}':
            if depth > 0:
                depth -= 1
                if depth == 0 and start != -1:
                    candidate = cleaned[start: i + 1]
                    try:
                        json.loads(candidate)
                        return candidate
                    except ValueError:
                        start = -1
                        continue
    return None


def _load_object(text: str, provider: str) -> Dict[str, Any]:
    extracted = extract_json(text)
    if not extracted:
        raise AIProviderError(
            "AI provider returned no JSON object",
            details={"provider": provider, "response_preview": (text or "")[:200]},
        )
    parsed = json.loads(extracted)
    if not isinstance(parsed, dict):
        raise AIProviderError("AI provider returned malformed JSON", details={"provider": provider})
    return parsed


def clamp_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if confidence != confidence:  # NaN
        return 0.0
    # some models answer on a 0-100 scale
    if confidence > 1.0 and confidence <= 100.0:
        confidence = confidence / 100.0
    return min(max(confidence, 0.0), 1.0)


def parse_enhancement(text: str, original: str, model: str, provider: str) -> ScriptEnhancement:
    parsed = _load_object(text, provider)
    improved = parsed.get("script")
    if not isinstance(improved, str):
        raise AIProviderError(
            "AI provider response did not contain a script",
            details={"provider": provider, "keys": sorted(parsed.keys())},
        )
    if "confidence" not in parsed:
        logger.warning("AI response missing confidence; defaulting to 0", provider=provider, model=model)

    summary = parsed.get("summary")
    return ScriptEnhancement(
        proposed_diff=make_unified_diff(original, improved),
        confidence=clamp_confidence(parsed.get("confidence")),
        ai_model=model,
        summary=str(summary) if summary is not None else None,
    )


def parse_analysis(text: str, model: str, provider: str) -> InsightAnalysis:
    parsed = _load_object(text, provider)
    findings: List[InsightCreate] = []
    for raw in parsed.get("findings") or []:
        if not isinstance(raw, dict) or not raw.get("summary"):
            continue
        severity = str(raw.get("severity", "info")).lower()
        if severity not in {s.value for s in InsightSeverity}:
            severity = InsightSeverity.INFO.value
        details = raw.get("details")
        if details is None:
            details = {}
        elif not isinstance(details, dict):
            details = {"value": details}
        findings.append(
            InsightCreate(
                type=str(raw.get("type") or "analysis")[:50],
                severity=InsightSeverity(severity),
                summary=str(raw["summary"]),
                details=details,
            )
        )
    return InsightAnalysis(findings=findings, ai_model=model)
