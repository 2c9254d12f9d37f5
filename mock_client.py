#!/usr/bin/env python3
"""
Flow Studio Mock Completion Client

Drop-in replacement for CompletionClient that never touches the network.
Useful for developing workflows and running the swarm without API costs.

Structured requests get a canned JSON payload chosen by keywords in the
prompt; free-text requests get a fixed sentence.

Example:
    from mock_client import MockCompletionClient
    from swarm import AgentSwarm

    swarm = AgentSwarm.create_flow_studio_swarm(client=MockCompletionClient())
    record = await swarm.execute("Generate design tokens", expect_structured=True)
"""

import json
import re
import asyncio
from typing import Any, Dict, List, Optional
import logging

from completion_client import CompletionClient, CompletionRequest, CompletionResult
from config import CompletionConfig, OutputKind

logger = logging.getLogger(__name__)

MOCK_TEXT = "This is a mock response. Use CompletionClient to reach the real service."
MOCK_USAGE = {"prompt_tokens": 1000, "completion_tokens": 500, "total_tokens": 1500}


def _mock_plan(prompt: str) -> Dict[str, Any]:
    """Assign one subtask to each agent listed under available_agents"""
    match = re.search(r'"available_agents":\s*(\[[^\]]*\])', prompt)
    agents: List[str] = json.loads(match.group(1)) if match else []
    workers = [a for a in agents if a != "coordinator"]
    return {
        "subtasks": [
            {"task": f"Contribute {agent} expertise", "agents": [agent]}
            for agent in workers
        ],
    }


def _mock_trends() -> Dict[str, Any]:
    return {
        "year": 2025,
        "trends": {
            "visual": [
                {
                    "trend": "OKLCH Perceptual Color",
                    "implementation": "Use oklch() in CSS or convert hex to OKLCH",
                },
                {
                    "trend": "Glassmorphism",
                    "implementation": "backdrop-filter: blur() with semi-transparent backgrounds",
                },
            ],
            "typography": [{"trend": "Variable fonts", "implementation": "font-variation-settings"}],
        },
    }


def _mock_tokens() -> Dict[str, Any]:
    return {
        "colors": {
            "primary": {"value": "#2563EB", "contrast": "7.1:1"},
            "accent": {"value": "#7C3AED", "contrast": "7.4:1"},
            "surface": {"value": "#FFFFFF"},
            "text": {"value": "#0F172A"},
        },
        "typography": {
            "fontFamily": {"heading": "Inter", "body": "Inter"},
            "scale": {"base": "16px", "ratio": 1.25},
        },
        "spacing": {"unit": "8px", "scale": [4, 8, 12, 16, 24, 32, 48]},
        "motion": {"duration": {"fast": "150ms", "base": "250ms"}, "easing": "cubic-bezier(0.4, 0, 0.2, 1)"},
    }


def _mock_themes() -> Dict[str, Any]:
    return {
        "themes": [
            {"id": "light", "name": "Light", "colors": {"background": "#FFFFFF", "text": "#0F172A"}},
            {"id": "dark", "name": "Dark", "colors": {"background": "#0F172A", "text": "#F8FAFC"}},
            {"id": "high-contrast", "name": "High Contrast", "colors": {"background": "#000000", "text": "#FFFFFF"}},
        ],
    }


def _mock_evaluation() -> Dict[str, Any]:
    return {
        "overallScore": 0.92,
        "grade": "A",
        "evaluation": {
            "accessibility": {"score": 0.95, "wcagCompliance": "AAA", "issues": []},
            "consistency": {"score": 0.9, "issues": []},
        },
        "strengths": ["Cohesive palette", "Accessible contrast"],
        "criticalIssues": [],
        "improvements": [],
        "summary": "Accessible, consistent token set",
    }


def _mock_brand_analysis() -> Dict[str, Any]:
    return {
        "brandName": "Mock Brand",
        "sector": "general",
        "analysis": {
            "voice": "Confident and warm",
            "audience": "Design-aware professionals",
            "differentiation": "Editorial typography over stock imagery",
        },
        "recommendations": {
            "colorPalette": {"primary": "Deep blue for trust", "accent": "Violet for energy", "mood": "cool"},
            "typography": {"heading": "Inter", "body": "Inter", "style": "modern"},
        },
        "mustAvoid": ["Harsh shadows"],
        "opportunities": ["Kinetic headings"],
    }


def _mock_palettes() -> Dict[str, Any]:
    return {
        "palettes": [
            {
                "name": "Deep Ocean",
                "primary": {"hex": "#1E3A8A", "oklch": "oklch(0.38 0.14 265)"},
                "accent": {"hex": "#7C3AED", "oklch": "oklch(0.54 0.25 293)"},
                "neutral": {"hex": "#0F172A", "oklch": "oklch(0.21 0.04 265)"},
                "bestFor": ["Finance", "SaaS"],
            },
        ],
    }


def _mock_pairings() -> Dict[str, Any]:
    return {
        "pairings": [
            {
                "name": "Modern Editorial",
                "heading": {"font": "Outfit", "variable": True, "weights": [600, 700]},
                "body": {"font": "Inter", "variable": True, "weights": [400, 500]},
                "rationale": "Geometric headings over a neutral workhorse",
            },
        ],
        "recommendations": "Load both as variable fonts",
    }


def _mock_theme_evaluation() -> Dict[str, Any]:
    return {
        "overallScore": 0.88,
        "diversityScore": 0.9,
        "averageQuality": 0.87,
        "themeEvaluations": [
            {"themeId": "light", "themeName": "Light", "score": 0.9, "grade": "A"},
            {"themeId": "dark", "themeName": "Dark", "score": 0.88, "grade": "A"},
            {"themeId": "high-contrast", "themeName": "High Contrast", "score": 0.85, "grade": "B"},
        ],
        "topThemes": ["light", "dark", "high-contrast"],
        "summary": "Coherent, accessible set",
    }


def mock_structured_response(prompt: str) -> Dict[str, Any]:
    """Pick a canned payload by what the prompt asks for"""
    lowered = prompt.lower()
    if "decompose" in lowered:
        return _mock_plan(prompt)
    if "evaluate" in lowered or "quality" in lowered:
        if "theme variations" in lowered:
            return _mock_theme_evaluation()
        return _mock_evaluation()
    if "analyze this brand" in lowered:
        return _mock_brand_analysis()
    if "color palettes" in lowered:
        return _mock_palettes()
    if "font pairings" in lowered:
        return _mock_pairings()
    if "trend" in lowered:
        return _mock_trends()
    if "theme" in lowered:
        return _mock_themes()
    if "token" in lowered:
        return _mock_tokens()
    return {"mock": True, "message": "Mock response"}


class MockCompletionClient(CompletionClient):
    """CompletionClient that answers locally with canned payloads"""

    def __init__(self, config: Optional[CompletionConfig] = None, latency: float = 0.0):
        """
        Args:
            config: Default completion parameters
            latency: Simulated seconds per call
        """
        self.async_client = None
        self.config = config or CompletionConfig(model="mock-model")
        self.latency = latency
        self.calls: List[CompletionRequest] = []

        logger.info("Initialized MockCompletionClient (no network)")

    async def _dispatch(self, request: CompletionRequest) -> CompletionResult:
        self.calls.append(request)
        if self.latency:
            await asyncio.sleep(self.latency)

        if request.output is OutputKind.STRUCTURED:
            text = json.dumps(mock_structured_response(request.prompt), indent=2)
        else:
            text = MOCK_TEXT

        return CompletionResult(
            text=text,
            usage=dict(MOCK_USAGE),
            model="mock-model",
            stop_reason="stop",
            output=request.output,
        )
