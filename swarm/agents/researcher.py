#!/usr/bin/env python3
"""
Flow Studio Researcher

Design intelligence for the swarm, served by the analyst agent:
- current trend analysis
- brand analysis with design recommendations
- color palette and typography research

Example:
    from swarm.agents.researcher import ResearcherAgent

    researcher = ResearcherAgent()
    trends = await researcher.analyze_trends()
    analysis = await researcher.analyze_brand(brand_config)
"""

import json
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from completion_client import CompletionClient
from config import AgentType
from swarm.agents.base_agent import create_agent
from swarm.memory import MemoryStore, write_json

logger = logging.getLogger(__name__)

TREND_TEMPERATURE = 0.7
BRAND_TEMPERATURE = 0.6

TREND_PROMPT = """As a design trend researcher, analyze the current state of web design.

Cover visual aesthetics (color, typography, layout, effects), interaction
patterns (micro-interactions, scroll and hover effects, loading states),
technical approaches (modern CSS, performance, accessibility, responsive
design), what is outdated, and what is current.

Output JSON with year, trends (visual, interaction, technical; each a list of
trend, description, implementation, examples), deprecated, recommendations
(colors, typography, layout, motion) and tooling (cssFeatures, libraries,
fonts)."""


def brand_prompt(brand_config: Dict[str, Any]) -> str:
    return f"""Analyze this brand configuration and provide design recommendations:

{json.dumps(brand_config, indent=2, ensure_ascii=False)}

Consider how the voice translates visually, what the audience expects, sector
conventions and room to differentiate, the visual attributes, and the
constraints.

Output JSON with brandName, sector, analysis (voice, audience,
differentiation), recommendations (colorPalette, typography, layout, motion,
effects), mustAvoid and opportunities."""


def palette_prompt(mood: str, sophistication: str) -> str:
    return f"""Research and recommend color palettes for web design.

Mood/Temperature: {mood}
Sophistication Level: {sophistication}

Provide 3-5 options, each with primary, accent and neutral colors as hex and
OKLCH values, WCAG AAA contrast (7:1), usage guidance and the psychology of
the palette.

Output JSON: {{"palettes": [{{"name", "description", "primary", "accent",
"neutral", "psychology", "bestFor"}}]}}"""


def typography_prompt(tone_keywords: List[str]) -> str:
    return f"""Research font pairings that match these tone keywords: {', '.join(tone_keywords)}

Consider variable fonts, pairing principles (contrast, harmony, hierarchy),
web font loading performance, and readability.

Output JSON with pairings (name, heading, body, rationale, tone, bestFor) and
recommendations."""


class ResearcherAgent:
    """Trend, brand, palette and typography research on top of the analyst agent"""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        memory_store: Optional[MemoryStore] = None,
    ):
        self.agent = create_agent(AgentType.ANALYST, client=client, memory_store=memory_store)

    async def analyze_trends(self, **options) -> Dict[str, Any]:
        logger.info("Researcher analyzing design trends")
        options.setdefault("temperature", TREND_TEMPERATURE)
        result = await self.agent.think(
            TREND_PROMPT, {"mode": "trend-analysis"}, expect_structured=True, **options
        )
        return result.response

    async def analyze_brand(self, brand_config: Dict[str, Any], **options) -> Dict[str, Any]:
        name = (brand_config.get("meta") or {}).get("name")
        logger.info(f"Researcher analyzing brand {name}")
        options.setdefault("temperature", BRAND_TEMPERATURE)
        result = await self.agent.think(
            brand_prompt(brand_config), {"mode": "brand-analysis"}, expect_structured=True, **options
        )
        return result.response

    async def research_color_palettes(self, mood: str, sophistication: str, **options) -> Dict[str, Any]:
        logger.info(f"Researcher finding color palettes ({mood}, {sophistication})")
        result = await self.agent.think(
            palette_prompt(mood, sophistication),
            {"mood": mood, "sophistication": sophistication, "mode": "color-research"},
            expect_structured=True,
            **options
        )
        return result.response

    async def research_typography(self, tone_keywords: List[str], **options) -> Dict[str, Any]:
        logger.info(f"Researcher researching typography for tone: {', '.join(tone_keywords)}")
        result = await self.agent.think(
            typography_prompt(tone_keywords),
            {"tone_keywords": tone_keywords, "mode": "typography-research"},
            expect_structured=True,
            **options
        )
        return result.response

    async def save_research(self, research: Dict[str, Any], output_path: Union[str, Path]) -> Path:
        output = {
            **research,
            "generated_by": self.agent.name,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
        path = await asyncio.to_thread(write_json, output_path, output)
        logger.info(f"Research saved to: {path}")
        return path
