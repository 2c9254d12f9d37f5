#!/usr/bin/env python3
"""
Flow Studio Curator

Quality review of generated design tokens and theme variations:
accessibility, consistency, brand alignment and technical quality.
Evaluations run at a low temperature so scores stay comparable.
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

EVALUATION_TEMPERATURE = 0.3
THEME_EVALUATION_MAX_TOKENS = 8000


def token_evaluation_prompt(tokens: Dict[str, Any], brand_config: Dict[str, Any]) -> str:
    return f"""Evaluate these design tokens for accessibility, consistency, brand alignment and technical quality.

Design Tokens:
{json.dumps(tokens, indent=2, ensure_ascii=False)}

Brand Configuration:
{json.dumps(brand_config, indent=2, ensure_ascii=False)}

Output JSON with overallScore (0.0-1.0), grade (A+ to F), evaluation (one
section per criterion with score, issues, recommendations), strengths,
weaknesses, criticalIssues, improvements (category, priority, issue, fix,
impact) and summary."""


def theme_evaluation_prompt(
    themes: List[Dict[str, Any]],
    tokens: Dict[str, Any],
    brand_config: Dict[str, Any],
) -> str:
    return f"""Evaluate these theme variations for diversity, accessibility, brand alignment and usability.

Themes:
{json.dumps(themes, indent=2, ensure_ascii=False)}

Base Tokens:
{json.dumps(tokens, indent=2, ensure_ascii=False)}

Brand Configuration:
{json.dumps(brand_config, indent=2, ensure_ascii=False)}

Score each theme, then rank them from best to worst.

Output JSON with overallScore, diversityScore, averageQuality,
themeEvaluations (themeId, themeName, score, grade, strengths, weaknesses,
recommendations), rankedThemes, topThemes (theme ids, best first), insights
and summary."""


class CuratorAgent:
    """Evaluation of tokens and themes on top of the curator agent"""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        memory_store: Optional[MemoryStore] = None,
    ):
        self.agent = create_agent(AgentType.CURATOR, client=client, memory_store=memory_store)

    async def evaluate_tokens(
        self,
        tokens: Dict[str, Any],
        brand_config: Dict[str, Any],
        **options
    ) -> Dict[str, Any]:
        """Evaluation report for a token set against its brand"""
        logger.info("Curator evaluating design tokens")
        options.setdefault("temperature", EVALUATION_TEMPERATURE)

        result = await self.agent.think(
            token_evaluation_prompt(tokens, brand_config),
            {"mode": "token-evaluation"},
            expect_structured=True,
            **options
        )
        return result.response

    async def evaluate_themes(
        self,
        themes: List[Dict[str, Any]],
        tokens: Dict[str, Any],
        brand_config: Dict[str, Any],
        **options
    ) -> Dict[str, Any]:
        """Evaluation and ranking of theme variations"""
        logger.info(f"Curator evaluating {len(themes)} themes")
        options.setdefault("temperature", EVALUATION_TEMPERATURE)
        options.setdefault("max_tokens", THEME_EVALUATION_MAX_TOKENS)

        result = await self.agent.think(
            theme_evaluation_prompt(themes, tokens, brand_config),
            {"mode": "theme-evaluation", "theme_count": len(themes)},
            expect_structured=True,
            **options
        )
        return result.response

    async def save_report(self, evaluation: Dict[str, Any], output_path: Union[str, Path]) -> Path:
        report = {
            **evaluation,
            "generated_by": self.agent.name,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
        path = await asyncio.to_thread(write_json, output_path, report)
        logger.info(f"Evaluation report saved to: {path}")
        return path
