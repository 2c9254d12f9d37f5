#!/usr/bin/env python3
"""
Flow Studio Stylist

Turns a brand configuration into design tokens and explores theme
variations on top of them. Wraps the generic stylist agent with the
prompts and validation for those two jobs.

Example:
    from swarm.agents.stylist import StylistAgent

    stylist = StylistAgent()
    generated = await stylist.generate_tokens_from_brand(brand_config)
    themes = await stylist.generate_theme_variations(generated.tokens, count=8)
"""

import json
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from completion_client import CompletionClient
from config import AgentType
from errors import TokenValidationError
from swarm.agents.base_agent import create_agent
from swarm.memory import MemoryStore, write_json

logger = logging.getLogger(__name__)

REQUIRED_TOKEN_GROUPS = ["colors", "typography", "spacing"]
REQUIRED_PALETTES = ["primary", "accent"]

TOKEN_TEMPERATURE = 0.8
THEME_TEMPERATURE = 0.9
THEME_MAX_TOKENS = 8000


@dataclass
class TokenGenerationResult:
    """Validated tokens plus where they came from"""
    tokens: Dict[str, Any]
    metadata: Dict[str, Any] = field(default_factory=dict)


def brand_name(brand_config: Dict[str, Any]) -> Optional[str]:
    return (brand_config.get("meta") or {}).get("name")


def validate_tokens(tokens: Any) -> None:
    """
    Check generated tokens carry the groups every theme builds on.

    Raises:
        TokenValidationError: a required group or color palette is missing
    """
    if not isinstance(tokens, dict):
        raise TokenValidationError("Design tokens must be a JSON object", REQUIRED_TOKEN_GROUPS)

    missing = [name for name in REQUIRED_TOKEN_GROUPS if not tokens.get(name)]
    if missing:
        raise TokenValidationError(f"Missing required token field: {', '.join(missing)}", missing)

    colors = tokens["colors"]
    missing = [name for name in REQUIRED_PALETTES if not (isinstance(colors, dict) and colors.get(name))]
    if missing:
        raise TokenValidationError(f"Missing required color palettes: {', '.join(missing)}", missing)

    logger.info("Token validation passed")


def token_prompt(brand_config: Dict[str, Any]) -> str:
    visual = brand_config.get("visual") or {}
    tone = (brand_config.get("voice") or {}).get("tone") or []

    return f"""Generate comprehensive design tokens for this brand:

{json.dumps(brand_config, indent=2, ensure_ascii=False)}

Requirements:
1. Colors: primary, accent, neutral, success, warning and error scales (50-900),
   hex values, color temperature {visual.get("colorTemperature", "neutral")},
   sophistication {visual.get("sophistication", "standard")}, WCAG AAA contrast
   (7:1 for text, 4.5:1 for UI)
2. Typography: 2-3 font families matching the voice {json.dumps(tone)},
   a 1.25 modular scale from a 16px base, line heights and weights
3. Spacing: 4px base unit, density {visual.get("density", "medium")}
4. Motion: duration scale, easing curves and spring physics
5. Effects: shadows, blur, border radius and opacity scales
6. Components: button, input, card and navigation dimensions
7. Accessibility: focus ring, 44px minimum touch target, reduced motion

Output one JSON object with the keys project, aesthetic, colors, typography,
spacing, motion, effects, components and accessibility."""


def theme_prompt(tokens: Dict[str, Any], count: int) -> str:
    return f"""Generate {count} distinct theme variations from these base design tokens:

{json.dumps(tokens, indent=2, ensure_ascii=False)}

Every theme keeps the brand coherent and WCAG AAA accessible while exploring a
different direction: light or dark mode, typography hierarchy, motion energy,
layout approach and effect style.

Output a JSON array of themes, each with id, name, description, mood, colors
(primary, accent, background, surface, text, textMuted and their variants),
fonts, spacing, motion, effects and features."""


def normalise_themes(value: Any) -> List[Dict[str, Any]]:
    """Accept a bare array or an object wrapping it under "themes" """
    if isinstance(value, dict):
        value = value.get("themes", [])
    if not isinstance(value, list):
        return []
    return [theme for theme in value if isinstance(theme, dict)]


class StylistAgent:
    """Design token and theme generation on top of the stylist agent"""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        memory_store: Optional[MemoryStore] = None,
    ):
        self.agent = create_agent(AgentType.STYLIST, client=client, memory_store=memory_store)

    async def generate_tokens_from_brand(
        self,
        brand_config: Dict[str, Any],
        **options
    ) -> TokenGenerationResult:
        """
        Generate and validate design tokens for a brand.

        Args:
            brand_config: Brand configuration (meta, voice, visual, constraints)
            **options: model, max_tokens or temperature overrides

        Returns:
            TokenGenerationResult with the tokens and generation metadata

        Raises:
            TokenValidationError: the reply lacks a required group or palette
        """
        logger.info(f"Stylist generating design tokens for {brand_name(brand_config) or 'project'}")
        options.setdefault("temperature", TOKEN_TEMPERATURE)

        result = await self.agent.think(
            token_prompt(brand_config),
            {"brand_config": brand_config, "mode": "token-generation"},
            expect_structured=True,
            **options
        )

        tokens = result.response
        validate_tokens(tokens)

        return TokenGenerationResult(
            tokens=tokens,
            metadata={
                "generated_by": self.agent.name,
                "brand_name": brand_name(brand_config),
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "duration": result.duration,
            },
        )

    async def generate_theme_variations(
        self,
        tokens: Dict[str, Any],
        count: int = 8,
        **options
    ) -> List[Dict[str, Any]]:
        """Generate count theme variations built on tokens"""
        logger.info(f"Stylist generating {count} theme variations")
        options.setdefault("temperature", THEME_TEMPERATURE)
        options.setdefault("max_tokens", THEME_MAX_TOKENS)

        result = await self.agent.think(
            theme_prompt(tokens, count),
            {"mode": "theme-generation", "count": count},
            expect_structured=True,
            **options
        )

        themes = normalise_themes(result.response)
        logger.info(f"Generated {len(themes)} theme variations")
        return themes

    async def refine_theme(self, theme: Dict[str, Any], feedback: str, **options) -> Any:
        """Refine one theme against free-form feedback"""
        result = await self.agent.refine(theme, feedback, **options)
        return result.response

    async def refine_tokens(
        self,
        tokens: Dict[str, Any],
        issues: List[str],
        improvements: Optional[List[Any]] = None,
        **options
    ) -> Any:
        """Ask for a corrected token set addressing critical issues"""
        result = await self.agent.think(
            f"Refine these design tokens to fix these critical issues: {', '.join(map(str, issues))}",
            {
                "current_tokens": tokens,
                "issues": issues,
                "improvements": improvements or [],
            },
            expect_structured=True,
            **options
        )
        return result.response

    async def save_tokens(self, tokens: Dict[str, Any], output_path: Union[str, Path]) -> Path:
        path = await asyncio.to_thread(write_json, output_path, tokens)
        logger.info(f"Design tokens saved to: {path}")
        return path

    async def save_themes(self, themes: List[Dict[str, Any]], output_path: Union[str, Path]) -> Path:
        path = await asyncio.to_thread(write_json, output_path, themes)
        logger.info(f"Themes saved to: {path}")
        return path
