#!/usr/bin/env python3
"""
Flow Studio Design System Workflow

End-to-end pipeline from a brand configuration to an evaluated design system:

1. Research - trend analysis (optional) and brand analysis
2. Architecture - design tokens from the brand, validated
3. Themes - theme variations built on the tokens
4. Review - token and theme evaluation by the curator
5. Refinement - corrected tokens when the review reports critical issues

Each step's output and completion time are recorded on the result. With an
output directory every artifact is also written there as JSON.

Example:
    from swarm.workflows import DesignSystemConfig, generate_design_system

    result = await generate_design_system(DesignSystemConfig(
        brand_config="brands/line-creed.json",
        output_dir="output/line-creed",
        theme_count=8,
    ))
    if result.success:
        print(result.top_themes)
"""

import json
import time
import asyncio
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from completion_client import CompletionClient
from swarm.agents.curator import CuratorAgent
from swarm.agents.researcher import ResearcherAgent
from swarm.agents.stylist import StylistAgent, brand_name
from swarm.memory import MemoryStore, utc_now, write_json

logger = logging.getLogger(__name__)

DEFAULT_THEME_COUNT = 20

ARTIFACT_FILES = {
    "brand_config": "brand-config.json",
    "trend_analysis": "trend-analysis.json",
    "brand_analysis": "brand-analysis.json",
    "design_tokens": "design-tokens.json",
    "themes": "themes.json",
    "token_evaluation": "token-evaluation.json",
    "theme_evaluation": "theme-evaluation.json",
    "refined_tokens": "design-tokens-refined.json",
    "summary": "workflow-summary.json",
}


@dataclass
class DesignSystemConfig:
    """Inputs of one design system run"""
    brand_config: Union[Dict[str, Any], str, Path]
    output_dir: Optional[Union[str, Path]] = None
    include_trend_research: bool = True
    theme_count: int = DEFAULT_THEME_COUNT
    auto_refine: bool = True
    workflow_name: Optional[str] = None


@dataclass
class DesignSystemResult:
    """Outcome of a design system run; on failure, the steps completed so far"""
    success: bool
    duration: float
    brand_config: Dict[str, Any] = field(default_factory=dict)
    brand_name: Optional[str] = None
    tokens: Optional[Dict[str, Any]] = None
    themes: List[Dict[str, Any]] = field(default_factory=list)
    top_themes: List[str] = field(default_factory=list)
    quality: Dict[str, Any] = field(default_factory=dict)
    output_dir: Optional[str] = None
    steps: Dict[str, Any] = field(default_factory=dict)
    timestamps: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


async def load_json(path: Union[str, Path]) -> Any:
    def read():
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return await asyncio.to_thread(read)


class DesignSystemWorkflow:
    """Runs researcher, stylist and curator over one brand"""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        memory_store: Optional[MemoryStore] = None,
    ):
        self.memory_store = memory_store or MemoryStore()
        self.researcher = ResearcherAgent(client=client, memory_store=self.memory_store)
        self.stylist = StylistAgent(client=client, memory_store=self.memory_store)
        self.curator = CuratorAgent(client=client, memory_store=self.memory_store)

    async def run(self, config: DesignSystemConfig) -> DesignSystemResult:
        """
        Generate a design system for one brand.

        Any failure stops the pipeline. The result then carries
        success=False, the error message and every step completed before it.
        """
        start = time.monotonic()
        output_dir = Path(config.output_dir) if config.output_dir else None
        result = DesignSystemResult(
            success=False,
            duration=0.0,
            output_dir=str(output_dir) if output_dir else None,
        )

        def record(step: str, value: Any) -> Any:
            result.steps[step] = value
            result.timestamps[step] = utc_now()
            return value

        async def save(step: str, value: Any) -> None:
            if output_dir is not None:
                await asyncio.to_thread(write_json, output_dir / ARTIFACT_FILES[step], value)

        try:
            brand_config = config.brand_config
            if not isinstance(brand_config, dict):
                brand_config = await load_json(brand_config)
            result.brand_config = brand_config
            result.brand_name = brand_name(brand_config)

            meta = brand_config.get("meta") or {}
            logger.info(f"Design system for {meta.get('name', 'Unnamed Project')} ({meta.get('sector', 'General')})")

            # Research
            if config.include_trend_research:
                trends = record("trend_analysis", await self.researcher.analyze_trends())
                if output_dir is not None:
                    await self.researcher.save_research(trends, output_dir / ARTIFACT_FILES["trend_analysis"])

            brand_analysis = record("brand_analysis", await self.researcher.analyze_brand(brand_config))
            if output_dir is not None:
                await self.researcher.save_research(brand_analysis, output_dir / ARTIFACT_FILES["brand_analysis"])

            # Architecture
            generated = await self.stylist.generate_tokens_from_brand(brand_config)
            tokens = record("design_tokens", generated.tokens)
            await save("design_tokens", tokens)

            # Themes
            themes = record("themes", await self.stylist.generate_theme_variations(tokens, config.theme_count))
            await save("themes", themes)

            # Review
            token_evaluation = record(
                "token_evaluation", await self.curator.evaluate_tokens(tokens, brand_config)
            )
            logger.info(
                f"Token quality: {token_evaluation.get('overallScore')} ({token_evaluation.get('grade')})"
            )
            if output_dir is not None:
                await self.curator.save_report(token_evaluation, output_dir / ARTIFACT_FILES["token_evaluation"])

            theme_evaluation = record(
                "theme_evaluation", await self.curator.evaluate_themes(themes, tokens, brand_config)
            )
            top_themes = list(theme_evaluation.get("topThemes") or [])
            logger.info(f"Theme quality: {theme_evaluation.get('overallScore')}, top: {top_themes[:3]}")
            if output_dir is not None:
                await self.curator.save_report(theme_evaluation, output_dir / ARTIFACT_FILES["theme_evaluation"])

            # Refinement
            critical_issues = token_evaluation.get("criticalIssues") or []
            if critical_issues and config.auto_refine:
                logger.info(f"{len(critical_issues)} critical issues found, refining tokens")
                refined = record("refined_tokens", await self.stylist.refine_tokens(
                    tokens, critical_issues, token_evaluation.get("improvements"),
                ))
                await save("refined_tokens", refined)

            result.tokens = tokens
            result.themes = themes
            result.top_themes = top_themes
            result.quality = {
                "tokens": token_evaluation.get("overallScore"),
                "themes": theme_evaluation.get("overallScore"),
            }
            result.duration = time.monotonic() - start
            result.success = True

            summary = self.summarize(result, token_evaluation, theme_evaluation)
            if output_dir is not None:
                await save("summary", summary)
                await save("brand_config", brand_config)
            if config.workflow_name:
                await self.memory_store.save_workflow_result(config.workflow_name, summary)

        except Exception as e:
            logger.error(f"Design system workflow failed: {e}")
            result.error = str(e)
            result.duration = time.monotonic() - start

        return result

    @staticmethod
    def summarize(
        result: DesignSystemResult,
        token_evaluation: Dict[str, Any],
        theme_evaluation: Dict[str, Any],
    ) -> Dict[str, Any]:
        files = {step: name for step, name in ARTIFACT_FILES.items() if step in result.steps}
        files["brand_config"] = ARTIFACT_FILES["brand_config"]

        return {
            "project": result.brand_name,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "duration": result.duration,
            "quality": {
                "tokens": {
                    "score": token_evaluation.get("overallScore"),
                    "grade": token_evaluation.get("grade"),
                },
                "themes": {
                    "score": theme_evaluation.get("overallScore"),
                    "count": len(result.themes),
                    "top_themes": result.top_themes,
                },
            },
            "files": files,
        }


async def generate_design_system(
    config: DesignSystemConfig,
    client: Optional[CompletionClient] = None,
    memory_store: Optional[MemoryStore] = None,
) -> DesignSystemResult:
    """Run the full design system pipeline for one brand"""
    return await DesignSystemWorkflow(client=client, memory_store=memory_store).run(config)


async def quick_generate_tokens(
    brand_config: Union[Dict[str, Any], str, Path],
    output_path: Optional[Union[str, Path]] = None,
    client: Optional[CompletionClient] = None,
    memory_store: Optional[MemoryStore] = None,
) -> Dict[str, Any]:
    """Tokens only, optionally saved to output_path"""
    if not isinstance(brand_config, dict):
        brand_config = await load_json(brand_config)

    stylist = StylistAgent(client=client, memory_store=memory_store)
    generated = await stylist.generate_tokens_from_brand(brand_config)
    if output_path:
        await stylist.save_tokens(generated.tokens, output_path)
    return generated.tokens


async def quick_generate_themes(
    tokens: Union[Dict[str, Any], str, Path],
    count: int = 8,
    output_path: Optional[Union[str, Path]] = None,
    client: Optional[CompletionClient] = None,
    memory_store: Optional[MemoryStore] = None,
) -> List[Dict[str, Any]]:
    """Themes from existing tokens, optionally saved to output_path"""
    if not isinstance(tokens, dict):
        tokens = await load_json(tokens)

    stylist = StylistAgent(client=client, memory_store=memory_store)
    themes = await stylist.generate_theme_variations(tokens, count)
    if output_path:
        await stylist.save_themes(themes, output_path)
    return themes
