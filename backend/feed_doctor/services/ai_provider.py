"""
AI Provider Adapter - capability-gated access to an external text-analysis model.

The adapter speaks the OpenAI-compatible chat-completions protocol. It is
built from an explicit ``AIProviderConfig`` so tests can construct doubles
without touching the environment.

Two call styles are offered:
- ``analyze()`` raises ``AIProviderError`` on any transport or parsing problem.
- ``try_analyze()`` never raises for provider problems; it returns a
  ``ProviderOutcome`` so the orchestrator can branch on success explicitly.

Usage:
    provider = AIProviderAdapter(AIProviderConfig.from_settings(settings))
    outcome = await provider.try_analyze(analysis_input)
    if outcome.ok:
        ...
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from feed_doctor.core.logging import ai_logger, log_ai_request
from feed_doctor.schemas.feed_analysis import AnalysisInput

# Default endpoint and model per provider name
PROVIDER_PRESETS: Dict[str, Dict[str, str]] = {
    "openai": {
        "api_url": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-4-turbo-preview",
    },
    "deepseek": {
        "api_url": "https://api.deepseek.com/v1/chat/completions",
        "model": "deepseek-chat",
    },
}

# Values copied from .env templates that must not count as credentials
PLACEHOLDER_KEYS = {
    "your-openai-api-key-here",
    "your-api-key-here",
    "changeme",
    "sk-xxx",
}

SYSTEM_PROMPT = (
    "You are an e-commerce product analyst specialised in SEO, content optimization "
    "and marketplace performance. Analyze products and return actionable improvement "
    "suggestions as a single JSON object."
)

SEO_TITLE_SYSTEM_PROMPT = "You are an SEO expert. Generate SEO-optimized product titles for e-commerce."


class AIProviderError(RuntimeError):
    """Transport, status or parsing failure while calling the AI provider."""


@dataclass
class AIProviderConfig:
    provider: str = "openai"
    api_key: str = ""
    api_url: Optional[str] = None
    model: Optional[str] = None
    timeout: float = 30.0
    temperature: float = 0.7
    max_tokens: int = 2000

    def __post_init__(self):
        preset = PROVIDER_PRESETS.get(self.provider, PROVIDER_PRESETS["openai"])
        self.api_url = self.api_url or preset["api_url"]
        self.model = self.model or preset["model"]

    @classmethod
    def from_settings(cls, settings) -> "AIProviderConfig":
        return cls(
            provider=settings.AI_PROVIDER,
            api_key=settings.AI_API_KEY,
            api_url=settings.AI_API_URL,
            model=settings.AI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
        )


@dataclass
class ProviderIssue:
    severity: str
    category: str
    message: str
    suggestion: str = ""


@dataclass
class ProviderOptimizations:
    suggested_title: Optional[str] = None
    suggested_description: Optional[str] = None
    suggested_keywords: List[str] = field(default_factory=list)
    suggested_tags: List[str] = field(default_factory=list)
    suggested_price: Optional[Dict[str, Any]] = None


@dataclass
class ProviderSEOScore:
    title_score: int = 50
    description_score: int = 50
    keyword_density: int = 50
    readability: int = 50
    overall: int = 50


@dataclass
class ProviderResult:
    score: int
    issues: List[ProviderIssue]
    optimizations: ProviderOptimizations
    seo_score: ProviderSEOScore
    market_insights: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderOutcome:
    """Either a ``ProviderResult`` or the reason none is available."""

    result: Optional[ProviderResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, result: ProviderResult) -> "ProviderOutcome":
        return cls(result=result)

    @classmethod
    def failure(cls, error: str) -> "ProviderOutcome":
        return cls(error=error)


def _pick(data: Dict[str, Any], *names: str, default=None):
    """First present key among camelCase/snake_case spellings."""
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _clamp_score(value: Any, default: int = 50) -> int:
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return default


def _expect(value: Any, kind: type, name: str):
    if not isinstance(value, kind):
        raise AIProviderError(
            f"Provider field '{name}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _optional_text(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    return _expect(value, str, name).strip() or None


def _string_list(value: Any, name: str) -> List[str]:
    """Non-empty strings of a provider list; other items are dropped."""
    items = _expect(value, list, name)
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def build_analysis_prompt(analysis_input: AnalysisInput) -> str:
    price = f"{analysis_input.price}" if analysis_input.price else "Not specified"
    tags = ", ".join(analysis_input.tags) or "None"
    return f"""Analyze this e-commerce product and give detailed optimization suggestions:

**Product Name**: {analysis_input.title}
**Description**: {analysis_input.description}
**Category**: {analysis_input.category_id or 'Not specified'}
**Price**: {price}
**Image Count**: {len(analysis_input.images)}
**Current Tags**: {tags}

Respond with JSON in exactly this structure:
{{
  "score": <overall quality score 0-100>,
  "issues": [
    {{
      "severity": "critical|warning|info",
      "category": "seo|content|pricing|images|general",
      "message": "What is wrong",
      "suggestion": "How to fix it"
    }}
  ],
  "optimizations": {{
    "suggestedTitle": "SEO friendly title",
    "suggestedDescription": "Improved description with keywords",
    "suggestedTags": ["tag1", "tag2"],
    "suggestedKeywords": ["keyword1", "keyword2"],
    "suggestedPrice": {{"min": <number>, "max": <number>, "reasoning": "Why"}}
  }},
  "seoScore": {{
    "titleScore": <0-100>,
    "descriptionScore": <0-100>,
    "keywordDensity": <0-100>,
    "readability": <0-100>,
    "overall": <0-100>
  }},
  "marketInsights": {{
    "competitorAnalysis": "Short market analysis",
    "trendingKeywords": ["trend1", "trend2"],
    "suggestedImprovements": ["improvement1", "improvement2"]
  }}
}}"""


def normalize_analysis_result(analysis: Dict[str, Any]) -> ProviderResult:
    """Map a raw provider JSON object onto ``ProviderResult``, filling defaults."""
    if not isinstance(analysis, dict):
        raise AIProviderError(f"Provider returned {type(analysis).__name__}, expected a JSON object")

    issues = []
    for raw in _expect(analysis.get("issues") or [], list, "issues"):
        if not isinstance(raw, dict):
            continue
        issues.append(ProviderIssue(
            severity=str(raw.get("severity") or "info"),
            category=str(raw.get("category") or "general"),
            message=str(raw.get("message") or ""),
            suggestion=str(raw.get("suggestion") or ""),
        ))

    opt = _expect(analysis.get("optimizations") or {}, dict, "optimizations")
    suggested_price = _pick(opt, "suggestedPrice", "suggested_price")
    optimizations = ProviderOptimizations(
        suggested_title=_optional_text(_pick(opt, "suggestedTitle", "suggested_title"), "suggestedTitle"),
        suggested_description=_optional_text(
            _pick(opt, "suggestedDescription", "suggested_description"), "suggestedDescription"
        ),
        suggested_keywords=_string_list(_pick(opt, "suggestedKeywords", "suggested_keywords", default=[]), "suggestedKeywords"),
        suggested_tags=_string_list(_pick(opt, "suggestedTags", "suggested_tags", default=[]), "suggestedTags"),
        suggested_price=suggested_price if isinstance(suggested_price, dict) else None,
    )

    seo = _expect(_pick(analysis, "seoScore", "seo_score", default={}) or {}, dict, "seoScore")
    seo_score = ProviderSEOScore(
        title_score=_clamp_score(_pick(seo, "titleScore", "title_score")),
        description_score=_clamp_score(_pick(seo, "descriptionScore", "description_score")),
        keyword_density=_clamp_score(_pick(seo, "keywordDensity", "keyword_density")),
        readability=_clamp_score(_pick(seo, "readability")),
        overall=_clamp_score(_pick(seo, "overall")),
    )
    market_insights = _pick(analysis, "marketInsights", "market_insights")

    return ProviderResult(
        score=_clamp_score(analysis.get("score")),
        issues=issues,
        optimizations=optimizations,
        seo_score=seo_score,
        market_insights=market_insights if isinstance(market_insights, dict) else {},
    )


def fallback_seo_title(product_name: str, category: Optional[str] = None) -> str:
    return f"{product_name} - Premium Quality | {category or 'Online Store'}"


class AIProviderAdapter:
    """Wrapper around one configured chat-completions provider."""

    def __init__(self, config: AIProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client

    def is_configured(self) -> bool:
        key = (self.config.api_key or "").strip()
        return bool(key) and key not in PLACEHOLDER_KEYS

    async def _chat(self, messages: List[Dict[str, str]], max_tokens: int, json_mode: bool) -> str:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json"
        }

        async def _post(client: httpx.AsyncClient) -> httpx.Response:
            return await client.post(self.config.api_url, json=payload, headers=headers)

        try:
            if self._client is not None:
                response = await asyncio.wait_for(_post(self._client), timeout=self.config.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await asyncio.wait_for(_post(client), timeout=self.config.timeout)
        except asyncio.TimeoutError as e:
            raise AIProviderError(f"{self.config.provider} request timed out after {self.config.timeout}s") from e
        except httpx.HTTPError as e:
            raise AIProviderError(f"{self.config.provider} transport error: {e}") from e

        if response.status_code != 200:
            raise AIProviderError(f"{self.config.provider} API error {response.status_code}: {response.text[:200]}")

        try:
            return response.json()["choices"][0]["message"]["content"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise AIProviderError(f"Malformed {self.config.provider} response: {e}") from e

    async def analyze(self, analysis_input: AnalysisInput) -> ProviderResult:
        """Run a provider analysis. Raises ``AIProviderError`` on failure."""
        if not self.is_configured():
            raise AIProviderError("AI provider is not configured")

        start_time = time.time()
        try:
            content = await self._chat(
                [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_analysis_prompt(analysis_input)},
                ],
                max_tokens=self.config.max_tokens,
                json_mode=True,
            )
            try:
                raw = json.loads(content)
            except json.JSONDecodeError as e:
                raise AIProviderError(f"Provider returned invalid JSON: {e}") from e
            try:
                result = normalize_analysis_result(raw)
            except AIProviderError:
                raise
            except Exception as e:
                raise AIProviderError(f"Unexpected provider response shape: {e}") from e
        except AIProviderError as e:
            log_ai_request(
                self.config.provider, "product_analysis", time.time() - start_time,
                tenant_id=analysis_input.tenant_id, error=str(e)
            )
            raise

        log_ai_request(
            self.config.provider, "product_analysis", time.time() - start_time,
            tenant_id=analysis_input.tenant_id
        )
        return result

    async def try_analyze(self, analysis_input: AnalysisInput) -> ProviderOutcome:
        if not self.is_configured():
            return ProviderOutcome.failure("AI provider is not configured")
        try:
            return ProviderOutcome.success(await self.analyze(analysis_input))
        except AIProviderError as e:
            return ProviderOutcome.failure(str(e))

    async def generate_seo_title(self, product_name: str, category: Optional[str] = None) -> Tuple[str, bool]:
        """
        SEO title from the provider, or a deterministic local template.

        Returns ``(title, ai_generated)``; ``ai_generated`` is False whenever
        the local template was used.
        """
        if not self.is_configured():
            return fallback_seo_title(product_name, category), False

        start_time = time.time()
        prompt = f"Generate a short, SEO-optimized title (50-60 chars) for: {product_name}"
        if category:
            prompt += f", Category: {category}"

        try:
            title = await self._chat(
                [
                    {"role": "system", "content": SEO_TITLE_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=100,
                json_mode=False,
            )
        except AIProviderError as e:
            log_ai_request(self.config.provider, "seo_title", time.time() - start_time, error=str(e))
            return fallback_seo_title(product_name, category), False

        log_ai_request(self.config.provider, "seo_title", time.time() - start_time)
        if not title:
            return fallback_seo_title(product_name, category), False
        return title, True


def get_ai_provider() -> AIProviderAdapter:
    """FastAPI dependency building the adapter from application settings."""
    from feed_doctor.core.config import settings

    ai_logger.debug(f"Using AI provider {settings.AI_PROVIDER}")
    return AIProviderAdapter(AIProviderConfig.from_settings(settings))
