"""Chat-completion gateway used to reorder donor candidates."""

from __future__ import annotations

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from ..database import Settings
from ..errors import RankingUnavailable


SYSTEM_PROMPT = """You are an AI assistant for a blood donation management system. Your task is to analyze donor data and provide intelligent matching and insights.

When analyzing donors, consider:
1. Location proximity (donors in the same city as the request should be prioritized)
2. Recent donation history (donors who haven't donated recently are more likely to be eligible)
3. Total donations (experienced donors may be more reliable)
4. Urgency level of the request

Return your response as a JSON object with:
- "rankings": array of donor IDs in order of best match (include all donors)
- "insights": a brief explanation of why these donors are good matches
- "recommendations": any suggestions for the hospital or system administrators"""


class RankingService:
    """Thin wrapper over an OpenAI-compatible gateway (OpenRouter by default)."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.model = settings.ai_model
        self.temperature = settings.ai_temperature
        if client is not None:
            self.client: AsyncOpenAI | None = client
        elif not settings.ai_gateway_api_key:
            logger.warning("AI gateway key not configured. Donor matching will use fallback ordering.")
            self.client = None
        else:
            # No retries: a single failed call goes straight to the fallback ordering.
            self.client = AsyncOpenAI(
                api_key=settings.ai_gateway_api_key,
                base_url=settings.ai_gateway_base_url,
                timeout=settings.ai_timeout_seconds,
                max_retries=0,
            )
            logger.info("AI ranking service initialized for model {}", self.model)

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        if self.client is None:
            raise RankingUnavailable("AI gateway not configured")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            raise RankingUnavailable(f"AI gateway error: {exc}") from exc

        if not response.choices:
            raise RankingUnavailable("AI gateway returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise RankingUnavailable("AI gateway returned an empty completion")
        return content.strip()
