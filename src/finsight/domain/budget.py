"""Monthly budget recommendations built on period analytics.

A remote advisor is asked first when one is configured. When it is absent,
fails, or answers with something unusable, the fixed 50/30/20 split is used:
half of income spread over the needs categories, 30% over the wants, and
20% set aside as savings.
"""

import json
import re
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from finsight.database.base import Database
from finsight.domain.analytics import AnalyticsService
from finsight.domain.classifier import (
    BASE_DELAY_SECONDS,
    MAX_ATTEMPTS,
    is_auth_error,
    response_text,
    strip_code_fences,
)
from finsight.domain.entities import BudgetRecommendation, BudgetSummary, PeriodAnalytics
from finsight.domain.errors import NotFoundError, no_transaction_history
from finsight.logging_setup import get_logger
from finsight.utils.amount_parser import to_cents
from finsight.utils.retry import retry_async

NEEDS = ("Housing", "Utilities", "Food & Dining", "Transportation", "Healthcare")
WANTS = ("Entertainment", "Shopping", "Personal Care")
SAVINGS = "Savings & Investments"

NEEDS_SHARE = Decimal("0.50")
WANTS_SHARE = Decimal("0.30")
SAVINGS_SHARE = Decimal("0.20")

NEEDS_REASON = "Based on the 50/30/20 rule - essential needs should be 50% of income"
WANTS_REASON = "Based on the 50/30/20 rule - discretionary spending should be 30% of income"
SAVINGS_REASON = "Based on the 50/30/20 rule - savings and investments should be 20% of income"

ADVISOR_SYSTEM_PROMPT = (
    "You are an expert financial advisor specializing in personal budgeting. "
    "Provide practical, actionable budget recommendations."
)
INSIGHTS_SYSTEM_PROMPT = (
    "You are a financial advisor providing personalized insights. Be "
    "encouraging but honest about areas needing improvement."
)

ZERO = Decimal("0")

_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

_logger = get_logger("finsight.domain.budget")


class AdvisedAmount(BaseModel):
    """One entry of the advisor's JSON array."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)

    category: str = Field(min_length=1)
    recommended_amount: Decimal = Field(default=ZERO, alias="recommendedAmount", ge=0)
    reasoning: str = ""

    @field_validator("recommended_amount", mode="before")
    @classmethod
    def _missing_amount_is_zero(cls, v: Any) -> Any:
        return ZERO if v is None else v

    @field_validator("reasoning", mode="before")
    @classmethod
    def _missing_reasoning_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v


_ADVICE = TypeAdapter(list[AdvisedAmount])


def percentage_of_income(amount: Decimal, total_income: Decimal) -> float:
    if total_income <= 0:
        return 0.0
    return float(amount / total_income * 100)


def rule_recommendations(analytics: PeriodAnalytics) -> list[BudgetRecommendation]:
    """Split income 50/30/20 across needs, wants and savings.

    Each group's share is divided evenly between its categories, and each
    recommendation carries what was actually spent in that category.
    """
    spending = analytics.spending_by_category
    income = analytics.total_income
    recommendations: list[BudgetRecommendation] = []

    for names, share, reasoning in (
        (NEEDS, NEEDS_SHARE, NEEDS_REASON),
        (WANTS, WANTS_SHARE, WANTS_REASON),
    ):
        per_category = income * share / len(names)
        for name in names:
            recommendations.append(
                BudgetRecommendation(
                    category=name,
                    recommended_amount=to_cents(per_category),
                    current_spending=spending.get(name, ZERO),
                    percentage_of_income=float(share * 100 / len(names)),
                    reasoning=reasoning,
                )
            )

    recommendations.append(
        BudgetRecommendation(
            category=SAVINGS,
            recommended_amount=to_cents(income * SAVINGS_SHARE),
            current_spending=spending.get(SAVINGS, ZERO),
            percentage_of_income=float(SAVINGS_SHARE * 100),
            reasoning=SAVINGS_REASON,
        )
    )
    return recommendations


def rule_insights(analytics: PeriodAnalytics) -> str:
    return (
        f"Your savings rate is {analytics.savings_rate:.1f}%. "
        "Consider reviewing your spending to increase savings."
    )


def build_recommendation_prompt(analytics: PeriodAnalytics) -> str:
    income = analytics.total_income
    lines = [
        f"{item.category}: ${item.total:.2f} "
        f"({percentage_of_income(item.total, income):.1f}% of income)"
        for item in analytics.category_breakdown
    ]
    return (
        "As a financial advisor, analyze this monthly spending and provide budget "
        "recommendations.\n\n"
        f"Total Monthly Income: ${income:.2f}\n"
        f"Total Monthly Expenses: ${analytics.total_expenses:.2f}\n\n"
        "Current Spending by Category:\n"
        + "\n".join(lines)
        + "\n\nProvide budget recommendations for each category. Use the 50/30/20 "
        "rule as a guideline:\n"
        "- 50% Needs (Housing, Utilities, Food, Transportation, Healthcare)\n"
        "- 30% Wants (Entertainment, Shopping, Dining Out)\n"
        "- 20% Savings & Debt Repayment\n\n"
        "Respond with a JSON array of recommendations in this exact format:\n"
        '[{"category": "category name", "recommendedAmount": 500, '
        '"reasoning": "brief explanation"}]'
    )


def build_insights_prompt(analytics: PeriodAnalytics) -> str:
    spending = ", ".join(
        f"{item.category}: ${item.total:.2f}" for item in analytics.category_breakdown
    )
    return (
        "Analyze this monthly financial summary and provide 3-4 key insights and "
        "actionable recommendations.\n\n"
        f"Monthly Income: ${analytics.total_income:.2f}\n"
        f"Monthly Expenses: ${analytics.total_expenses:.2f}\n"
        f"Savings Rate: {analytics.savings_rate:.1f}%\n"
        f"Spending: {spending}\n\n"
        "Provide concise, actionable insights in 3-4 bullet points."
    )


def parse_advice(text: Optional[str]) -> list[AdvisedAmount]:
    """Pull the recommendation array out of the advisor's reply.

    Raises:
        ValueError: If there is no JSON array, or it is empty or invalid
    """
    if not text or not text.strip():
        raise ValueError("Empty response from advisor")
    match = _ARRAY_RE.search(strip_code_fences(text))
    if match is None:
        raise ValueError("Advisor response contained no JSON array")
    try:
        advice = _ADVICE.validate_python(json.loads(match.group(0)))
    except json.JSONDecodeError as e:
        raise ValueError("Advisor response was not valid JSON") from e
    except PydanticValidationError as e:
        raise ValueError(f"Advisor response failed validation: {e}") from e
    if not advice:
        raise ValueError("Advisor returned no recommendations")
    return advice


class OpenAIBudgetAdvisor:
    """Ask a chat model for budget recommendations and written insights."""

    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o-mini",
        timeout: Optional[float] = None,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.client = client
        self.model = model
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    async def _ask(self, system: str, prompt: str, temperature: float, max_tokens: int) -> Optional[str]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        completion = await retry_async(
            lambda: self.client.chat.completions.create(**kwargs),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            is_non_retryable=is_auth_error,
            sleep=self._sleep,
            label="budget",
        )
        return response_text(completion)

    async def recommend(self, analytics: PeriodAnalytics) -> list[AdvisedAmount]:
        """Return validated recommendations.

        Raises:
            ValueError: If the reply cannot be used
            Exception: The last remote error once retries are exhausted
        """
        text = await self._ask(
            ADVISOR_SYSTEM_PROMPT, build_recommendation_prompt(analytics), 0.5, 1000
        )
        return parse_advice(text)

    async def insights(self, analytics: PeriodAnalytics) -> str:
        text = await self._ask(INSIGHTS_SYSTEM_PROMPT, build_insights_prompt(analytics), 0.7, 300)
        if not text:
            raise ValueError("Empty response from advisor")
        return text


class BudgetService:
    """Turn a month of stored transactions into budget recommendations."""

    def __init__(self, db: Database, advisor: Optional[OpenAIBudgetAdvisor] = None):
        """Initialize budget service.

        Args:
            db: Database instance
            advisor: Remote advisor, or None to use the 50/30/20 rule only
        """
        self.db = db
        self.advisor = advisor

    async def generate_budget(
        self, user_id: int, month: Optional[int] = None, year: Optional[int] = None
    ) -> BudgetSummary:
        """Build recommendations for one month; defaults to the current month.

        Raises:
            NotFoundError: If the user has no transactions in the period
            ValidationError: If the month is out of range
        """
        analytics = AnalyticsService(self.db).get_period_analytics(user_id, month=month, year=year)
        if analytics.transaction_count == 0:
            raise NotFoundError(no_transaction_history(analytics.month, analytics.year))

        recommendations, source = await self._recommend(analytics)
        insights = await self._insights(analytics)
        _logger.info(
            "budget:generated user_id=%d period=%d-%02d source=%s",
            user_id,
            analytics.year,
            analytics.month,
            source,
        )
        return BudgetSummary(
            month=analytics.month,
            year=analytics.year,
            total_income=analytics.total_income,
            total_expenses=analytics.total_expenses,
            savings_rate=analytics.savings_rate,
            recommendations=tuple(recommendations),
            insights=insights,
            source=source,
        )

    async def _recommend(self, analytics: PeriodAnalytics) -> tuple[list[BudgetRecommendation], str]:
        if self.advisor is None:
            return rule_recommendations(analytics), "rule"
        try:
            advice = await self.advisor.recommend(analytics)
        except Exception as e:  # any advisor failure falls back to the fixed split
            _logger.warning("budget:fallback stage=recommend error=%s", e.__class__.__name__)
            return rule_recommendations(analytics), "rule"

        spending = analytics.spending_by_category
        income = analytics.total_income
        return [
            BudgetRecommendation(
                category=item.category,
                recommended_amount=to_cents(item.recommended_amount),
                current_spending=spending.get(item.category, ZERO),
                percentage_of_income=percentage_of_income(item.recommended_amount, income),
                reasoning=item.reasoning,
            )
            for item in advice
        ], "advisor"

    async def _insights(self, analytics: PeriodAnalytics) -> str:
        if self.advisor is None:
            return rule_insights(analytics)
        try:
            return await self.advisor.insights(analytics)
        except Exception as e:  # insights are optional text; use the canned line
            _logger.warning("budget:fallback stage=insights error=%s", e.__class__.__name__)
            return rule_insights(analytics)


def create_budget_advisor(
    api_key: Optional[str],
    model: str = "gpt-4o-mini",
    timeout: Optional[float] = None,
) -> Optional[OpenAIBudgetAdvisor]:
    """Build an advisor, or None when no API key is configured."""
    if not api_key:
        return None
    client = AsyncOpenAI(api_key=api_key, max_retries=0)
    return OpenAIBudgetAdvisor(client, model=model, timeout=timeout)
