"""Remote transaction classification via the OpenAI Chat Completions API.

``OpenAIClassifier.classify`` never raises: every outcome comes back as a
:class:`ClassificationSuccess` carrying a validated decision, or a
:class:`ClassificationFailure` saying why the caller should fall back to
keyword rules.
"""

import json
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from finsight.logging_setup import get_logger
from finsight.utils.retry import retry_async

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0
DEFAULT_CONFIDENCE = 0.5

SYSTEM_PROMPT = (
    "You are a financial categorization expert. Categorize transactions "
    "accurately based on their description and amount."
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")

_logger = get_logger("finsight.domain.classifier")


class ClassifierDecision(BaseModel):
    """Validated JSON object returned by the classifier."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category: str
    subcategory: Optional[str] = None
    confidence: float = DEFAULT_CONFIDENCE

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("category must be non-empty")
        return v

    @field_validator("subcategory")
    @classmethod
    def _blank_subcategory_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, v: Any) -> Any:
        return DEFAULT_CONFIDENCE if v is None else v

    @field_validator("confidence")
    @classmethod
    def _confidence_in_unit_interval(cls, v: float) -> float:
        if 0.0 <= v <= 1.0:
            return v
        raise ValueError("confidence must be within [0,1]")


@dataclass(frozen=True)
class ClassificationRequest:
    """What the classifier sees about one transaction."""

    description: str
    amount: Decimal
    is_income: bool
    categories: tuple[str, ...]

    @property
    def direction(self) -> str:
        return "Income" if self.is_income else "Expense"


@dataclass(frozen=True)
class ClassificationSuccess:
    decision: ClassifierDecision


@dataclass(frozen=True)
class ClassificationFailure:
    reason: str
    error: Optional[BaseException] = None


ClassificationResult = Union[ClassificationSuccess, ClassificationFailure]


def build_prompt(request: ClassificationRequest) -> str:
    """Render the user message for one transaction."""
    return (
        "Categorize this transaction into one of the following categories: "
        f"{', '.join(request.categories)}.\n\n"
        f"Transaction: {request.description}\n"
        f"Amount: ${request.amount}\n"
        f"Type: {request.direction}\n\n"
        "Respond with ONLY a JSON object in this format:\n"
        "{\n"
        '  "category": "category name",\n'
        '  "subcategory": "optional subcategory",\n'
        '  "confidence": 0.95\n'
        "}"
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_decision(text: Optional[str], categories: Sequence[str]) -> ClassifierDecision:
    """Parse and validate the classifier's reply.

    The category is matched case-insensitively against ``categories`` and
    rewritten to its canonical spelling.

    Raises:
        ValueError: If the reply is empty, not JSON, fails validation, or
            names a category outside the vocabulary
    """
    if not text or not text.strip():
        raise ValueError("Empty response from classifier")
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ValueError("Classifier response was not valid JSON") from e
    if not isinstance(payload, dict):
        raise ValueError("Classifier response was not a JSON object")
    try:
        decision = ClassifierDecision.model_validate(payload)
    except ValidationError as e:
        raise ValueError(f"Classifier response failed validation: {e}") from e

    canonical = {c.casefold(): c for c in categories}
    name = canonical.get(decision.category.casefold())
    if name is None:
        raise ValueError(f"Classifier returned unknown category '{decision.category}'")
    return decision.model_copy(update={"category": name})


def is_auth_error(exc: BaseException) -> bool:
    """Return True for 401/403 responses, which retrying cannot fix."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    status = getattr(exc, "status_code", None)
    return isinstance(status, int) and status in (401, 403)


def response_text(completion: Any) -> Optional[str]:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return None
    return content.strip() if isinstance(content, str) else None


class OpenAIClassifier:
    """Classify one transaction per chat completion call, with retries."""

    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o-mini",
        timeout: Optional[float] = None,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """Initialize classifier.

        Args:
            client: ``AsyncOpenAI`` instance (or an object of the same shape)
            model: Chat model name
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per transaction
            base_delay: First backoff delay in seconds
            sleep: Awaitable sleep used between retries
        """
        self.client = client
        self.model = model
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    async def _complete(self, prompt: str) -> Any:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.3,
            "max_tokens": 100,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return await self.client.chat.completions.create(**kwargs)

    async def classify(self, request: ClassificationRequest) -> ClassificationResult:
        """Classify a transaction, reporting failures as values."""
        prompt = build_prompt(request)
        try:
            completion = await retry_async(
                lambda: self._complete(prompt),
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                is_non_retryable=is_auth_error,
                sleep=self._sleep,
                label="classify",
            )
        except Exception as e:  # reported as a failure value, never raised
            reason = "auth" if is_auth_error(e) else "remote_error"
            _logger.debug("classify:failed reason=%s error=%s", reason, e.__class__.__name__)
            return ClassificationFailure(reason=reason, error=e)

        try:
            decision = parse_decision(response_text(completion), request.categories)
        except ValueError as e:
            _logger.debug("classify:failed reason=malformed_response detail=%s", e)
            return ClassificationFailure(reason="malformed_response", error=e)
        return ClassificationSuccess(decision=decision)


def create_classifier(
    api_key: Optional[str],
    model: str = "gpt-4o-mini",
    timeout: Optional[float] = None,
) -> Optional[OpenAIClassifier]:
    """Build a classifier, or None when no API key is configured."""
    if not api_key:
        return None
    # Retries are handled by retry_async, not the SDK
    client = AsyncOpenAI(api_key=api_key, max_retries=0)
    return OpenAIClassifier(client, model=model, timeout=timeout)
