"""Tests for the remote classifier."""

import asyncio
import pytest
from decimal import Decimal
from finsight.domain.categories import DEFAULT_CATEGORY_NAMES
from finsight.domain.classifier import (
    ClassificationFailure,
    ClassificationRequest,
    ClassificationSuccess,
    OpenAIClassifier,
    build_prompt,
    create_classifier,
    is_auth_error,
    parse_decision,
    strip_code_fences,
)

REQUEST = ClassificationRequest(
    description="Starbucks",
    amount=Decimal("5.50"),
    is_income=False,
    categories=DEFAULT_CATEGORY_NAMES,
)


def classify(client, fake_sleep, request=REQUEST):
    classifier = OpenAIClassifier(client, model="test-model", timeout=5, sleep=fake_sleep)
    return asyncio.run(classifier.classify(request))


class TestParsing:
    """Tests for reply parsing and validation."""

    def test_strip_code_fences(self):
        """Test that fenced replies are unwrapped."""
        assert strip_code_fences('```json\n{"category": "Travel"}\n```') == '{"category": "Travel"}'
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_parse_decision(self):
        """Test a well-formed reply."""
        decision = parse_decision(
            '{"category": "Food & Dining", "subcategory": "Coffee", "confidence": 0.92}',
            DEFAULT_CATEGORY_NAMES,
        )
        assert decision.category == "Food & Dining"
        assert decision.subcategory == "Coffee"
        assert decision.confidence == pytest.approx(0.92)

    def test_confidence_defaults(self):
        """Test that a missing or null confidence becomes 0.5."""
        assert parse_decision('{"category": "Travel"}', DEFAULT_CATEGORY_NAMES).confidence == 0.5
        decision = parse_decision('{"category": "Travel", "confidence": null}', DEFAULT_CATEGORY_NAMES)
        assert decision.confidence == 0.5

    def test_category_is_canonicalized(self):
        """Test case-insensitive vocabulary matching."""
        decision = parse_decision('{"category": "food & dining"}', DEFAULT_CATEGORY_NAMES)
        assert decision.category == "Food & Dining"

    @pytest.mark.parametrize(
        "reply",
        [
            None,
            "",
            "I think this is food",
            "[1, 2]",
            '{"subcategory": "Coffee"}',
            '{"category": ""}',
            '{"category": "Groceries"}',
            '{"category": "Travel", "confidence": 1.5}',
        ],
    )
    def test_invalid_replies(self, reply):
        """Test that malformed, incomplete or out-of-vocabulary replies are rejected."""
        with pytest.raises(ValueError):
            parse_decision(reply, DEFAULT_CATEGORY_NAMES)

    def test_prompt_lists_vocabulary_and_direction(self):
        """Test the user prompt contents."""
        prompt = build_prompt(REQUEST)
        assert "Transaction: Starbucks" in prompt
        assert "Amount: $5.50" in prompt
        assert "Type: Expense" in prompt
        assert "Food & Dining" in prompt and "Other" in prompt


class TestAuthErrors:
    """Tests for non-retryable error detection."""

    def test_status_codes(self, status_error):
        """Test that 401 and 403 are auth errors and others are not."""
        assert is_auth_error(status_error(401))
        assert is_auth_error(status_error(403))
        assert not is_auth_error(status_error(429))
        assert not is_auth_error(status_error(500))
        assert not is_auth_error(TimeoutError())


class TestClassify:
    """Tests for OpenAIClassifier.classify."""

    def test_success(self, stub_client, fake_sleep, sleeps):
        """Test that a valid reply yields a success with the decision."""
        client = stub_client('```json\n{"category": "Food & Dining", "confidence": 0.9}\n```')
        result = classify(client, fake_sleep)

        assert isinstance(result, ClassificationSuccess)
        assert result.decision.category == "Food & Dining"
        assert sleeps == []

        call = client.chat.completions.calls[0]
        assert call["model"] == "test-model"
        assert call["temperature"] == 0.3
        assert call["max_tokens"] == 100
        assert call["timeout"] == 5
        assert [m["role"] for m in call["messages"]] == ["system", "user"]

    def test_retries_transient_errors(self, stub_client, fake_sleep, sleeps, status_error):
        """Test that transient errors are retried with backoff."""
        client = stub_client(status_error(500), TimeoutError(), '{"category": "Travel"}')
        result = classify(client, fake_sleep)

        assert isinstance(result, ClassificationSuccess)
        assert len(client.chat.completions.calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_timeout_exhausts_retries(self, stub_client, fake_sleep, sleeps):
        """Test that repeated timeouts end in a failure value, not an exception."""
        client = stub_client(TimeoutError("timed out"))
        result = classify(client, fake_sleep)

        assert isinstance(result, ClassificationFailure)
        assert result.reason == "remote_error"
        assert len(client.chat.completions.calls) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors_are_not_retried(self, stub_client, fake_sleep, sleeps, status_error, status):
        """Test that 401/403 fail immediately."""
        client = stub_client(status_error(status))
        result = classify(client, fake_sleep)

        assert isinstance(result, ClassificationFailure)
        assert result.reason == "auth"
        assert len(client.chat.completions.calls) == 1
        assert sleeps == []

    def test_malformed_reply(self, stub_client, fake_sleep):
        """Test that non-JSON replies are failures without retrying."""
        client = stub_client("Food & Dining, probably")
        result = classify(client, fake_sleep)

        assert isinstance(result, ClassificationFailure)
        assert result.reason == "malformed_response"
        assert len(client.chat.completions.calls) == 1


def test_create_classifier_requires_key():
    """Test that no API key means no classifier."""
    assert create_classifier(None) is None
    assert create_classifier("") is None


def test_create_classifier_with_key():
    """Test that a key builds a configured classifier."""
    classifier = create_classifier("sk-test", model="gpt-test", timeout=12)
    assert isinstance(classifier, OpenAIClassifier)
    assert classifier.model == "gpt-test"
    assert classifier.timeout == 12
