import unittest
from typing import List, Union
from unittest.mock import patch

from commit_sage.analysis.diff_classifier import classify_diff
from commit_sage.llm.commit_message_generator import CommitMessageGenerator, RetryPolicy
from commit_sage.llm.errors import (
    ApiError,
    GenerationExhausted,
    MalformedResponse,
    TransportError,
)
from commit_sage.llm.prompt_builder import PromptTemplate
from commit_sage.llm.provider import CompletionRequest, GenerationConfig, ModelProvider


FEATURE_DIFF = (
    "diff --git a/src/app.py b/src/app.py\n"
    "--- a/src/app.py\n"
    "+++ b/src/app.py\n"
    "@@ -1,2 +1,3 @@\n"
    "+import logging\n"
    "+logger = logging.getLogger(__name__)\n"
    "-print('debug')\n"
)


class ScriptedProvider(ModelProvider):
    """Provider replaying a fixed list of answers or errors."""

    def __init__(self, script: List[Union[str, Exception]]) -> None:
        self.script = list(script)
        self.requests: List[CompletionRequest] = []

    @property
    def model_id(self) -> str:
        return "scripted-model"

    def default_config(self) -> GenerationConfig:
        return GenerationConfig(temperature=0.3, max_tokens=100, stop_sequences=("\n",))

    def send(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        outcome = self.script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestCommitMessageGenerator(unittest.TestCase):
    def make_generator(self, script):
        self.provider = ScriptedProvider(script)
        self.sleeps: List[float] = []
        return CommitMessageGenerator(self.provider, sleep=self.sleeps.append)

    def test_matching_answer_returned_immediately(self) -> None:
        generator = self.make_generator(["feat(app): add module logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "feat(app): add module logger")
        self.assertEqual(len(self.provider.requests), 1)
        self.assertEqual(self.sleeps, [])

    def test_uses_provider_defaults(self) -> None:
        generator = self.make_generator(["feat: x"])
        generator.generate(FEATURE_DIFF)
        request = self.provider.requests[0]
        self.assertEqual(request.model, "scripted-model")
        self.assertEqual(request.temperature, 0.3)
        self.assertEqual(request.max_tokens, 100)

    def test_rate_limit_then_success_backs_off(self) -> None:
        generator = self.make_generator([ApiError(429), ApiError(429), "feat: add logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "feat: add logger")
        self.assertEqual(len(self.provider.requests), 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_unavailable_on_every_attempt_raises_last_error(self) -> None:
        generator = self.make_generator([ApiError(503), ApiError(503), ApiError(503)])
        with self.assertRaises(ApiError) as ctx:
            generator.generate(FEATURE_DIFF)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(len(self.provider.requests), 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_non_retryable_errors_are_raised_at_once(self) -> None:
        cases = [
            ApiError(401),
            ApiError(500),
            TransportError("Network connection error: refused"),
            MalformedResponse("No response from API"),
        ]
        for error in cases:
            with self.subTest(error=error):
                generator = self.make_generator([error, "feat: never reached"])
                with self.assertRaises(type(error)) as ctx:
                    generator.generate(FEATURE_DIFF)
                self.assertIs(ctx.exception, error)
                self.assertEqual(len(self.provider.requests), 1)
                self.assertEqual(self.sleeps, [])

    def test_grammar_invalid_answers_exhaust_attempts(self) -> None:
        generator = self.make_generator(["Added a logger", "bogus: x", "feat:no space"])
        with self.assertRaises(GenerationExhausted) as ctx:
            generator.generate(FEATURE_DIFF)
        self.assertIn("Maximum retries exceeded", str(ctx.exception))
        self.assertEqual(len(self.provider.requests), 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_grammar_invalid_then_valid(self) -> None:
        generator = self.make_generator(["Added a logger", "feat: add logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "feat: add logger")
        self.assertEqual(self.sleeps, [1.0])

    def test_retryable_error_reported_even_after_invalid_answers(self) -> None:
        generator = self.make_generator(["nonsense", ApiError(429), "still nonsense"])
        with self.assertRaises(ApiError) as ctx:
            generator.generate(FEATURE_DIFF)
        self.assertEqual(ctx.exception.status_code, 429)

    def test_type_mismatch_refines_at_lower_temperature(self) -> None:
        generator = self.make_generator(["chore: add logger", "feat: add logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "feat: add logger")
        self.assertEqual(len(self.provider.requests), 2)
        self.assertAlmostEqual(self.provider.requests[1].temperature, 0.24)
        self.assertEqual(self.sleeps, [])

    def test_refinement_with_other_valid_type_is_accepted(self) -> None:
        generator = self.make_generator(["chore: add logger", "refactor: use logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "refactor: use logger")

    def test_mismatch_kept_when_refinement_is_invalid(self) -> None:
        generator = self.make_generator(["chore: add logger", "Added logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "chore: add logger")
        self.assertEqual(len(self.provider.requests), 2)

    def test_mismatch_kept_when_refinement_fails(self) -> None:
        for error in (ApiError(401), ApiError(503), TransportError("down")):
            with self.subTest(error=error):
                generator = self.make_generator(["chore: add logger", error])
                with patch("commit_sage.llm.commit_message_generator.logger") as mock_logger:
                    self.assertEqual(generator.generate(FEATURE_DIFF), "chore: add logger")
                mock_logger.warning.assert_called()
                self.assertEqual(len(self.provider.requests), 2)
                self.assertEqual(self.sleeps, [])

    def test_mismatch_on_final_attempt_is_not_refined(self) -> None:
        generator = self.make_generator(["nonsense", "still nonsense", "chore: add logger"])
        self.assertEqual(generator.generate(FEATURE_DIFF), "chore: add logger")
        self.assertEqual(len(self.provider.requests), 3)

    def test_diff_is_classified_once(self) -> None:
        generator = self.make_generator(["nonsense", "chore: x", "docs: y"])
        with patch(
            "commit_sage.llm.commit_message_generator.classify_diff",
            wraps=classify_diff,
        ) as mock_classify:
            generator.generate(FEATURE_DIFF)
        mock_classify.assert_called_once_with(FEATURE_DIFF)

    def test_prompt_template_used_for_every_request(self) -> None:
        provider = ScriptedProvider(["chore: add logger", "feat: add logger"])
        template = PromptTemplate(system="custom system", user="{context}|{diff}")
        generator = CommitMessageGenerator(provider, template=template, sleep=lambda _: None)
        generator.generate(FEATURE_DIFF)
        self.assertEqual(len(provider.requests), 2)
        for request in provider.requests:
            self.assertEqual(request.messages[0].content, "custom system")
            self.assertTrue(request.messages[1].content.endswith("|" + FEATURE_DIFF))

    def test_custom_policy(self) -> None:
        provider = ScriptedProvider([ApiError(429), ApiError(429)])
        sleeps: List[float] = []
        generator = CommitMessageGenerator(
            provider,
            config=GenerationConfig(temperature=0.5, max_tokens=40),
            policy=RetryPolicy(max_retries=2, initial_delay_ms=250),
            sleep=sleeps.append,
        )
        with self.assertRaises(ApiError):
            generator.generate(FEATURE_DIFF)
        self.assertEqual(len(provider.requests), 2)
        self.assertEqual(sleeps, [0.25])
        self.assertEqual(provider.requests[0].max_tokens, 40)


class TestRetryPolicy(unittest.TestCase):
    def test_delay_doubles(self) -> None:
        policy = RetryPolicy()
        self.assertEqual(
            [policy.delay_seconds(n) for n in range(4)],
            [0.0, 1.0, 2.0, 4.0],
        )

    def test_defaults(self) -> None:
        policy = RetryPolicy()
        self.assertEqual(policy.max_retries, 3)
        self.assertEqual(policy.retryable_statuses, frozenset({429, 503}))
        self.assertEqual(policy.refinement_factor, 0.8)


if __name__ == "__main__":
    unittest.main()
