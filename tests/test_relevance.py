import httpx
import pytest

from conftest import StubClient, run
from interview_api.errors import UpstreamUnavailable
from interview_api.services.questions import QuestionGenerator
from interview_api.services.relevance import IRRELEVANT, RELEVANT, RelevanceClassifier, normalise_verdict


@pytest.mark.parametrize(
	"raw, expected",
	[
		("relevant", RELEVANT),
		("Irrelevant.", IRRELEVANT),
		("  IRRELEVANT\n", IRRELEVANT),
		("dont_know", RELEVANT),
		("Don't know", RELEVANT),
		("maybe?", RELEVANT),
		("", RELEVANT),
		(None, RELEVANT),
	],
)
def test_normalise_verdict(raw, expected):
	assert normalise_verdict(raw) == expected


def test_classifier_uses_relevance_model():
	client = StubClient(reply="irrelevant")
	verdict = run(RelevanceClassifier(client, model="tiny-model", timeout=1).classify("Question Q2 for role Tester", "pizza"))
	assert verdict == IRRELEVANT
	assert client.kwargs["model"] == "tiny-model"
	assert client.kwargs["max_tokens"] == 5


@pytest.mark.parametrize("error", [UpstreamUnavailable("down"), httpx.ConnectError("refused")])
def test_classifier_failures_default_to_relevant(error):
	client = StubClient(error=error)
	assert run(RelevanceClassifier(client, timeout=1).classify("ctx", "answer")) == RELEVANT


def test_classifier_timeout_defaults_to_relevant():
	client = StubClient(reply="irrelevant", delay=1)
	assert run(RelevanceClassifier(client, timeout=0.01).classify("ctx", "answer")) == RELEVANT


def test_question_generator_prompts():
	client = StubClient(reply="  What is a flaky test?  ")
	gen = QuestionGenerator(client, timeout=1)
	assert run(gen.generate("Tester", 2, 5, ["Q1: Tell me about yourself."])) == "What is a flaky test?"
	assert run(gen.generate("Tester", 1, 5)) == "What is a flaky test?"


def test_question_generator_failure_returns_empty():
	assert run(QuestionGenerator(StubClient(error=UpstreamUnavailable()), timeout=1).generate("Tester", 2, 5, [])) == ""
	assert run(QuestionGenerator(StubClient(reply="x", delay=1), timeout=0.01).generate("Tester", 2, 5, [])) == ""
