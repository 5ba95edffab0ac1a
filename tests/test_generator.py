# tests/test_generator.py
from types import SimpleNamespace

import httpx
import openai
import pytest

from vocabboost.content import generator
from vocabboost.errors import ContentGenerationError
from vocabboost.languages import SITE_LANGUAGE, get_language
from vocabboost.schemas import (
    Example,
    ExerciseType,
    GeneratedExercise,
    GeneratedExercises,
    ProcessedWord,
)

DUTCH = get_language("nl")
API_URL = "https://api.openai.com/v1/chat/completions"


class FakeCompletions:
    """Stands in for client.beta.chat.completions; replays queued responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def parse(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        message = SimpleNamespace(parsed=response)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    def __init__(self, completions):
        self.beta = SimpleNamespace(chat=SimpleNamespace(completions=completions))
        self.options = []

    def with_options(self, **kwargs):
        self.options.append(kwargs)
        return self


def fake_client(*responses):
    completions = FakeCompletions(responses)
    return FakeClient(completions), completions


def rate_limited(request):
    return httpx.Response(
        429,
        headers={"retry-after-ms": "1"},
        json={"error": {"message": "Rate limit reached", "type": "rate_limit_error"}},
    )


def completion_with(content):
    def respond(request):
        return httpx.Response(200, json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [{
                "index": 0,
                "finish_reason": "stop",
                "logprobs": None,
                "message": {"role": "assistant", "content": content, "refusal": None},
            }],
        })
    return respond


def sdk_client(*handlers):
    """Real SDK client over a mock transport; the last handler repeats."""
    requests = []

    def handle(request):
        requests.append(request)
        return handlers[min(len(requests), len(handlers)) - 1](request)

    client = openai.OpenAI(
        api_key="test-key",
        http_client=httpx.Client(transport=httpx.MockTransport(handle)),
    )
    return client, requests


def full_exercise_set():
    return GeneratedExercises(exercises=[
        GeneratedExercise(type=ExerciseType.TRANSLATE_MC, question="huis", correct_answer="house",
                          options=["tree", "car", "door"]),
        GeneratedExercise(type=ExerciseType.FILL_BLANK_MC, question="Het ___ is groot.", correct_answer="huis",
                          options=["boom", "auto", "deur"], sentence_context="Het huis is groot.",
                          translation_context="The house is big."),
        GeneratedExercise(type=ExerciseType.FILL_BLANK_TYPE, question="Ons ___ is oud.", correct_answer="huis",
                          options=["should", "be", "dropped"], sentence_context="Ons huis is oud.",
                          translation_context="Our house is old."),
        GeneratedExercise(type=ExerciseType.PRONOUNCE_WORD, question="huis", correct_answer=""),
        GeneratedExercise(type=ExerciseType.PRONOUNCE_SENTENCE, question="Ik ga naar huis.",
                          correct_answer="Ik ga naar huis."),
        GeneratedExercise(type=ExerciseType.TRANSLATE_MC, question="huis", correct_answer="home"),
    ])


# ---- Exercises ----

def test_generate_exercises_one_per_type():
    client, completions = fake_client(full_exercise_set())

    exercises = generator.generate_exercises("huis", "house", DUTCH, SITE_LANGUAGE, client=client)

    assert [e.type for e in exercises] == list(ExerciseType)
    assert len({e.id for e in exercises}) == 5
    assert exercises[0].correct_answer == "house"
    assert exercises[2].options is None
    assert exercises[3].correct_answer == "huis"
    assert completions.calls[0]["response_format"] is GeneratedExercises
    assert "huis" in completions.calls[0]["messages"][1]["content"]


def test_generate_exercises_with_nothing_usable():
    client, _ = fake_client(GeneratedExercises(exercises=[]))
    with pytest.raises(ContentGenerationError):
        generator.generate_exercises("huis", "house", DUTCH, SITE_LANGUAGE, client=client)


def test_unparsed_response_is_an_error():
    client, _ = fake_client(None)
    with pytest.raises(ContentGenerationError):
        generator.generate_exercises("huis", "house", DUTCH, SITE_LANGUAGE, client=client)


# ---- Retry ----

def test_rate_limit_is_retried_by_the_sdk():
    content = full_exercise_set().model_dump_json()
    client, requests = sdk_client(rate_limited, rate_limited, completion_with(content))

    exercises = generator.generate_exercises("huis", "house", DUTCH, SITE_LANGUAGE, client=client)

    assert len(exercises) == 5
    assert len(requests) == 3


def test_rate_limit_gives_up_after_three_requests():
    client, requests = sdk_client(rate_limited)

    with pytest.raises(ContentGenerationError, match="Rate limited"):
        generator.generate_exercises("huis", "house", DUTCH, SITE_LANGUAGE, client=client)
    assert len(requests) == generator.MAX_ATTEMPTS == 3


def test_injected_client_gets_retry_budget():
    client, completions = fake_client(full_exercise_set())

    generator.generate_exercises("huis", "house", DUTCH, SITE_LANGUAGE, client=client)

    assert client.options == [{"max_retries": 2}]
    assert len(completions.calls) == 1


def test_api_errors_become_content_errors():
    error = openai.APIConnectionError(request=httpx.Request("POST", API_URL))
    client, completions = fake_client(error)

    with pytest.raises(ContentGenerationError):
        generator.process_word("huis", DUTCH, SITE_LANGUAGE, client=client)
    assert len(completions.calls) == 1


# ---- Word processing ----

def test_process_word_normalizes_response():
    processed = ProcessedWord(
        learning_word=" lopen ",
        native_word="to walk ",
        examples=[Example(sentence=f"Zin {i}", translation=f"Sentence {i}") for i in range(5)],
    )
    client, completions = fake_client(processed)

    result = generator.process_word("liep", DUTCH, SITE_LANGUAGE, client=client)

    assert result.learning_word == "lopen"
    assert result.native_word == "to walk"
    assert len(result.examples) == 3
    prompt = completions.calls[0]["messages"][1]["content"]
    assert '"liep"' in prompt
    assert "Dutch" in prompt


def test_process_word_rejects_empty_input():
    client, completions = fake_client()
    with pytest.raises(ContentGenerationError):
        generator.process_word("   ", DUTCH, SITE_LANGUAGE, client=client)
    assert completions.calls == []


def test_process_word_rejects_blank_translation():
    client, _ = fake_client(ProcessedWord(learning_word="lopen", native_word=" ", examples=[]))
    with pytest.raises(ContentGenerationError):
        generator.process_word("lopen", DUTCH, SITE_LANGUAGE, client=client)


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(generator, "_client", None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ValueError):
        generator.get_client()
