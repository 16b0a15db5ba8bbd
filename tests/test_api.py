"""
API tests through FastAPI's TestClient.

Provider clients are replaced on app.state: the LLM with the shared AsyncMock,
speech with a recording fake (or a real synthesizer over a mock transport
where the limit checks are the point).
"""

import base64

import httpx
import pytest
from fastapi.testclient import TestClient

from pq_reps import __version__
from pq_reps.api.gateway import create_app
from pq_reps.api.middleware import TokenBucketLimiter
from pq_reps.api.routes.generate import download_filename
from pq_reps.i18n import translate
from pq_reps.llm import LLMError
from pq_reps.services import SpeechSynthesizer, TtsError, TtsResponse, TtsStream
from pq_reps.services.tts import TTS_MODEL, resolve_voice

GENERATE_PAYLOAD = {
    "practiceType": "still_eyes_closed",
    "focus": "touch",
    "durationMinutes": 2,
    "language": "en",
    "voiceGender": "female",
}

FAKE_AUDIO = b"RIFF-fake-audio"


class FakeSynthesizer:
    """Stands in for SpeechSynthesizer; records every request."""

    def __init__(self, error: Exception | None = None):
        self.requests = []
        self._error = error

    async def synthesize(self, request):
        self.requests.append(request)
        if self._error:
            raise self._error
        return TtsResponse(
            audio=FAKE_AUDIO,
            voice=resolve_voice(request.voice, request.language),
            input_script=request.script,
        )

    async def stream(self, request):
        self.requests.append(request)

        async def chunks():
            yield FAKE_AUDIO[:4]
            yield FAKE_AUDIO[4:]

        return TtsStream(stream=chunks(), voice=resolve_voice(request.voice, request.language),
                         input_script=request.script)


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def app(tmp_path, rules, mock_llm, synthesizer):
    application = create_app(
        rule_config=rules,
        rate_limiter=TokenBucketLimiter(capacity=100),
        voice_preview_cache_dir=tmp_path / "previews",
    )
    application.state.llm_client = mock_llm
    application.state.synthesizer = synthesizer
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


def error_of(response):
    return response.json()["error"]


class TestGenerate:
    def test_text_mode(self, client, mock_llm, compliant_script):
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "outputMode": "text"})

        assert response.status_code == 200
        data = response.json()
        assert data["script"] == compliant_script
        metadata = data["metadata"]
        assert metadata["languages"] == ["en"]
        assert metadata["practiceMode"] == "tactile"
        assert metadata["eyeState"] == "closed"
        assert metadata["primarySense"] == "touch"
        assert metadata["durationMinutes"] == 2
        assert metadata["silenceProfile"] == "none"
        assert metadata["voiceStyle"] == "alloy"
        assert metadata["ttsNewlinePauseSeconds"] == 1.0
        assert metadata["ttsProvider"] == "none"
        assert metadata["voice"] == "n/a"
        assert metadata["prompt"].startswith("Practice mode: ")
        assert metadata["validation"] == {"pass": True, "failures": []}
        assert "audioBase64" not in data
        assert "ttsPrompt" not in metadata

        prompt = mock_llm.call.await_args.kwargs["prompt"]
        assert prompt.user_message == metadata["prompt"]

    def test_json_accept_defaults_to_text(self, client):
        response = client.post("/api/generate", json=GENERATE_PAYLOAD, headers={"Accept": "application/json"})
        assert response.status_code == 200
        assert "script" in response.json()

    def test_audio_is_the_default(self, client, synthesizer, compliant_script):
        response = client.post("/api/generate", json=GENERATE_PAYLOAD, headers={"Accept": "audio/wav"})

        assert response.status_code == 200
        assert response.content == FAKE_AUDIO
        assert response.headers["content-type"] == "audio/wav"
        assert response.headers["content-disposition"].startswith('attachment; filename="pq-reps_alloy_')
        request = synthesizer.requests[0]
        assert request.script == compliant_script
        assert request.voice == "alloy"
        assert request.newline_pause_seconds == 1.0

    def test_text_audio_mode(self, client):
        payload = {**GENERATE_PAYLOAD, "voiceGender": "male", "outputMode": "text-audio"}
        response = client.post("/api/generate", json=payload)

        data = response.json()
        assert response.status_code == 200
        assert base64.b64decode(data["audioBase64"]) == FAKE_AUDIO
        assert data["audioContentType"] == "audio/wav"
        assert data["metadata"]["ttsProvider"] == "openai"
        assert data["metadata"]["voice"] == "ash"

    def test_debug_tts_prompt(self, client):
        payload = {**GENERATE_PAYLOAD, "outputMode": "text", "debugTtsPrompt": True}
        metadata = client.post("/api/generate", json=payload).json()["metadata"]

        debug = metadata["ttsPrompt"]
        assert debug["model"] == TTS_MODEL
        assert debug["voice"] == "alloy"
        assert "[pause:1]" in debug["input"]
        assert debug["scriptUserPrompt"] == metadata["prompt"]
        assert debug["scriptSystemPrompt"].startswith("PQ Reps Script Generator")

    def test_validation_findings_do_not_block(self, client, mock_llm, compliant_script):
        mock_llm.call.return_value.content = "Here is your script:\n" + compliant_script
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "outputMode": "text"})

        assert response.status_code == 200
        validation = response.json()["metadata"]["validation"]
        assert validation["pass"] is False
        assert [f["ruleId"] for f in validation["failures"]] == ["OUTPUT_PREAMBLE"]

    def test_no_validation_without_rules(self, mock_llm, synthesizer):
        app = create_app(rate_limiter=TokenBucketLimiter(capacity=100))
        app.state.llm_client = mock_llm
        app.state.synthesizer = synthesizer
        response = TestClient(app).post("/api/generate", json={**GENERATE_PAYLOAD, "outputMode": "text"})
        assert "validation" not in response.json()["metadata"]

    def test_scenario_and_custom_line_reach_prompt(self, client):
        payload = {
            **GENERATE_PAYLOAD,
            "outputMode": "text",
            "scenarioId": "calm_me_now",
            "customScenarioLine": "Right before my team standup",
        }
        metadata = client.post("/api/generate", json=payload).json()["metadata"]
        assert metadata["scenarioId"] == "calm_me_now"
        assert metadata["customScenarioLine"] == "Right before my team standup"
        assert "Scenario: Calm me now." in metadata["prompt"]

    def test_integral_float_duration_accepted(self, client):
        payload = {**GENERATE_PAYLOAD, "durationMinutes": 5.0, "outputMode": "text"}
        response = client.post("/api/generate", json=payload)
        assert response.status_code == 200
        assert response.json()["metadata"]["durationMinutes"] == 5


class TestGenerateErrors:
    @pytest.mark.parametrize("field,value,code", [
        ("practiceType", "floating", "invalid_practice_type"),
        ("focus", "smell", "invalid_focus"),
        ("durationMinutes", 3, "invalid_duration"),
        ("durationMinutes", "5", "invalid_duration"),
        ("durationMinutes", True, "invalid_duration"),
        ("language", "", "invalid_language"),
        ("voiceGender", "robot", "invalid_voice_gender"),
        ("ttsNewlinePauseSeconds", -1, "invalid_tts_newline_pause"),
        ("outputMode", "video", "invalid_output_mode"),
        ("scenarioId", "not_a_scenario", "invalid_scenario"),
        ("customScenarioLine", "visit https://example.com", "custom_scenario_line_disallowed"),
    ])
    def test_field_errors(self, client, mock_llm, field, value, code):
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, field: value})
        assert response.status_code == 400
        assert error_of(response)["code"] == code
        assert error_of(response)["message"] == translate("en", f"errors.{code}")
        mock_llm.call.assert_not_awaited()

    def test_first_invalid_field_wins(self, client):
        payload = {**GENERATE_PAYLOAD, "focus": "smell", "durationMinutes": 3}
        assert error_of(client.post("/api/generate", json=payload))["code"] == "invalid_focus"

    def test_unsupported_language_details(self, client):
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "language": "pt"})
        error = error_of(response)
        assert error["code"] == "unsupported_language"
        assert error["details"] == {"unsupported": ["pt"], "supported": ["en", "es", "fr", "de"]}

    def test_message_localized_from_payload_language(self, client):
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "language": "es", "focus": "smell"})
        message = error_of(response)["message"]
        assert message == translate("es", "errors.invalid_focus")
        assert message != translate("en", "errors.invalid_focus")

    def test_custom_line_too_long_message(self, client):
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "customScenarioLine": "a" * 121})
        error = error_of(response)
        assert error["code"] == "custom_scenario_line_too_long"
        assert "120" in error["message"]

    def test_invalid_json(self, client):
        response = client.post("/api/generate", content=b"{nope", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert error_of(response)["code"] == "invalid_json"

    def test_non_object_payload(self, client):
        response = client.post("/api/generate", json=[1, 2])
        assert error_of(response)["code"] == "invalid_payload"

    def test_generation_failure(self, client, mock_llm):
        mock_llm.call.side_effect = LLMError("upstream down")
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "outputMode": "text"})
        assert response.status_code == 500
        error = error_of(response)
        assert error["code"] == "generate_failure"
        assert error["details"] == {"error": "upstream down"}

    def test_missing_key(self, client, app, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        app.state.llm_client = None
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "outputMode": "text"})
        assert response.status_code == 500
        assert error_of(response)["code"] == "missing_openai_key"

    def test_tts_failure(self, client, app):
        app.state.synthesizer = FakeSynthesizer(error=TtsError("speech down"))
        response = client.post("/api/generate", json={**GENERATE_PAYLOAD, "outputMode": "audio"})
        assert response.status_code == 500
        assert error_of(response)["code"] == "tts_failure"

    def test_rate_limited(self, mock_llm):
        app = create_app(rate_limiter=TokenBucketLimiter(capacity=1, refill_per_second=0.5))
        app.state.llm_client = mock_llm
        client = TestClient(app)

        assert client.post("/api/generate", json={}).status_code == 400
        response = client.post("/api/generate", json={})
        assert response.status_code == 429
        assert response.headers["retry-after"] == "2"
        assert error_of(response) == {
            "code": "rate_limited",
            "message": "Too many requests. Please try again later.",
            "details": {"retryAfterSeconds": 2},
        }


class TestTts:
    def test_whole_file(self, client, synthesizer):
        response = client.post("/api/tts", json={"script": "Sit.\nRest.", "language": "en", "voice": "onyx"})

        assert response.status_code == 200
        assert response.content == FAKE_AUDIO
        assert 'filename="pq-reps_onyx_' in response.headers["content-disposition"]
        assert synthesizer.requests[0].newline_pause_seconds == 1.0

    def test_explicit_newline_pause(self, client, synthesizer):
        payload = {"script": "Sit.", "language": "en", "voice": "alloy", "ttsNewlinePauseSeconds": 0}
        client.post("/api/tts", json=payload)
        assert synthesizer.requests[0].newline_pause_seconds == 0

    def test_streaming(self, client):
        response = client.post(
            "/api/tts",
            json={"script": "Sit.", "language": "en", "voice": "alloy"},
            headers={"X-TTS-Streaming": "1"},
        )
        assert response.status_code == 200
        assert response.content == FAKE_AUDIO
        assert response.headers["content-type"] == "audio/wav"

    @pytest.mark.parametrize("payload", [
        {"script": "Sit.", "language": "en"},
        {"script": "   ", "language": "en", "voice": "alloy"},
        {"script": "Sit.", "language": "en", "voice": "alloy", "ttsNewlinePauseSeconds": -2},
        {},
    ])
    def test_invalid_payload(self, client, payload):
        response = client.post("/api/tts", json=payload)
        assert response.status_code == 400
        assert error_of(response)["code"] == "invalid_tts_payload"

    def test_script_too_large_before_any_speech_request(self, client, app):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app.state.synthesizer = SpeechSynthesizer(api_key="test-key", http_client=http_client)

        response = client.post(
            "/api/tts",
            json={"script": "x" * 4001, "language": "en", "voice": "alloy"},
            headers={"X-TTS-Streaming": "1"},
        )
        assert response.status_code == 400
        error = error_of(response)
        assert error["code"] == "script_too_large"
        assert error["details"]["charCount"] == 4001
        assert error["details"]["maxChars"] == 4000
        assert calls == []


class TestVoicePreview:
    def test_preview_is_cached(self, client, synthesizer):
        first = client.post("/api/voice-preview", json={"language": "es", "voice": "nova"})
        second = client.post("/api/voice-preview", json={"language": "es", "voice": "nova"})

        assert first.status_code == second.status_code == 200
        assert first.content == second.content == FAKE_AUDIO
        assert first.headers["cache-control"] == "public, max-age=31536000, immutable"
        assert len(synthesizer.requests) == 1

    def test_defaults(self, client, synthesizer):
        assert client.post("/api/voice-preview").status_code == 200
        assert synthesizer.requests[0].voice == "alloy"
        assert synthesizer.requests[0].language == "en"

    def test_invalid_payload(self, client):
        response = client.post("/api/voice-preview", json={"voice": 5})
        assert error_of(response)["code"] == "invalid_payload"

    def test_failure(self, client, app):
        app.state.synthesizer = FakeSynthesizer(error=TtsError("speech down"))
        response = client.post("/api/voice-preview", json={"language": "fr"})
        assert response.status_code == 500
        assert error_of(response)["code"] == "voice_preview_failure"


class TestCatalogAndStatus:
    def test_scenarios(self, client):
        scenarios = client.get("/api/scenarios").json()["scenarios"]
        assert len(scenarios) == 7
        assert scenarios[0] == {
            "id": "calm_me_now",
            "label": "Calm me now",
            "practiceType": "still_eyes_open",
            "primarySense": "touch",
            "durationMinutes": 2,
        }

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["rulesLoaded"] is True
        assert data["uptimeSeconds"] >= 0

    def test_version(self, client):
        assert client.get("/version").json() == {"version": __version__}


class TestUiAndRouting:
    def test_root_redirects_with_query(self, client):
        response = client.get("/?scenario=calm_me_now", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/en/?scenario=calm_me_now"

    @pytest.mark.parametrize("path", ["/en/", "/de", "/fr/"])
    def test_locale_pages(self, client, path):
        response = client.get(path)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<html" in response.text

    def test_unknown_locale(self, client):
        response = client.get("/pt/")
        assert response.status_code == 404
        assert error_of(response)["code"] == "not_found"

    def test_unknown_api_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert error_of(response) == {"code": "not_found", "message": "Route not found."}

    def test_wrong_method(self, client):
        response = client.get("/api/generate")
        assert response.status_code == 405
        assert error_of(response)["code"] == "method_not_allowed"


class TestDownloadFilename:
    def test_format(self):
        from datetime import datetime

        assert download_filename("nova", datetime(2026, 3, 9, 7, 5)) == "pq-reps_nova_20260309-0705.wav"
