"""
Unit tests for prompt enhancement endpoints.

The enhancement service dependency is overridden with one whose providers are
Pydantic AI ``TestModel`` instances.
"""

from unittest.mock import MagicMock, patch

import pytest
from pydantic_ai.models.test import TestModel

from promptatrium.server.api.v1.enhance import get_enhancement_service
from promptatrium.server.services.enhancement import EnhancementService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def enhancer(client):
    """Install an enhancement service; providers listed in ``failing`` raise."""
    from promptatrium.server.main import app

    def _install(failing=()):
        def factory(provider, model_name, api_key):
            if provider in failing:
                raise RuntimeError(f"{provider} unavailable")
            return TestModel(custom_output_text=f"{provider} detailed prompt")

        app.dependency_overrides[get_enhancement_service] = lambda: EnhancementService(model_factory=factory)

    with patch("promptatrium.server.services.enhancement.settings") as mock_settings:
        mock_settings.openai = MagicMock(api_key="sk-test", model="gpt-4o")
        mock_settings.google = MagicMock(api_key="g-test", model="gemini-2.5-flash")
        mock_settings.mistral = MagicMock(api_key="m-test", model="mistral-large-latest")
        yield _install


class TestEnhancePrompt:
    async def test_enhances_with_primary_provider(self, client, enhancer):
        enhancer()

        response = await client.post("/api/enhance-prompt", json={"prompt": "a castle", "llmProvider": "openai"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["enhancedPrompt"] == "openai detailed prompt"
        assert data["metadata"]["provider"] == "openai"
        assert data["metadata"]["model"] == "gpt-4o"
        assert data["diagnostics"]["fallbackUsed"] is False
        assert data["metadata"]["timestamp"].endswith("Z")

    async def test_falls_through_to_next_provider(self, client, enhancer):
        enhancer(failing=("openai",))

        response = await client.post("/api/enhance-prompt", json={"prompt": "a castle"})

        data = response.json()
        assert data["enhancedPrompt"] == "gemini detailed prompt"
        assert [stage["status"] for stage in data["diagnostics"]["stages"]] == ["failed", "success"]

    async def test_static_fallback_when_every_provider_fails(self, client, enhancer):
        enhancer(failing=("openai", "gemini", "mistral"))

        response = await client.post("/api/enhance-prompt", json={"prompt": "a castle"})

        data = response.json()
        assert response.status_code == 200
        assert data["enhancedPrompt"] == "a castle, professional quality, detailed, high resolution"
        assert data["metadata"]["provider"] == "fallback"
        assert data["diagnostics"]["fallbackUsed"] is True

    @pytest.mark.parametrize("body", [{}, {"prompt": "   "}])
    async def test_missing_prompt(self, client, enhancer, body):
        enhancer()

        response = await client.post("/api/enhance-prompt", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No prompt provided"}

    async def test_rate_limited(self, client, enhancer):
        enhancer()

        with patch("promptatrium.server.services.rate_limit._is_enforced", return_value=True):
            responses = [await client.post("/api/enhance-prompt", json={"prompt": "a castle"}) for _ in range(11)]

        assert [r.status_code for r in responses[:10]] == [200] * 10
        assert responses[10].status_code == 429
        assert "Retry-After" in responses[10].headers


class TestEnhanceBatch:
    async def test_reports_each_item(self, client, enhancer):
        enhancer()

        response = await client.post("/api/enhance-prompt/batch", json={"prompts": ["a castle", "", "a forest"]})

        data = response.json()
        assert data["success"] is True
        assert [item["success"] for item in data["results"]] == [True, False, True]
        assert data["results"][1]["error"] == "Prompt must be a non-empty string"
        assert data["metadata"]["total"] == 3
        assert data["metadata"]["successful"] == 2
        assert data["metadata"]["failed"] == 1

    async def test_no_static_fallback(self, client, enhancer):
        enhancer(failing=("openai", "gemini", "mistral"))

        response = await client.post("/api/enhance-prompt/batch", json={"prompts": ["a castle"]})

        [item] = response.json()["results"]
        assert item["success"] is False
        assert item["enhanced"] == "a castle"
        assert item["error"] == "mistral unavailable"

    async def test_prompts_must_be_a_list(self, client, enhancer):
        enhancer()

        response = await client.post("/api/enhance-prompt/batch", json={"prompts": "a castle"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No prompts array provided"}
