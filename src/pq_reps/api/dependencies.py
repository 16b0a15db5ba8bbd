"""
Shared per-app service handles.

Clients are created on first use and cached on app.state, so an app without
OPENAI_API_KEY still starts and serves the UI; only the routes that need the
provider fail (with missing_openai_key). Tests replace the handles on
app.state directly.
"""

from fastapi import Request

from ..llm import LLMClient, create_client
from ..services import SpeechSynthesizer


def get_llm_client(request: Request) -> LLMClient:
    state = request.app.state
    if getattr(state, "llm_client", None) is None:
        state.llm_client = create_client()
    return state.llm_client


def get_synthesizer(request: Request) -> SpeechSynthesizer:
    state = request.app.state
    if getattr(state, "synthesizer", None) is None:
        state.synthesizer = SpeechSynthesizer()
    return state.synthesizer
