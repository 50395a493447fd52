import httpx
from typing import Optional, Dict, Any
from app.config import settings
from app.errors import ContentGenerationError

INFERENCE_URL = "https://api-inference.huggingface.co/models"

class HFClient:
    def __init__(self, api_token: Optional[str] = None, timeout: float = 60.0, client: Optional[httpx.Client] = None):
        self.api_token = api_token or settings.hf_api_token
        if not self.api_token:
            raise ContentGenerationError("HF_API_TOKEN is not set. Put it in .env or set it in the environment.")
        self.headers = {"Authorization": f"Bearer {self.api_token}"}
        self.client = client or httpx.Client(timeout=timeout)

    def text_generation(self, model: str, inputs: str, params: Optional[Dict[str, Any]] = None) -> str:
        payload: Dict[str, Any] = {"inputs": inputs, "options": {"wait_for_model": True}}
        if params:
            payload["parameters"] = params
        try:
            r = self.client.post(f"{INFERENCE_URL}/{model}", headers=self.headers, json=payload)
        except httpx.RequestError as e:
            raise ContentGenerationError(f"HuggingFace request failed: {e}") from e
        if r.status_code != 200:
            raise ContentGenerationError(f"HuggingFace API error {r.status_code}: {r.text[:500]}")
        try:
            data = r.json()
        except ValueError as e:
            raise ContentGenerationError(f"HuggingFace returned non-JSON body: {r.text[:200]}") from e
        # list of {"generated_text": ...} for most text2text/causal models
        if isinstance(data, list) and data and isinstance(data[0], dict):
            data = data[0]
        if isinstance(data, dict) and "generated_text" in data:
            return data["generated_text"]
        return str(data)
