"""OpenAI-backed vision capability used to describe images."""

import base64
from typing import Any, Optional

from openai import OpenAI

DEFAULT_VISION_MODEL = "gpt-4o-mini"


class OpenAIVisionClient:
    """Sends one inline image plus an instruction to a chat completion model."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_VISION_MODEL,
        timeout: float = 30.0,
        max_tokens: int = 50,
        temperature: float = 0.7,
        client: Optional[Any] = None,
    ):
        self._client = client if client is not None else OpenAI(api_key=api_key, timeout=timeout)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    def describe_image(self, image_bytes: bytes, mime_type: str, prompt: str) -> str:
        """
        Ask the model about an image sent as a base64 data URI.

        Raises:
            ValueError: If the reply carries no text content
        """
        encoded = base64.b64encode(image_bytes).decode("ascii")
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{mime_type};base64,{encoded}",
                                "detail": "low",
                            },
                        },
                    ],
                }
            ],
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        content = response.choices[0].message.content
        if not content:
            raise ValueError("Vision model returned an empty description")
        return content
