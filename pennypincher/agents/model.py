"""
Model Client

DESIGN DECISION: The flows never talk to the Gemini SDK directly.
They hand a prompt and a pydantic output schema to a ModelClient and get
back a validated instance of that schema, or an exception.

This keeps the flows testable with a fake client and keeps one place
responsible for:
1. Turning data URIs into inline media parts
2. Pulling the JSON object out of the model's text
3. Validating it against the schema

There is NO retry and NO fallback answer. A failed or malformed call
surfaces to the caller, which shows an error and leaves the ledger alone.
"""

import base64
import binascii
import json
import re
from abc import ABC, abstractmethod
from typing import Optional, TypeVar

import google.generativeai as genai
from pydantic import BaseModel, ValidationError

from pennypincher.config import GeminiSettings, get_settings
from pennypincher.events import get_logger


OutputT = TypeVar("OutputT", bound=BaseModel)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)


class FlowError(Exception):
    """Base exception for AI flow failures."""
    pass


class NoValidOutputError(FlowError):
    """The model answered, but not with JSON matching the output schema."""

    def __init__(self, prompt_name: str, reason: str):
        self.prompt_name = prompt_name
        self.reason = reason
        super().__init__(f"{prompt_name}: no valid output ({reason})")


class ModelInvocationError(FlowError):
    """The model call itself failed (network, quota, auth...)."""
    pass


class InvalidMediaError(FlowError):
    """Media must be a base64 data URI: data:<mimetype>;base64,<data>."""
    pass


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """
    Split a data URI into (mime_type, raw bytes).

    Raises:
        InvalidMediaError: Not a base64 data URI
    """
    match = _DATA_URI.match(uri.strip())
    if not match:
        raise InvalidMediaError("Expected a data URI of the form data:<mimetype>;base64,<data>")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidMediaError(f"Media is not valid base64: {e}") from e
    return match.group("mime"), data


def extract_json_object(text: str) -> Optional[dict]:
    """Return the outermost {...} in `text` parsed as JSON, or None."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def validate_output(prompt_name: str, text: str, output_schema: type[OutputT]) -> OutputT:
    """
    Parse model text into `output_schema`.

    Raises:
        NoValidOutputError: No JSON object, or it does not fit the schema
    """
    data = extract_json_object(text)
    if data is None:
        raise NoValidOutputError(prompt_name, "response contained no JSON object")
    try:
        return output_schema.model_validate(data)
    except ValidationError as e:
        raise NoValidOutputError(
            prompt_name, f"{e.error_count()} schema error(s)"
        ) from e


class ModelClient(ABC):
    """Invoke a hosted model with a prompt and get structured output."""

    @abstractmethod
    async def invoke(
        self,
        prompt_name: str,
        prompt: str,
        output_schema: type[OutputT],
        media: Optional[str] = None,
    ) -> OutputT:
        """
        Run one prompt.

        Args:
            prompt_name: Used in logs and errors
            prompt: Fully rendered prompt text
            output_schema: Pydantic model the answer must fit
            media: Optional data URI (image, PDF, CSV) sent inline

        Raises:
            NoValidOutputError: Output missing or not matching the schema
            ModelInvocationError: The call failed
            InvalidMediaError: `media` is not a data URI
        """
        pass


class GeminiModelClient(ModelClient):
    """ModelClient backed by Google Generative AI."""

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._logger = get_logger("pennypincher.agents")
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def invoke(
        self,
        prompt_name: str,
        prompt: str,
        output_schema: type[OutputT],
        media: Optional[str] = None,
    ) -> OutputT:
        contents = [prompt]
        if media is not None:
            mime_type, data = parse_data_uri(media)
            contents.append({"mime_type": mime_type, "data": data})

        try:
            response = await self._model.generate_content_async(contents)
        except Exception as e:
            # The SDK raises google.api_core exceptions as well as its own
            self._logger.error("model_invocation_failed", prompt=prompt_name, error=str(e))
            raise ModelInvocationError(f"{prompt_name}: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # Blocked or empty candidates
            raise NoValidOutputError(prompt_name, str(e)) from e

        return validate_output(prompt_name, text.strip(), output_schema)
