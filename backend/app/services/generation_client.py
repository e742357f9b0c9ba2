# backend/app/services/generation_client.py
"""
Structured generation on top of a hosted chat model.

A prompt template is rendered with the request variables, sent to the model
with an instruction to answer in JSON, and the first JSON object found in the
reply is validated against a pydantic schema.

Templates understand two constructs:
    {{name}}                  replaced by the variable's value
    {{#if flag}} ... {{/if}}  kept only when the variable is truthy
"""

import base64
import json
import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar

from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from app.core.config import Settings
from app.core.errors import GenerationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_IF_BLOCK = re.compile(r"\{\{#if\s+(\w+)\s*\}\}(.*?)\{\{/if\}\}", re.DOTALL)
_VARIABLE = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def render_template(template: str, variables: Dict[str, Any]) -> str:
    """Render conditional blocks first, then plain substitutions."""

    def _if(match: re.Match) -> str:
        return match.group(2) if variables.get(match.group(1)) else ""

    text = _IF_BLOCK.sub(_if, template)
    return _VARIABLE.sub(lambda m: _format_value(variables.get(m.group(1))), text)


def extract_json_block(text: str) -> Optional[str]:
    """Return the first balanced {...} block in text, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_json_payload(text: str) -> Dict[str, Any]:
    """Find and parse the JSON object in a model reply.

    Markdown code fences and trailing commas are tolerated.
    Raises GenerationError when no object can be parsed.
    """
    block = extract_json_block(_CODE_FENCE.sub("", text or ""))
    if block is None:
        raise GenerationError("Model response contained no JSON object")

    try:
        return json.loads(block)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(_TRAILING_COMMA.sub(r"\1", block))
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model response is not valid JSON: {e}") from e


def to_data_uri(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


class StructuredGenerationClient:
    """Turns a prompt template plus an output schema into a validated model instance.

    Never retries; callers decide what to do with a GenerationError.
    """

    def __init__(self, client, model: str, timeout: Optional[float] = None):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def generate(
        self,
        template: str,
        variables: Dict[str, Any],
        output_schema: Type[T],
        image_data_uri: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> T:
        if self.client is None:
            raise GenerationError("Model provider is not configured")

        prompt = render_template(template, variables)
        prompt += (
            "\n\nRespond ONLY with a JSON object that matches this JSON schema:\n"
            + json.dumps(output_schema.model_json_schema())
        )

        if image_data_uri is None:
            user_content: Any = prompt
        else:
            user_content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_data_uri}},
            ]

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_content})

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
        except OpenAIError as e:
            logger.error("Model call failed: %s", e)
            raise GenerationError(f"Model call failed: {e}") from e

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise GenerationError("Model returned an empty response")

        payload = parse_json_payload(text)
        try:
            return output_schema.model_validate(payload)
        except SchemaError as e:
            logger.warning("Model output failed %s validation: %s", output_schema.__name__, e)
            raise GenerationError(f"Model output does not match {output_schema.__name__}") from e


def build_model_client(settings: Settings):
    """Create the async OpenAI client, or None when no credentials are configured."""
    if settings.use_azure:
        return AsyncAzureOpenAI(
            api_version=settings.AZURE_API_VERSION,
            azure_endpoint=settings.AZURE_FOUNDRY_ENDPOINT,
            api_key=settings.AZURE_FOUNDRY_API_KEY,
        )
    if settings.OPENAI_API_KEY:
        return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    logger.warning("No model provider credentials configured; AI features will fail")
    return None


def model_name(settings: Settings) -> str:
    return settings.AZURE_CHAT_DEPLOYMENT if settings.use_azure else settings.OPENAI_MODEL
