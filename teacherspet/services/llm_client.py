"""
Model provider plumbing.

generate_structured() sends one prompt to OpenAI, Anthropic or Gemini
(picked from the model alias) and validates the JSON reply against a
pydantic model. Any failure surfaces as GradingError.
"""
import json
import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from teacherspet.config import config

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

OPENAI_MODELS = {
    'gpt-4o': 'gpt-4o',
    'gpt-4o-mini': 'gpt-4o-mini',
    'gpt-4.1': 'gpt-4.1',
    'gpt-4.1-mini': 'gpt-4.1-mini',
}

ANTHROPIC_MODELS = {
    'claude-sonnet': 'claude-sonnet-4-20250514',
    'claude-haiku': 'claude-3-5-haiku-20241022',
    'claude-opus': 'claude-opus-4-20250514',
}

GEMINI_MODELS = {
    'gemini-flash': 'gemini-2.0-flash',
    'gemini-pro': 'gemini-1.5-pro',
}

MAX_TOKENS = 4096


class GradingError(RuntimeError):
    """A model call failed or returned no usable structured output."""


def provider_for(model: str) -> str:
    if model.startswith('claude'):
        return 'anthropic'
    if model.startswith('gemini'):
        return 'gemini'
    return 'openai'


def strip_code_fences(response_text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    response_text = response_text.strip()
    if response_text.startswith('```'):
        lines = response_text.split('\n')
        lines = [l for l in lines if not l.strip().startswith('```')]
        response_text = '\n'.join(lines)
    return response_text.strip()


def _schema_instructions(response_model: Type[BaseModel]) -> str:
    schema = json.dumps(response_model.model_json_schema(), indent=2)
    return (
        "\n\nRespond with a single JSON object ONLY (no other text) that "
        f"matches this JSON schema:\n{schema}\n"
    )


def _complete_with_openai(prompt: str, response_model: Type[ResponseModel], model: str) -> ResponseModel:
    from openai import OpenAI
    client = OpenAI(api_key=config.openai_api_key)

    response = client.beta.chat.completions.parse(
        model=OPENAI_MODELS.get(model, model),
        messages=[{"role": "user", "content": prompt}],
        response_format=response_model,
        temperature=0.3,
    )
    parsed = response.choices[0].message.parsed
    if parsed is None:
        raise GradingError("The AI model did not return a valid response.")
    return parsed


def _complete_with_anthropic(prompt: str, response_model: Type[ResponseModel], model: str) -> str:
    import anthropic
    client = anthropic.Anthropic(api_key=config.anthropic_api_key)

    response = client.messages.create(
        model=ANTHROPIC_MODELS.get(model, 'claude-sonnet-4-20250514'),
        max_tokens=MAX_TOKENS,
        messages=[{"role": "user", "content": prompt + _schema_instructions(response_model)}],
    )
    return response.content[0].text


def _complete_with_gemini(prompt: str, response_model: Type[ResponseModel], model: str) -> str:
    import google.generativeai as genai
    genai.configure(api_key=config.gemini_api_key)

    gen_model = genai.GenerativeModel(GEMINI_MODELS.get(model, 'gemini-2.0-flash'))
    response = gen_model.generate_content(
        prompt + _schema_instructions(response_model),
        generation_config={"response_mime_type": "application/json"},
    )
    return response.text


def parse_structured(response_text: str, response_model: Type[ResponseModel]) -> ResponseModel:
    """Parse a model's text reply into `response_model`."""
    try:
        return response_model.model_validate(json.loads(strip_code_fences(response_text)))
    except (json.JSONDecodeError, ValidationError) as e:
        raise GradingError(f"The AI model did not return a valid response: {e}") from e


def generate_structured(prompt: str, response_model: Type[ResponseModel], model: Optional[str] = None) -> ResponseModel:
    """
    Run `prompt` on the configured provider and return a validated
    `response_model` instance. Raises GradingError on any failure.
    """
    model = model or config.model
    provider = provider_for(model)
    logger.info("Calling %s (%s) for %s", provider, model, response_model.__name__)

    try:
        if provider == 'openai':
            return _complete_with_openai(prompt, response_model, model)
        elif provider == 'anthropic':
            response_text = _complete_with_anthropic(prompt, response_model, model)
        else:
            response_text = _complete_with_gemini(prompt, response_model, model)
    except GradingError:
        raise
    except Exception as e:
        logger.error("%s API error: %s", provider, e)
        raise GradingError(f"{provider} API error: {e}") from e

    return parse_structured(response_text, response_model)
