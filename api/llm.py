"""
LLM invocation. Two interchangeable generators share one call shape:
generate(instructions, input, schema) -> raw SDK response.
The raw response goes to api.normalize, which knows both shapes.
"""
from api import config
from api.errors import UpstreamError
from api.prompts import SCHEMA_NAME


def _client(api_key: str = None):
    key = (api_key or config.get_openai_key() or "").strip()
    if not key:
        raise UpstreamError("OPENAI_API_KEY not set")
    import openai
    return openai.OpenAI(api_key=key)


class ResponsesGenerator:
    """OpenAI Responses API with a strict json_schema text format."""

    def __init__(self, model: str = None, api_key: str = None, client=None):
        self.model = model or config.get_model()
        self.api_key = api_key
        self.client = client

    def generate(self, instructions: str, input_text: str, schema: dict):
        client = self.client or _client(self.api_key)
        return client.responses.create(
            model=self.model,
            instructions=instructions,
            input=input_text,
            text={
                "format": {
                    "type": "json_schema",
                    "name": SCHEMA_NAME,
                    "schema": schema,
                    "strict": True,
                }
            },
        )


class ChatGenerator:
    """OpenAI Chat Completions with the schema as response_format."""

    def __init__(self, model: str = None, api_key: str = None, client=None, temperature: float = None):
        self.model = model or config.get_model()
        self.api_key = api_key
        self.client = client
        self.temperature = temperature if temperature is not None else config.get_temperature()

    def generate(self, instructions: str, input_text: str, schema: dict):
        client = self.client or _client(self.api_key)
        kwargs = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": instructions},
                {"role": "user", "content": input_text},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": SCHEMA_NAME, "schema": schema, "strict": True},
            },
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        return client.chat.completions.create(**kwargs)


def get_generator():
    """Pick the generator from LLM_API ('responses' or 'chat')."""
    if config.get_llm_api() == "chat":
        return ChatGenerator()
    return ResponsesGenerator()
