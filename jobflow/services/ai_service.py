"""
AI Service for Gemini (Google Gen AI), Claude (Anthropic), GPT (OpenAI) and Ollama.

Builds the prompts and schemas for every assistive feature and forwards them
to the provider picked from the configured model name.
"""

import base64
import json
import os
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import ollama
from anthropic import Anthropic
from google import genai
from google.genai import types
from openai import OpenAI

from jobflow.config import Settings
from jobflow.models import Job
from jobflow.services.chat_service import CoachChat
from jobflow.services.errors import AIServiceError
from jobflow.utils.file_utils import strip_data_url, DEFAULT_IMAGE_MIME
from jobflow.utils.logger import get_logger


logger = get_logger(__name__)

COVER_LETTER_ERROR = "Error: Unable to generate content. Please check your API key and try again."
COVER_LETTER_EMPTY = "Could not generate cover letter."
INTERVIEW_GUIDE_ERROR = "Error: Unable to generate content."
INTERVIEW_GUIDE_EMPTY = "Could not generate interview guide."

HEADSHOT_STYLE = (
    "high-quality professional corporate headshot, studio lighting, neutral professional "
    "background, approachable yet confident"
)

API_KEY_ENV = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "openai": ("OPENAI_API_KEY",),
}

_SECTION_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "subtitle": {"type": "string"},
        "date": {"type": "string"},
        "content": {"type": "string"},
    },
}

RESUME_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "fullName": {"type": "string"},
        "title": {"type": "string"},
        "email": {"type": "string"},
        "phone": {"type": "string"},
        "location": {"type": "string"},
        "summary": {"type": "string"},
        "skills": {"type": "string"},
        "experience": {"type": "array", "items": _SECTION_SCHEMA},
        "education": {"type": "array", "items": _SECTION_SCHEMA},
        "projects": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "tech": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
}

_RESUME_TEXT_FIELDS = {
    "fullName": "full_name",
    "full_name": "full_name",
    "title": "title",
    "email": "email",
    "phone": "phone",
    "location": "location",
    "summary": "summary",
    "skills": "skills",
}


def to_gemini_schema(schema: Any) -> Any:
    """Copy of a JSON schema with Gemini's upper-case type names."""
    if isinstance(schema, dict):
        converted = {}
        for key, value in schema.items():
            if key == "type" and isinstance(value, str):
                converted[key] = value.upper()
            else:
                converted[key] = to_gemini_schema(value)
        return converted
    if isinstance(schema, list):
        return [to_gemini_schema(item) for item in schema]
    return schema


def extract_json_text(text: str) -> str:
    """Strip Markdown code fences some models wrap around JSON output."""
    text = text.strip()
    match = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL)
    return match.group(1) if match else text


def normalize_parsed_resume(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only known resume fields from a model response, with string values
    and Python field names.

    Args:
        data: Decoded JSON object from the model

    Returns:
        Dict ready for ``ResumeStore.apply_parsed_resume``
    """
    parsed: Dict[str, Any] = {}
    for key, field in _RESUME_TEXT_FIELDS.items():
        value = data.get(key)
        if isinstance(value, list):
            value = ", ".join(str(item) for item in value)
        if value is not None:
            parsed[field] = str(value)

    for key in ("experience", "education"):
        parsed[key] = [
            {name: str(item.get(name) or "") for name in ("title", "subtitle", "date", "content")}
            for item in data.get(key) or [] if isinstance(item, dict)
        ]

    parsed["projects"] = [
        {
            "name": str(item.get("name") or ""),
            "description": str(item.get("description") or ""),
            "tech": [str(tech) for tech in item.get("tech") or []],
        }
        for item in data.get("projects") or [] if isinstance(item, dict)
    ]
    return parsed


class AIService:
    """Service for AI interactions using Gemini, Claude, GPT or Ollama."""

    def __init__(self, settings: Settings, clients: Optional[Dict[str, Any]] = None):
        """
        Initialize AI Service.

        Args:
            settings: Application settings
            clients: Optional pre-built provider clients keyed by provider name
        """
        self.settings = settings
        self.ai_settings = settings.ai_settings
        self.temperature = settings.ai_settings.temperature
        self._clients: Dict[str, Any] = dict(clients or {})
        self._warned_missing_keys = set()

        logger.info(f"✅ AI Service ready (text: {self.ai_settings.text_model}, "
                    f"chat: {self.ai_settings.chat_model})")

    # ------------------------------------------------------------------
    # Provider selection
    # ------------------------------------------------------------------

    def _determine_provider(self, model: str) -> str:
        """Determine which AI provider to use based on model name."""
        if model.startswith("gemini"):
            return "gemini"
        elif model.startswith("claude"):
            return "anthropic"
        elif model.startswith("gpt-"):
            return "openai"
        else:
            return "ollama"

    def _api_key(self, provider: str) -> Optional[str]:
        for name in API_KEY_ENV.get(provider, ()):
            value = os.getenv(name)
            if value:
                return value
        return None

    def _create_client(self, provider: str, api_key: Optional[str]) -> Any:
        if provider == "gemini":
            return genai.Client(api_key=api_key)
        elif provider == "anthropic":
            return Anthropic(api_key=api_key)
        elif provider == "openai":
            return OpenAI(api_key=api_key)
        return ollama.Client()

    def _resolve(self, model: str) -> Tuple[str, str, Any]:
        """
        Pick provider, model and client for a configured model name.

        Hosted providers without an API key fall back to Ollama with the
        configured fallback model.
        """
        provider = self._determine_provider(model)

        if provider not in self._clients:
            if provider == "ollama":
                self._clients[provider] = self._create_client(provider, None)
            else:
                api_key = self._api_key(provider)
                if not api_key:
                    if provider not in self._warned_missing_keys:
                        self._warned_missing_keys.add(provider)
                        env_names = " or ".join(API_KEY_ENV[provider])
                        logger.warning(f"⚠️ {env_names} not found. Add it to .env file.")
                        logger.warning(f"   Falling back to Ollama ({self.ai_settings.fallback_model})...")
                    return self._resolve_fallback()
                self._clients[provider] = self._create_client(provider, api_key)
                logger.info(f"✅ Initialized {provider} client")

        return provider, model, self._clients[provider]

    def _resolve_fallback(self) -> Tuple[str, str, Any]:
        if "ollama" not in self._clients:
            self._clients["ollama"] = self._create_client("ollama", None)
        return "ollama", self.ai_settings.fallback_model, self._clients["ollama"]

    # ------------------------------------------------------------------
    # Provider dispatch
    # ------------------------------------------------------------------

    def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Generate free text using the configured AI provider.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            model: Model override (defaults to the text model)
            temperature: Optional temperature override
            max_tokens: Maximum tokens to generate

        Returns:
            Generated text response

        Raises:
            AIServiceError: If the provider call fails
        """
        provider, model, client = self._resolve(model or self.ai_settings.text_model)
        temp = temperature if temperature is not None else self.temperature
        max_tokens = max_tokens or self.ai_settings.max_tokens
        logger.info(f"🤖 Text generation ({provider}/{model})")

        try:
            if provider == "gemini":
                return self._generate_gemini(client, model, prompt, system_prompt, temp, max_tokens)
            elif provider == "anthropic":
                return self._generate_anthropic(client, model, prompt, system_prompt, temp, max_tokens)
            elif provider == "openai":
                return self._generate_openai(client, model, prompt, system_prompt, temp, max_tokens)
            else:
                return self._generate_ollama(client, model, prompt, system_prompt, temp)
        except Exception as e:
            logger.error(f"❌ AI generation error: {str(e)}")
            raise AIServiceError(str(e)) from e

    def generate_structured(
        self,
        prompt: str,
        image_base64: str,
        mime_type: str,
        schema: Dict[str, Any],
        model: Optional[str] = None
    ) -> str:
        """
        Extract JSON matching ``schema`` from an image.

        Returns:
            Raw JSON text from the model

        Raises:
            AIServiceError: If the provider call fails
        """
        provider, model, client = self._resolve(model or self.ai_settings.vision_model)
        logger.info(f"🤖 Structured extraction ({provider}/{model})")

        try:
            if provider == "gemini":
                return self._structured_gemini(client, model, prompt, image_base64, mime_type, schema)
            elif provider == "anthropic":
                return self._structured_anthropic(client, model, prompt, image_base64, mime_type, schema)
            elif provider == "openai":
                return self._structured_openai(client, model, prompt, image_base64, mime_type, schema)
            else:
                return self._structured_ollama(client, model, prompt, image_base64, schema)
        except Exception as e:
            logger.error(f"❌ AI extraction error: {str(e)}")
            raise AIServiceError(str(e)) from e

    def generate_image(
        self,
        prompt: str,
        image_base64: str,
        mime_type: str = DEFAULT_IMAGE_MIME,
        model: Optional[str] = None
    ) -> Optional[str]:
        """
        Image-to-image generation.

        Returns:
            Base64 image data, or None when the model returned no image

        Raises:
            AIServiceError: If the provider call fails or cannot edit images
        """
        provider, model, client = self._resolve(model or self.ai_settings.image_model)
        logger.info(f"🤖 Image generation ({provider}/{model})")

        if provider not in ("gemini", "openai"):
            raise AIServiceError(f"{provider}/{model} cannot generate images")

        try:
            if provider == "gemini":
                return self._image_gemini(client, model, prompt, image_base64, mime_type)
            return self._image_openai(client, model, prompt, image_base64, mime_type)
        except Exception as e:
            logger.error(f"❌ AI image error: {str(e)}")
            raise AIServiceError(str(e)) from e

    def chat_completion(
        self,
        messages: Sequence[Dict[str, str]],
        system_prompt: Optional[str] = None,
        model: Optional[str] = None
    ) -> str:
        """
        Continue a multi-turn conversation.

        Args:
            messages: Turns as {"role": "user" | "model", "content": text}
            system_prompt: System instruction for the session
            model: Model override (defaults to the chat model)

        Returns:
            The model's reply

        Raises:
            AIServiceError: If the provider call fails
        """
        provider, model, client = self._resolve(model or self.ai_settings.chat_model)
        logger.info(f"🤖 Chat turn {len(messages)} ({provider}/{model})")

        try:
            if provider == "gemini":
                return self._chat_gemini(client, model, messages, system_prompt)
            elif provider == "anthropic":
                return self._chat_anthropic(client, model, messages, system_prompt)
            elif provider == "openai":
                return self._chat_openai(client, model, messages, system_prompt)
            else:
                return self._chat_ollama(client, model, messages, system_prompt)
        except Exception as e:
            logger.error(f"❌ AI chat error: {str(e)}")
            raise AIServiceError(str(e)) from e

    # ------------------------------------------------------------------
    # Gemini
    # ------------------------------------------------------------------

    def _generate_gemini(self, client, model, prompt, system_prompt, temperature, max_tokens) -> str:
        """Generate completion using Gemini."""
        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        return (response.text or "").strip()

    def _structured_gemini(self, client, model, prompt, image_base64, mime_type, schema) -> str:
        response = client.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=base64.b64decode(image_base64), mime_type=mime_type),
                prompt,
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=to_gemini_schema(schema),
            ),
        )
        return response.text or ""

    def _image_gemini(self, client, model, prompt, image_base64, mime_type) -> Optional[str]:
        # Image models reject response_mime_type, so no config here
        response = client.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=base64.b64decode(image_base64), mime_type=mime_type),
                prompt,
            ],
        )
        candidates = response.candidates or []
        if not candidates or not candidates[0].content:
            return None
        for part in candidates[0].content.parts or []:
            if part.inline_data and part.inline_data.data:
                return base64.b64encode(part.inline_data.data).decode("ascii")
        return None

    def _chat_gemini(self, client, model, messages, system_prompt) -> str:
        contents = [
            types.Content(
                role="user" if message["role"] == "user" else "model",
                parts=[types.Part(text=message["content"])],
            )
            for message in messages
        ]
        response = client.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=self.temperature,
            ),
        )
        return (response.text or "").strip()

    # ------------------------------------------------------------------
    # Anthropic
    # ------------------------------------------------------------------

    def _generate_anthropic(self, client, model, prompt, system_prompt, temperature, max_tokens) -> str:
        """Generate completion using Claude (Anthropic)."""
        response = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt if system_prompt else "You are a professional career writer.",
            messages=[{"role": "user", "content": prompt}]
        )
        return response.content[0].text.strip()

    def _structured_anthropic(self, client, model, prompt, image_base64, mime_type, schema) -> str:
        instructions = (
            f"{prompt}\n\nRespond with a single JSON object only, matching this JSON schema:\n"
            f"{json.dumps(schema)}"
        )
        response = client.messages.create(
            model=model,
            max_tokens=self.ai_settings.max_tokens,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image", "source": {"type": "base64", "media_type": mime_type, "data": image_base64}},
                    {"type": "text", "text": instructions},
                ],
            }]
        )
        return response.content[0].text

    def _chat_anthropic(self, client, model, messages, system_prompt) -> str:
        response = client.messages.create(
            model=model,
            max_tokens=self.ai_settings.max_tokens,
            temperature=self.temperature,
            system=system_prompt or "",
            messages=[
                {"role": "user" if m["role"] == "user" else "assistant", "content": m["content"]}
                for m in messages
            ]
        )
        return response.content[0].text.strip()

    # ------------------------------------------------------------------
    # OpenAI
    # ------------------------------------------------------------------

    def _generate_openai(self, client, model, prompt, system_prompt, temperature, max_tokens) -> str:
        """Generate completion using OpenAI GPT."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens
        )
        return (response.choices[0].message.content or "").strip()

    def _structured_openai(self, client, model, prompt, image_base64, mime_type, schema) -> str:
        response = client.chat.completions.create(
            model=model,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}},
                ],
            }],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "resume", "schema": schema},
            },
        )
        return response.choices[0].message.content or ""

    def _image_openai(self, client, model, prompt, image_base64, mime_type) -> Optional[str]:
        extension = mime_type.split("/")[-1] or "jpeg"
        response = client.images.edit(
            model=model,
            image=(f"source.{extension}", base64.b64decode(image_base64), mime_type),
            prompt=prompt,
        )
        if not response.data:
            return None
        return response.data[0].b64_json

    def _chat_openai(self, client, model, messages, system_prompt) -> str:
        payload = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend(
            {"role": "user" if m["role"] == "user" else "assistant", "content": m["content"]}
            for m in messages
        )
        response = client.chat.completions.create(
            model=model,
            messages=payload,
            temperature=self.temperature,
        )
        return (response.choices[0].message.content or "").strip()

    # ------------------------------------------------------------------
    # Ollama
    # ------------------------------------------------------------------

    def _generate_ollama(self, client, model, prompt, system_prompt, temperature) -> str:
        """Generate completion using Ollama."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = client.chat(
            model=model,
            messages=messages,
            options={"temperature": temperature}
        )
        return response['message']['content'].strip()

    def _structured_ollama(self, client, model, prompt, image_base64, schema) -> str:
        response = client.chat(
            model=model,
            messages=[{"role": "user", "content": prompt, "images": [image_base64]}],
            format=schema,
        )
        return response['message']['content']

    def _chat_ollama(self, client, model, messages, system_prompt) -> str:
        payload = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend(
            {"role": "user" if m["role"] == "user" else "assistant", "content": m["content"]}
            for m in messages
        )
        response = client.chat(
            model=model,
            messages=payload,
            options={"temperature": self.temperature}
        )
        return response['message']['content'].strip()

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def generate_cover_letter(self, role: str, company: str, user_skills: str) -> str:
        """
        Draft a cover letter for a role.

        Never raises: failures come back as a static error message that is
        shown in place of the letter.
        """
        prompt = f"""Write a passionate, professional cover letter for the {role} position at {company}.
Emphasize the following skills: {user_skills}.
Keep it concise (under 300 words) and ready to copy-paste."""

        try:
            letter = self.generate_completion(prompt)
        except AIServiceError as e:
            logger.error(f"Error generating cover letter: {e}")
            return COVER_LETTER_ERROR

        return letter or COVER_LETTER_EMPTY

    def generate_interview_guide(self, role: str, company: str, description: str) -> str:
        """
        Build a Markdown interview preparation guide from a job description.

        Never raises: failures come back as a static error message.
        """
        prompt = f"""Create a comprehensive interview preparation guide for a {role} position at {company}.
Based on the job description provided below, suggest 5 likely technical questions, 3 behavioral questions, and key tips for success.

Job Description:
{description}

Format the output in Markdown."""

        try:
            guide = self.generate_completion(prompt)
        except AIServiceError as e:
            logger.error(f"Error generating interview guide: {e}")
            return INTERVIEW_GUIDE_ERROR

        return guide or INTERVIEW_GUIDE_EMPTY

    def parse_resume_image(self, base64_image: str, mime_type: str = DEFAULT_IMAGE_MIME) -> Dict[str, Any]:
        """
        Extract structured resume data from a resume image.

        Args:
            base64_image: Image as base64 text (a data URL prefix is ignored)
            mime_type: Image mime type

        Returns:
            Parsed fields (see ``normalize_parsed_resume``)

        Raises:
            AIServiceError: If the call fails or the response is not a JSON object
        """
        prompt = """Analyze this resume image. Extract structured data into JSON matching the schema provided.
Ensure the 'experience' and 'education' arrays follow the structure with title (role/degree), subtitle (company/school), date, and content (description).
Improve the wording of the summary and descriptions to be more action-oriented and professional if possible."""

        text = self.generate_structured(prompt, strip_data_url(base64_image), mime_type, RESUME_SCHEMA)
        if not text or not text.strip():
            raise AIServiceError("No response from AI")

        try:
            data = json.loads(extract_json_text(text))
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing resume: {e}")
            raise AIServiceError(f"Response was not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise AIServiceError("Response was not a JSON object")

        return normalize_parsed_resume(data)

    def generate_styled_avatar(
        self,
        base64_image: str,
        style_prompt: str,
        mime_type: str = DEFAULT_IMAGE_MIME
    ) -> str:
        """
        Restyle a portrait while keeping the subject's identity.

        Returns:
            Base64 image data

        Raises:
            AIServiceError: If the call fails or no image comes back
        """
        prompt = f"""Transform this image based on the following style description: "{style_prompt}".
Important: Maintain the facial features and identity of the subject exactly. Only change the artistic style, lighting, clothing, or background as requested."""

        image = self.generate_image(prompt, strip_data_url(base64_image), mime_type)
        if not image:
            logger.error("Error generating avatar: no image in response")
            raise AIServiceError("No image generated")
        return image

    def generate_professional_headshot(self, base64_image: str, mime_type: str = DEFAULT_IMAGE_MIME) -> str:
        return self.generate_styled_avatar(base64_image, HEADSHOT_STYLE, mime_type)

    def create_coach_chat(self, jobs: List[Job], user_name: str) -> CoachChat:
        """Start a Claire chat session seeded with the user's job search stats."""
        return CoachChat(self, jobs, user_name)
