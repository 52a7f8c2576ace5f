"""
AI avatar studio: restyle an uploaded portrait with a style preset.
"""

from typing import List, Optional

from pydantic import BaseModel

from jobflow.utils.file_utils import to_data_url, strip_data_url, data_url_mime
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)


class StylePreset(BaseModel):
    """A named style prompt."""
    id: str
    label: str
    prompt: str


STYLE_PRESETS: List[StylePreset] = [
    StylePreset(
        id="corporate",
        label="Corporate Headshot",
        prompt="High-quality professional corporate headshot, studio lighting, neutral grey background, wearing a suit.",
    ),
    StylePreset(
        id="tech",
        label="Tech Conference",
        prompt="Modern tech conference speaker profile, vibrant but professional lighting, blurred modern office background.",
    ),
    StylePreset(
        id="creative",
        label="Creative Studio",
        prompt="Artistic portrait, warm dramatic lighting, minimalist aesthetic, high contrast black and white.",
    ),
    StylePreset(
        id="cyberpunk",
        label="Cyberpunk",
        prompt="Futuristic cyberpunk style, neon lighting, blue and pink hues, high tech city background.",
    ),
    StylePreset(
        id="illustration",
        label="3D Illustration",
        prompt="3D pixar style character illustration, soft rendering, friendly expression, solid color background.",
    ),
]


def get_preset(preset_id: str) -> Optional[StylePreset]:
    return next((preset for preset in STYLE_PRESETS if preset.id == preset_id), None)


class AvatarStudio:
    """Per-session studio state: the source portrait, the chosen style and the result."""

    def __init__(self):
        self.source_image: Optional[str] = None
        self.generated_image: Optional[str] = None
        self.prompt: str = STYLE_PRESETS[0].prompt

    def upload(self, base64_data: str, mime_type: str) -> None:
        """Replace the source image and drop any previous result."""
        self.source_image = to_data_url(base64_data, mime_type)
        self.generated_image = None

    def select_preset(self, preset_id: str) -> bool:
        preset = get_preset(preset_id)
        if preset is None:
            return False
        self.prompt = preset.prompt
        return True

    def generate(self, ai_service, prompt: Optional[str] = None) -> str:
        """
        Restyle the source image.

        Args:
            ai_service: ``AIService`` performing the style transfer
            prompt: Style description; defaults to the current one

        Returns:
            The generated image as a data URL

        Raises:
            ValueError: If there is no source image or the prompt is blank
            AIServiceError: If the AI call fails
        """
        if prompt is not None:
            self.prompt = prompt
        if not self.source_image or not self.prompt.strip():
            raise ValueError("Upload an image and choose a style first")

        logger.info("🎨 Generating styled avatar")
        result = ai_service.generate_styled_avatar(
            strip_data_url(self.source_image),
            self.prompt,
            data_url_mime(self.source_image),
        )
        self.generated_image = to_data_url(result)
        return self.generated_image
