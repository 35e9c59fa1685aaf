from langchain_google_genai import (
    ChatGoogleGenerativeAI,
    HarmBlockThreshold,
    HarmCategory,
)

from .config import settings

DEFAULT_SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_LOW_AND_ABOVE,
}


def get_chat_model(model: str, **kwargs) -> ChatGoogleGenerativeAI:
    if "google_api_key" not in kwargs and "api_key" not in kwargs:
        kwargs["google_api_key"] = settings.GEMINI_API_KEY
    if "safety_settings" not in kwargs:
        kwargs["safety_settings"] = DEFAULT_SAFETY_SETTINGS
    return ChatGoogleGenerativeAI(model=model, **kwargs)


def get_advisory_model(**kwargs) -> ChatGoogleGenerativeAI:
    return get_chat_model(model=settings.ADVISORY_MODEL, **kwargs)


def get_soil_model(**kwargs) -> ChatGoogleGenerativeAI:
    # Soil answers must be stable for the same coordinates.
    kwargs.setdefault("temperature", 0.2)
    return get_chat_model(model=settings.SOIL_MODEL, **kwargs)


def get_voice_model(**kwargs) -> ChatGoogleGenerativeAI:
    return get_chat_model(model=settings.VOICE_MODEL, **kwargs)


def get_tts_model(**kwargs) -> ChatGoogleGenerativeAI:
    return get_chat_model(
        model=settings.TTS_MODEL, response_modalities=["AUDIO"], **kwargs
    )
