import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
    JWT_SECRET_KEY: str = os.environ.get("JWT_SECRET_KEY", "")
    MONGO_URI: str = os.environ.get("MONGO_URI", "")
    MONGO_DIRECT_URI: str = os.environ.get("MONGO_DIRECT_URI", "")
    MONGO_DB_NAME: str = "kisansetu"

    ADVISORY_MODEL: str = "gemini-2.5-flash"
    SOIL_MODEL: str = "gemini-2.5-flash"
    VOICE_MODEL: str = "gemini-2.5-flash"
    TTS_MODEL: str = "gemini-2.5-flash-preview-tts"

    VOICE_INFERENCE_TIMEOUT_SECONDS: float = 30.0
    SPEECH_TIMEOUT_SECONDS: float = 15.0
    VOICE_LANGUAGE: str = "en-IN"
    # Inline audio is base64 encoded into a Gemini request capped near 20 MB.
    MAX_RECORDING_BYTES: int = 14 * 1024 * 1024

    OPEN_METEO_URL: str = "https://api.open-meteo.com/v1/forecast"
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org/reverse"
    NOMINATIM_USER_AGENT: str = "KisanSetu-App/1.0"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")


settings = Settings()
