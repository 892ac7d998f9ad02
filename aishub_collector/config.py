from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    LOG_LEVEL: str = "INFO"
    # User settings (API key, polling interval, filters); rewritten on rate limiting
    SETTINGS_FILE: str = "settings.json"
    # Tracked fleet: header row, then IMO,MMSI per line
    SHIPS_FILE: str = "ships.csv"
    # Root of the per-vessel series (data/imo, data/mmsi)
    DATA_DIR: str = "data"
    AISHUB_BASE_URL: str = "https://data.aishub.net/ws.php"
    # Seconds; unset means the request may block indefinitely
    HTTP_TIMEOUT: float | None = None


settings = Settings()
