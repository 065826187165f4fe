from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Site Drop"
    base_storage_dir: str = "./data"
    request_timeout: int = 60
    log_level: str = "INFO"

    # "auto" uses Supabase when url + key are set, local disk otherwise
    storage_backend: str = "auto"

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""        # anon/service_role key
    supabase_bucket: str = "sites"
    sites_table: str = "sites"

    # Public origin of this app, used for /site/<slug> links and local assets
    public_base_url: str = "http://localhost:8000"

    max_upload_bytes: int = 25 * 1024 * 1024
    slug_length: int = 8

    @property
    def site_base(self) -> str:
        return self.public_base_url.rstrip("/")

    @property
    def use_supabase(self) -> bool:
        if self.storage_backend == "auto":
            return bool(self.supabase_url and self.supabase_key)
        return self.storage_backend == "supabase"


settings = Settings()
