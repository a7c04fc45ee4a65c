from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "Immigration CRM"
    app_version: str = "1.0.0"
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./immigration_crm.db"

    # Auth
    secret_key: str = "CHANGE_ME"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12

    # Admin bootstrap
    first_admin_username: str = "admin"
    first_admin_email: str = "admin@immigrationfirm.com"
    first_admin_password: str = "CHANGE_ME"
    first_admin_full_name: str = "System Administrator"

    # CORS
    backend_cors_origins: list[str] = ["http://localhost", "http://localhost:3000"]

    model_config = {"env_file": ".env", "case_sensitive": False}


settings = Settings()
