from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Telegram (default bot identity; extra identities come from TELEGRAM_TOKEN_<NAME>)
    telegram_token: str = ""
    required_bots: list[str] = ["septimodiaboutique_bot"]

    # WhatsApp Business (Graph API)
    webhook_verify_token: str = ""
    graph_api_token: str = ""
    phone_id: str = ""
    graph_api_version: str = "v20.0"

    # External generator service used by the WhatsApp webhook
    generator_url: str = ""

    # Server
    port: int = 8000
    environment: str = "development"
    log_level: str = "DEBUG"

    # Worker programs
    python_bin: str = "/home/wuilliam/proyectos/ai-financial/.venv/bin/python"
    expense_script: str = "/home/wuilliam/proyectos/ai-financial/test_zsoft.py"
    pagomovil_script: str = "/home/wuilliam/proyectos/ai-financial/test_pagomovil.py"
    node_bin: str = "/home/wuilliam/.nvm/versions/node/v20.16.0/bin/node"
    report_script: str = "/home/wuilliam/proyectos/7db-inventariodb/analize_short.js"
    product_lookup_script: str = "/home/wuilliam/proyectos/7db-inventariodb/product_lookup.js"

    # Accounts reachable through /pagomovil_<account>
    pagomovil_accounts: list[str] = ["wuilliam", "gilza"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
