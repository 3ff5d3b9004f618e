# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-20
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv, find_dotenv

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=False)


@dataclass(frozen=True)
class Config:
    # OpenAI (embeddings)
    openai_api_key: str
    openai_base_url: str
    openai_embed_model: str

    # Chroma Vector Database (cloud when chroma_api_key is set, local path otherwise)
    chroma_endpoint: str
    chroma_api_key: str
    chroma_tenant: str
    chroma_database: str
    chroma_path: str
    chroma_collection: str

    # Call catalog + usage ledger (sqlite)
    calls_db_path: str

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # OpenAI
        "openai_api_key": "OPENAI_API_KEY",
        "openai_base_url": "OPENAI_BASE_URL",          # optional, e.g. https://api.openai.com/v1
        "openai_embed_model": "OPENAI_EMBED_MODEL",

        # Chroma
        "chroma_endpoint": "CHROMA_ENDPOINT",
        "chroma_api_key": "CHROMA_API_KEY",
        "chroma_tenant": "CHROMA_TENANT",
        "chroma_database": "CHROMA_DATABASE",
        "chroma_path": "CHROMA_PATH",
        "chroma_collection": "CHROMA_COLLECTION",

        # sqlite
        "calls_db_path": "CALLS_DB_PATH",
    }

    DEFAULTS = {
        "openai_embed_model": "text-embedding-3-small",
        "chroma_path": "./.chroma",
        "chroma_collection": "call_embeddings",
        "calls_db_path": "./calls.db",
    }

    # Convenient *groups* for use in tests / health checks
    OPENAI_ENV_VARS = (
        "OPENAI_API_KEY",
    )

    CHROMA_CLOUD_ENV_VARS = (
        "CHROMA_API_KEY",
        "CHROMA_TENANT",
        "CHROMA_DATABASE",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables."""
        kwargs = {
            field_name: (os.getenv(env_name) or Config.DEFAULTS.get(field_name, "")).strip()
            for field_name, env_name in Config.ENV_VARS.items()
        }
        return Config(**kwargs)

    @property
    def use_chroma_cloud(self) -> bool:
        return bool(self.chroma_api_key)

    def missing(self) -> List[str]:
        """
        Env var names that are required but empty.

        Missing values do not fail construction: the embedding client raises
        ConfigurationError on first use so operators see it on the request
        that needs it.
        """
        required = ["openai_api_key"]
        if self.use_chroma_cloud:
            required += ["chroma_tenant", "chroma_database"]
        return [self.ENV_VARS[f] for f in required if not getattr(self, f)]

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "openai_base_url": self.openai_base_url,
            "openai_embed_model": self.openai_embed_model,
            "openai_api_key_set": bool(self.openai_api_key),
            "chroma_mode": "cloud" if self.use_chroma_cloud else "local",
            "chroma_endpoint": self.chroma_endpoint,
            "chroma_tenant": self.chroma_tenant,
            "chroma_database": self.chroma_database,
            "chroma_path": self.chroma_path,
            "chroma_collection": self.chroma_collection,
            "calls_db_path": self.calls_db_path,
        }
