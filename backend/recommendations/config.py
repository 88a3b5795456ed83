from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class PromptConfig:
    brand: str = os.getenv("ASSISTANT_BRAND", "Kai Catering")
    location: str = os.getenv("DEPLOYMENT_LOCATION", "Soweto, Gauteng, South Africa")


DEFAULT_PROMPT_CONFIG = PromptConfig()
