"""Provider/runtime configuration for the FLUX image layer.

Architectural role:
    Centralizes endpoint selection, credential lookup and polling budgets for
    `fluxlab.image.service` and the interface adapters in `fluxlab.api`.

Determinism:
    Deterministic for a fixed process environment and key file. Dataclass
    defaults are resolved at import time (plus runtime key-file reads in
    `load_key`).

Failure behavior:
    Missing key material is represented as an empty string and rejected by
    `service.build_client` with a `RuntimeError`.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BASE_URL = "https://api.bfl.ml/v1/"

# Model paths relative to the base URL, keyed by tier.
MODEL_PATHS = {
    "standard": "flux-pro-1.1",
    "ultra": "flux-pro-1.1-ultra",
}

RESULT_PATH = "get_result"

KEY_FILE = "config/flux.key"


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/flux.key` -> `FLUX_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip()


@dataclass(frozen=True)
class FluxConfig:
    """Runtime configuration for the FLUX client and its adapters.

    Relevant environment variables:
        - `FLUX_API_KEY` (or `config/flux.key`)
        - `FLUX_BASE_URL`
        - `FLUX_POLL_INTERVAL_SECONDS`
        - `FLUX_MAX_POLL_ATTEMPTS`
        - `FLUX_TIMEOUT_SECONDS`
        - `FLUX_OUTPUT_DIR`
    """

    api_key: str = (load_key(KEY_FILE) or "").strip()
    base_url: str = os.getenv("FLUX_BASE_URL", DEFAULT_BASE_URL).strip()
    poll_interval_seconds: float = float(os.getenv("FLUX_POLL_INTERVAL_SECONDS", "10"))
    max_poll_attempts: int = int(os.getenv("FLUX_MAX_POLL_ATTEMPTS", "60"))
    timeout_seconds: float = float(os.getenv("FLUX_TIMEOUT_SECONDS", "30"))
    output_dir: str = os.getenv("FLUX_OUTPUT_DIR", "output").strip()
