"""Escrow contract artifact: ABI shipped with the package, bytecode from the build output."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from src.escrow.core.config import get_settings
from src.escrow.core.exceptions import ConfigurationError

ABI_PATH = Path(__file__).parent / "abi" / "escrow.json"


@lru_cache
def load_escrow_abi() -> list[dict[str, Any]]:
    with ABI_PATH.open(encoding="utf-8") as fh:
        abi: list[dict[str, Any]] = json.load(fh)
    return abi


def load_escrow_bytecode(artifact_path: str | None = None) -> str:
    """Read deployable bytecode from the compiled artifact (`{"abi", "bytecode"}`).

    Raises:
        ConfigurationError: artifact path unset, unreadable or without bytecode
    """
    path = artifact_path or get_settings().escrow_artifact_path
    if not path:
        raise ConfigurationError("ESCROW_ARTIFACT_PATH is not set.")

    try:
        artifact = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Escrow artifact could not be read: {e}") from e

    bytecode = artifact.get("bytecode") if isinstance(artifact, dict) else None
    if not bytecode:
        raise ConfigurationError("Escrow artifact has no bytecode.")
    if not bytecode.startswith("0x"):
        bytecode = f"0x{bytecode}"
    return str(bytecode)
