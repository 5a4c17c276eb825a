"""
Parser options and YAML I/O for comtrade-cfg.

The CFG grammar leaves a few behaviours open (what to do with an unknown
revision year, how many sample-rate lines follow a declared rate count of
zero, whether to cross-check the channel totals). They are collected in
``ParserOptions`` so a caller can pick a policy per data source and keep
it in a small YAML file next to the recordings.

Key functions:
- load_options(path) -> ParserOptions: Load and validate from YAML.
- save_options(options, path): Serialize to YAML.

Defaults reproduce the reference behaviour: unknown revisions are
reported as unrecognised lines, a zero rate count consumes no segment
line, and the channel totals are not checked.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from comtrade_cfg.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)


class ParserOptions(BaseModel):
    """Policy switches for the CFG parser."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    encoding: str = Field(
        "utf-8-sig", description="Text encoding used when reading CFG files"
    )
    unknown_revision: Literal["ignore", "error"] = Field(
        "ignore",
        description=(
            "'ignore' reports an unknown revision year on the header line as an "
            "unrecognised line; 'error' raises UnknownRevisionError"
        ),
    )
    zero_rate_segments: Literal["preserve", "placeholder"] = Field(
        "preserve",
        description=(
            "When the rate count is 0: 'preserve' consumes no sample-rate line, "
            "'placeholder' consumes exactly one"
        ),
    )
    check_channel_totals: bool = Field(
        False,
        description="If True, reject files whose total != analog + status channels",
    )


def load_options(path: str | Path) -> ParserOptions:
    """Load and validate a parser options YAML file.

    Raises:
        FileNotFoundError: If the options file does not exist.
        ConfigValidationError: If the file is empty or not a mapping.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Options file is empty: {path}")
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Options file must contain a mapping, got {type(raw).__name__}: {path}"
        )
    logger.info("Loaded parser options from %s", path)
    return ParserOptions.model_validate(raw)


def save_options(options: ParserOptions, path: str | Path) -> None:
    """Serialize ParserOptions to YAML with a header comment."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = options.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# comtrade-cfg parser options\n\n")
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    logger.info("Saved parser options to %s", path)
