"""Configuration dataclasses for the research orchestration engine.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations.  Configs are **frozen** so a single
instance can be shared by every stage of a run without risking silent
mutation.

Values can come from keyword arguments, a dict (``from_dict``), the process
environment (``from_env``) or a JSON / YAML file (:func:`load_config`).
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from deep_research.domain.exceptions import ConfigurationError

_ENV_PREFIX = "DEEP_RESEARCH_"

MIN_DEPTH = 1
MAX_DEPTH = 5


# ===================================================================== #
#  Research Configuration                                                #
# ===================================================================== #

@dataclass(frozen=True)
class ResearchConfig:
    """Parameters governing one research run.

    Attributes
    ----------
    max_tools_per_round:
        Upper bound on the tools selected in a single round.
    max_retries:
        Retries per tool call after the first attempt.
    retry_base_delay:
        Backoff base in seconds; attempt *n* waits ``base * 2**n``.
    tool_timeout:
        Per-attempt timeout for a tool call, ``None`` to disable.
    llm_timeout:
        Timeout for a single reasoning-service call, ``None`` to disable.
    deadline:
        Overall time budget for a run in seconds, ``None`` to disable.
        Once exceeded no further round is started.
    cache_ttl:
        Lifetime of cached successful tool results, in seconds.
    relevance_batch_size:
        Result count above which relevance and gap assessment are batched.
    max_concurrent_batches:
        How many assessment batches may talk to the reasoning service at once.
    diversity_threshold:
        Survivor count above which the extra diversity pass runs.
    gap_sample_size:
        Size of the final gap-analysis sample (defaults to the batch size).
    allow_tool_reuse:
        If ``True``, follow-up rounds may reuse tools from earlier rounds.
        A tool is never selected twice within one round either way.
    min_tool_score:
        Tools scoring below this are not offered as candidates.
    random_seed:
        Seed for the gap-analysis diversity sample.
    """

    max_tools_per_round: int = 3
    max_retries: int = 2
    retry_base_delay: float = 1.0
    tool_timeout: float | None = 30.0
    llm_timeout: float | None = 60.0
    deadline: float | None = None
    cache_ttl: float = 86400.0
    relevance_batch_size: int = 10
    max_concurrent_batches: int = 3
    diversity_threshold: int = 10
    gap_sample_size: int | None = None
    allow_tool_reuse: bool = False
    min_tool_score: float = 0.0
    random_seed: int | None = None

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if self.max_tools_per_round < 1:
            raise ValueError(
                f"max_tools_per_round must be >= 1, got {self.max_tools_per_round}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_base_delay < 0:
            raise ValueError(
                f"retry_base_delay must be >= 0, got {self.retry_base_delay}"
            )
        for name in ("tool_timeout", "llm_timeout", "deadline"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be > 0 or None, got {value}")
        if self.cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be > 0, got {self.cache_ttl}")
        if self.relevance_batch_size < 1:
            raise ValueError(
                f"relevance_batch_size must be >= 1, got {self.relevance_batch_size}"
            )
        if self.max_concurrent_batches < 1:
            raise ValueError(
                f"max_concurrent_batches must be >= 1, got {self.max_concurrent_batches}"
            )
        if self.diversity_threshold < 1:
            raise ValueError(
                f"diversity_threshold must be >= 1, got {self.diversity_threshold}"
            )
        if self.gap_sample_size is not None and self.gap_sample_size < 1:
            raise ValueError(
                f"gap_sample_size must be >= 1 or None, got {self.gap_sample_size}"
            )
        if not (0.0 <= self.min_tool_score <= 1.0):
            raise ValueError(
                f"min_tool_score must be in [0, 1], got {self.min_tool_score}"
            )

    @property
    def effective_gap_sample_size(self) -> int:
        return self.gap_sample_size or self.relevance_batch_size

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResearchConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ResearchConfig:
        """Build a config from ``DEEP_RESEARCH_*`` environment variables.

        ``DEEP_RESEARCH_MAX_RETRIES=4`` sets ``max_retries``; the literal
        ``none`` clears an optional field.  Unset variables keep defaults.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            data[f.name] = _coerce(f.name, raw)
        return cls.from_dict(data)


_OPTIONAL_FIELDS = frozenset(
    {"tool_timeout", "llm_timeout", "deadline", "gap_sample_size", "random_seed"}
)


def _coerce(name: str, raw: str) -> Any:
    value = raw.strip()
    if value.lower() in ("none", "null", ""):
        if name in _OPTIONAL_FIELDS:
            return None
        raise ValueError(
            f"{_ENV_PREFIX}{name.upper()} must be set to a value, got {raw!r}"
        )
    if name in ("allow_tool_reuse",):
        return value.lower() in ("1", "true", "yes", "on")
    if name in (
        "max_tools_per_round",
        "max_retries",
        "relevance_batch_size",
        "max_concurrent_batches",
        "diversity_threshold",
        "gap_sample_size",
        "random_seed",
    ):
        return int(value)
    return float(value)


def clamp_depth(depth: int) -> int:
    """Clamp a requested research depth into ``[MIN_DEPTH, MAX_DEPTH]``."""
    return max(MIN_DEPTH, min(MAX_DEPTH, int(depth)))


# ===================================================================== #
#  Credentials                                                           #
# ===================================================================== #

@dataclass(frozen=True)
class ToolCredentials:
    """API keys for the built-in tools.

    Tools without a key still register; they answer ``success=False`` with a
    "missing credentials" error instead of calling upstream.
    """

    brave_api_key: str = ""
    stack_exchange_key: str = ""

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ToolCredentials:
        env = os.environ if environ is None else environ
        return cls(
            brave_api_key=env.get("BRAVE_API_KEY", ""),
            stack_exchange_key=env.get("STACK_EXCHANGE_KEY", ""),
        )

    def __repr__(self) -> str:
        # keys never end up in logs
        present = [f.name for f in fields(self) if getattr(self, f.name)]
        return f"ToolCredentials(configured={present})"


# ===================================================================== #
#  File loader                                                           #
# ===================================================================== #

def load_config(path: str | Path) -> ResearchConfig:
    """Load a :class:`ResearchConfig` from a JSON or YAML file.

    The file may either hold the config fields at the top level or nest them
    under a ``research`` key.

    Raises
    ------
    ConfigurationError
        If the file is missing, unparseable, or not a mapping.
    ValueError
        If a field value is out of range.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file: {exc}", path=str(p)) from exc

    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot parse config file: {exc}", path=str(p)) from exc

    if not isinstance(raw, dict):
        raise ConfigurationError("Top-level config must be a mapping", path=str(p))
    section = raw.get("research", raw)
    if not isinstance(section, dict):
        raise ConfigurationError("'research' section must be a mapping", path=str(p))
    return ResearchConfig.from_dict(section)
