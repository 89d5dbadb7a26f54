from __future__ import annotations
import os, json, pathlib, logging

log = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_json_dict(name: str) -> dict[str, str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        log.warning("ignoring %s: not valid JSON", name)
        return {}
    if not isinstance(data, dict):
        log.warning("ignoring %s: expected a JSON object", name)
        return {}
    return {str(k): str(v) for k, v in data.items()}


# risk banding on the latest normalized score (higher = more distress)
RISK_HIGH_MIN: float = 70.0
RISK_MODERATE_MIN: float = 40.0

# |change| below this is reported as a stable trend
TREND_STABLE_BAND: float = 5.0

# out-of-range / non-numeric answers: clamp into the scale, or reject
CLAMP_OUT_OF_RANGE: bool = True
REJECT_UNKNOWN_KEYS: bool = False

POLARITIES: tuple[str, ...] = ("distress", "wellbeing", "exclude")
COMPOSITE_DEFAULT_POLARITY: str = "distress"
COMPOSITE_POLARITY: dict[str, str] = {}

DEFINITIONS_PATH: str | None = None

ALLOWED_ORIGINS: tuple[str, ...] = ("http://localhost:3000",)
LOG_LEVEL: str = "INFO"

# // env overrides for ops; defaults match the published scoring rules.
RISK_HIGH_MIN = _env_float("RISK_HIGH_MIN", RISK_HIGH_MIN)
RISK_MODERATE_MIN = _env_float("RISK_MODERATE_MIN", RISK_MODERATE_MIN)
TREND_STABLE_BAND = _env_float("TREND_STABLE_BAND", TREND_STABLE_BAND)
CLAMP_OUT_OF_RANGE = _env_bool("CLAMP_OUT_OF_RANGE", CLAMP_OUT_OF_RANGE)
REJECT_UNKNOWN_KEYS = _env_bool("REJECT_UNKNOWN_KEYS", REJECT_UNKNOWN_KEYS)
COMPOSITE_DEFAULT_POLARITY = os.getenv("COMPOSITE_DEFAULT_POLARITY", COMPOSITE_DEFAULT_POLARITY).strip().lower()
COMPOSITE_POLARITY = {k: v.strip().lower() for k, v in _env_json_dict("COMPOSITE_POLARITY").items()}
DEFINITIONS_PATH = os.getenv("WELLBEING_DEFINITIONS_PATH") or None
LOG_LEVEL = os.getenv("LOG_LEVEL", LOG_LEVEL).upper()

if COMPOSITE_DEFAULT_POLARITY not in POLARITIES:
    log.warning("unknown COMPOSITE_DEFAULT_POLARITY %r; using distress", COMPOSITE_DEFAULT_POLARITY)
    COMPOSITE_DEFAULT_POLARITY = "distress"


def clean_polarity_table(table: dict[str, str], source: str = "COMPOSITE_POLARITY") -> dict[str, str]:
    """Entries with a recognised polarity; anything else is dropped with a warning."""
    out: dict[str, str] = {}
    for key, pol in table.items():
        p = str(pol).strip().lower()
        if p not in POLARITIES:
            log.warning("dropping %s[%s]=%r", source, key, pol)
            continue
        out[key] = p
    return out


COMPOSITE_POLARITY = clean_polarity_table(COMPOSITE_POLARITY)


def load_config(path: str = "config.json") -> dict:
    """Settings for the HTTP adapter: optional JSON file, then environment."""
    cfg: dict = {"ALLOWED_ORIGINS": list(ALLOWED_ORIGINS), "LOG_LEVEL": LOG_LEVEL}
    p = pathlib.Path(path)
    if p.exists():
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except ValueError:
            log.warning("ignoring malformed %s", p)
            data = {}
        if isinstance(data, dict):
            cfg.update(data)
    e = os.environ
    if e.get("ALLOWED_ORIGINS"):
        cfg["ALLOWED_ORIGINS"] = [o.strip() for o in e["ALLOWED_ORIGINS"].split(",") if o.strip()]
    if e.get("LOG_LEVEL"):
        cfg["LOG_LEVEL"] = e["LOG_LEVEL"].upper()
    return cfg
