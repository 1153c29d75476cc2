# services/content/loader.py
from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from models.content import Bonus, Effect, NamedMove
from models.monster import STAT_KEYS, Species

LIST_SEP = "|"


def read_csv(path: Path) -> List[Dict[str, str]]:
    with path.open("r", encoding="utf-8", newline="") as fh:
        reader = csv.DictReader(fh)
        rows: List[Dict[str, str]] = []
        for row in reader:
            clean = {
                (k or "").strip(): (v or "").strip()
                for k, v in row.items()
                if k is not None
            }
            if any(clean.values()):
                rows.append(clean)
        return rows


def _opt_float(raw: str) -> Optional[float]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _opt_int(raw: str) -> Optional[int]:
    val = _opt_float(raw)
    return int(val) if val is not None else None


def _as_bool(raw: str) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "y", "t")


def _split(raw: str) -> List[str]:
    return [p.strip() for p in (raw or "").split(LIST_SEP) if p.strip()]


def _unique_by_code(rows: List[Dict[str, str]], kind: str) -> List[Dict[str, str]]:
    """
    Порожній code -> пропуск; дублікати -> перший виграє (стабільний порядок).
    """
    seen: set[str] = set()
    out: List[Dict[str, str]] = []
    for row in rows:
        code = row.get("code", "")
        if not code:
            logger.warning("content: {} row without code skipped: {}", kind, row)
            continue
        if code in seen:
            logger.warning("content: duplicate {} code {} skipped", kind, code)
            continue
        seen.add(code)
        out.append(row)
    return out


def parse_effects(rows: List[Dict[str, str]]) -> List[Effect]:
    effects: List[Effect] = []
    for row in _unique_by_code(rows, "effect"):
        target = (row.get("target") or "target").lower()
        if target not in ("self", "target"):
            logger.warning("content: effect {} has unknown target {}, using 'target'", row["code"], target)
            target = "target"
        effects.append(
            Effect(
                code=row["code"],
                name=row.get("name") or None,
                target=target,
                accuracy=_opt_float(row.get("accuracy", "")),
                effect_type=(row.get("effect_type") or "damage").lower(),
                stat=row.get("stat") or None,
                amount=_opt_float(row.get("amount", "")),
                base_flag_eligible=_as_bool(row.get("base_flag_eligible", "")),
                base_pp=_opt_int(row.get("base_pp", "")),
            )
        )
    return effects


def parse_bonuses(rows: List[Dict[str, str]]) -> List[Bonus]:
    return [
        Bonus(
            code=row["code"],
            name=row.get("name") or None,
            value_type=(row.get("value_type") or "tag").lower(),
            value=_opt_float(row.get("value", "")),
        )
        for row in _unique_by_code(rows, "bonus")
    ]


def parse_named_moves(rows: List[Dict[str, str]]) -> List[NamedMove]:
    out: List[NamedMove] = []
    for row in rows:
        stack = _split(row.get("stack_effects", ""))
        if not row.get("name") or not stack:
            logger.warning("content: named move row skipped: {}", row)
            continue
        out.append(
            NamedMove(
                name=row["name"],
                stack_effects=stack,
                stack_bonuses=_split(row.get("stack_bonuses", "")),
                power=_opt_float(row.get("power", "")),
                accuracy=_opt_float(row.get("accuracy", "")),
                priority=_opt_int(row.get("priority", "")) or 0,
            )
        )
    return out


def parse_species(rows: List[Dict[str, str]]) -> List[Species]:
    out: List[Species] = []
    seen: set[int] = set()
    for row in rows:
        sid = _opt_int(row.get("id", ""))
        if sid is None or not row.get("name"):
            logger.warning("content: species row skipped: {}", row)
            continue
        if sid in seen:
            logger.warning("content: duplicate species id {} skipped", sid)
            continue
        seen.add(sid)
        out.append(
            Species(
                id=sid,
                name=row["name"],
                base={k: _opt_int(row.get(k, "")) or 1 for k in STAT_KEYS},
                biomes=_split(row.get("biomes", "")),
                types=_split(row.get("types", "")),
                spawn_rate=_opt_float(row.get("spawn_rate", "")) or 0.0,
            )
        )
    return out


def load_all_content(content_dir: str | Path) -> Dict[str, Any]:
    """
    effects.csv / bonuses.csv / moves_named.csv / species.csv.
    Відсутній файл -> порожня таблиця, відсутня папка -> помилка.
    """
    base = Path(content_dir)
    if not base.is_dir():
        raise FileNotFoundError(f"Content directory not found: {base}")

    def _rows(name: str) -> List[Dict[str, str]]:
        path = base / name
        if not path.is_file():
            logger.info("content: {} missing, using empty table", name)
            return []
        return read_csv(path)

    out = {
        "effects": parse_effects(_rows("effects.csv")),
        "bonuses": parse_bonuses(_rows("bonuses.csv")),
        "named_moves": parse_named_moves(_rows("moves_named.csv")),
        "species": parse_species(_rows("species.csv")),
    }
    logger.info(
        "content: loaded effects={} bonuses={} named_moves={} species={} from {}",
        len(out["effects"]),
        len(out["bonuses"]),
        len(out["named_moves"]),
        len(out["species"]),
        base,
    )
    return out
