from __future__ import annotations

import csv
import json
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import ParseError
from .generator import GRID_SIZES, BingoCard
from .uniqueness import cards_hash, has_duplicate_words, words_hash


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


def _refuse_overwrite(path: Path, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file without --force: {path}")


def check_targets(paths: Sequence[Path], *, mkdirs: bool, overwrite: bool) -> None:
    """Fail before anything is written if any target would be refused."""
    for path in paths:
        _refuse_overwrite(path, overwrite)
        if not mkdirs and not path.parent.exists():
            raise FileNotFoundError(f"Output directory does not exist: {path.parent}")


def write_json(path: Path, data: object, *, mkdirs: bool, overwrite: bool) -> None:
    _refuse_overwrite(path, overwrite)
    ensure_parent(path, mkdirs=mkdirs)
    text = json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def write_outputs(
    out_dir: Path, outputs: Sequence[Tuple[str, bytes]], *, mkdirs: bool, overwrite: bool
) -> List[Path]:
    """Write export results; all targets are checked before the first write."""
    targets = [out_dir / name for name, _ in outputs]
    check_targets(targets, mkdirs=mkdirs, overwrite=overwrite)
    if mkdirs:
        out_dir.mkdir(parents=True, exist_ok=True)
    for path, (_, data) in zip(targets, outputs):
        path.write_bytes(data)
    return targets


def build_run_meta(
    *,
    app_version: str,
    params_hash: str,
    seed: Optional[int],
    rng_engine: str,
) -> Dict[str, object]:
    return {
        "app_version": app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "python_version": sys.version.split()[0],
        "platform": platform.system().lower(),
        "params_hash": params_hash,
        "seed": seed,
        "rng_engine": rng_engine,
        "hash_algorithm": "sha256",
    }


def emit_cards_json(
    path: Path,
    *,
    cards: Sequence[BingoCard],
    pool: Sequence[str],
    run_meta: Dict[str, object],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    entries: List[Dict[str, object]] = []
    for card in cards:
        entries.append(
            {
                "id": card.id,
                "grid_size": card.grid_size,
                "words": list(card.words),
                "words_hash": words_hash(card.words),
            }
        )
    data = {
        "run_meta": run_meta,
        "pool": list(pool),
        "cards": entries,
        "cards_hash": cards_hash(card.words for card in cards),
    }
    write_json(path, data, mkdirs=mkdirs, overwrite=overwrite)


def _card_from_entry(entry: Dict[str, object]) -> BingoCard:
    card = BingoCard(
        id=str(entry["id"]),
        words=tuple(str(w) for w in entry["words"]),
        grid_size=int(entry["grid_size"]),
    )
    if card.grid_size not in GRID_SIZES:
        raise ValueError(f"{card.id}: unsupported grid size {card.grid_size}")
    if len(card.words) != card.grid_size * card.grid_size:
        raise ValueError(f"{card.id}: expected {card.grid_size ** 2} words, found {len(card.words)}")
    if has_duplicate_words(card.words):
        raise ValueError(f"{card.id}: a word appears twice on the card")
    return card


def load_cards_json(path: Path) -> Tuple[List[BingoCard], List[str]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        cards = [_card_from_entry(entry) for entry in data["cards"]]
        pool = [str(w) for w in data.get("pool", [])]
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise ParseError(f"Cannot read cards file {path}: {e}") from e
    return cards, pool


def emit_summary_csv(
    path: Path,
    *,
    freqs: Dict[str, int],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    _refuse_overwrite(path, overwrite)
    ensure_parent(path, mkdirs=mkdirs)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["word", "cards"])
        for word in sorted(freqs, key=lambda w: (-freqs[w], w.casefold())):
            writer.writerow([word, freqs[word]])
