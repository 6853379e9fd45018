"""YAML/JSON question file parser for PixelLearn."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from pixellearn.engine.questions import QuestionRecord, Subject

logger = logging.getLogger(__name__)

CONTENT_SUFFIXES = (".yaml", ".yml", ".json")


class ContentError(ValueError):
    """A question file could not be parsed."""


@dataclass
class QuestionFile:
    subject: Subject
    path: Path
    questions: list[QuestionRecord] = field(default_factory=list)

    def for_level(self, level: int) -> list[QuestionRecord]:
        return [q for q in self.questions if q.level == level]


def _parse_levels(raw: dict, where: str) -> list[int]:
    """An entry names one ``level`` or an inclusive ``levels: "a-b"`` range."""
    if "level" in raw:
        return [int(raw["level"])]
    span = raw.get("levels")
    if span is None:
        raise ContentError(f"{where}: missing 'level' or 'levels'")
    if isinstance(span, int):
        return [span]
    try:
        lo, hi = (int(p) for p in str(span).split("-", 1))
    except ValueError:
        raise ContentError(f"{where}: bad levels range {span!r}") from None
    if hi < lo:
        raise ContentError(f"{where}: empty levels range {span!r}")
    return list(range(lo, hi + 1))


def _parse_entry(raw: dict, subject: Subject, stem: str, idx: int) -> list[QuestionRecord]:
    where = f"{stem}[{idx}]"
    if not isinstance(raw, dict):
        raise ContentError(f"{where}: expected a mapping")
    # Exported banks use correctIndex; hand-written files use answer
    answer = raw.get("answer", raw.get("correctIndex"))
    if answer is None or "text" not in raw or "options" not in raw:
        raise ContentError(f"{where}: needs text, options and answer")

    levels = _parse_levels(raw, where)
    base_id = str(raw.get("id") or f"{stem}-{idx:04d}")
    records = []
    for level in levels:
        try:
            records.append(QuestionRecord(
                id=base_id if len(levels) == 1 else f"{base_id}-l{level}",
                subject=subject,
                level=level,
                text=raw["text"],
                options=tuple(str(o) for o in raw["options"]),
                correct_index=int(answer),
                explanation=raw.get("explanation"),
            ))
        except ValueError as e:
            raise ContentError(f"{where}: {e}") from e
    return records


def load_question_file(path: Path) -> QuestionFile:
    """Load one question file. JSON is parsed by the YAML loader."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "questions" not in data:
        raise ContentError(f"{path.name}: expected a mapping with 'questions'")

    raw_questions = data["questions"] or []
    subject_raw = data.get("subject")
    if subject_raw is None and raw_questions:
        subject_raw = raw_questions[0].get("subject")
    if subject_raw is None:
        raise ContentError(f"{path.name}: missing 'subject'")
    try:
        subject = Subject.parse(subject_raw)
    except ValueError as e:
        raise ContentError(f"{path.name}: {e}") from e

    qfile = QuestionFile(subject=subject, path=path)
    for idx, raw in enumerate(raw_questions):
        qfile.questions.extend(_parse_entry(raw, subject, path.stem, idx))
    return qfile


def discover_question_files(content_dir: Optional[Path]) -> list[Path]:
    if content_dir is None or not content_dir.is_dir():
        return []
    return sorted(
        p for p in content_dir.iterdir()
        if p.is_file() and p.suffix in CONTENT_SUFFIXES
    )


def bundled_content_dir() -> Path:
    return Path(__file__).parent.parent / "content"
