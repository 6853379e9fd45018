"""Per-(subject, level) question pools, materialized lazily and exactly once."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional, Protocol

from pixellearn.config.settings import Settings
from pixellearn.engine.content_loader import (
    QuestionFile,
    bundled_content_dir,
    discover_question_files,
    load_question_file,
)
from pixellearn.engine.generators import generate_math_questions
from pixellearn.engine.questions import QuestionRecord, Subject

logger = logging.getLogger(__name__)


class QuestionBankError(RuntimeError):
    """A pool could not be materialized. Retrying may succeed."""


class QuestionSource(Protocol):
    def load(self, subject: Subject, level: int) -> list[QuestionRecord]: ...


def _unique_ids(questions: list[QuestionRecord], seen: set[str]) -> list[QuestionRecord]:
    """Rename questions whose id an earlier file already used."""
    unique = []
    for q in questions:
        qid, n = q.id, 1
        while qid in seen:
            n += 1
            qid = f"{q.id}-{n}"
        seen.add(qid)
        unique.append(q if qid == q.id else replace(q, id=qid))
    return unique


class ContentSource:
    """Math is generated; grammar and spelling come from question files.

    Memory has no question content, so its pools are always empty.
    """

    def __init__(
        self,
        content_dirs: Optional[list[Path]] = None,
        questions_per_level: int = 100,
    ):
        self.content_dirs = content_dirs if content_dirs is not None else [bundled_content_dir()]
        self.questions_per_level = questions_per_level
        self._files: Optional[list[QuestionFile]] = None
        self._files_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentSource":
        dirs = [bundled_content_dir()]
        if settings.content.content_dir is not None:
            dirs.append(settings.content.content_dir)
        return cls(content_dirs=dirs, questions_per_level=settings.content.questions_per_level)

    def _question_files(self) -> list[QuestionFile]:
        with self._files_lock:
            if self._files is None:
                files = []
                seen: set[str] = set()
                for directory in self.content_dirs:
                    for path in discover_question_files(directory):
                        qfile = load_question_file(path)
                        qfile.questions = _unique_ids(qfile.questions, seen)
                        files.append(qfile)
                        logger.debug("Loaded question file %s", path)
                self._files = files
            return self._files

    def load(self, subject: Subject, level: int) -> list[QuestionRecord]:
        if subject is Subject.MEMORY:
            return []

        questions: list[QuestionRecord] = []
        for qfile in self._question_files():
            if qfile.subject is subject:
                questions.extend(qfile.for_level(level))
        questions = questions[: self.questions_per_level]
        # Generated math fills whatever room the question files leave
        room = self.questions_per_level - len(questions)
        if subject is Subject.MATH and room > 0:
            questions.extend(generate_math_questions(level, limit=room))
        return questions


class QuestionBank:
    """Caches pools per key; concurrent first requests share one load."""

    def __init__(self, source: Optional[QuestionSource] = None):
        self.source = source or ContentSource()
        self._pools: dict[tuple[Subject, int], list[QuestionRecord]] = {}
        self._inflight: dict[tuple[Subject, int], asyncio.Future] = {}
        self._lock = asyncio.Lock()

    def is_loaded(self, subject: Subject, level: int) -> bool:
        return (subject, level) in self._pools

    def clear(self) -> None:
        self._pools.clear()

    async def pool(self, subject: Subject, level: int) -> list[QuestionRecord]:
        key = (subject, level)
        async with self._lock:
            if key in self._pools:
                return list(self._pools[key])
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = asyncio.get_running_loop().create_future()
                self._inflight[key] = future

        if not owner:
            return list(await asyncio.shield(future))

        try:
            questions = await asyncio.to_thread(self.source.load, subject, level)
        except Exception as e:
            logger.warning("Question pool %s/%d failed to load: %s", subject.value, level, e)
            error = QuestionBankError(f"Unable to load {subject.value} questions for level {level}")
            self._settle(key, future, error=error)
            raise error from e
        except asyncio.CancelledError:
            # Waiters get a retryable error; the next caller starts a fresh load
            self._settle(key, future, error=QuestionBankError(
                f"Loading {subject.value} questions for level {level} was cancelled"))
            raise

        self._settle(key, future, questions=questions)
        logger.debug("Materialized %s/%d with %d questions", subject.value, level, len(questions))
        return list(questions)

    def _settle(
        self,
        key: tuple[Subject, int],
        future: asyncio.Future,
        questions: Optional[list[QuestionRecord]] = None,
        error: Optional[QuestionBankError] = None,
    ) -> None:
        """Resolve an in-flight load and drop it from ``_inflight``."""
        self._inflight.pop(key, None)
        if error is not None:
            future.set_exception(error)
            future.exception()  # waiters re-raise it; no "never retrieved" warning
            return
        self._pools[key] = questions
        future.set_result(questions)


def export_question_bank(
    source: QuestionSource, out_dir: Path, levels: range
) -> dict[Subject, int]:
    """Write one ``<subject>_questions.json`` per subject that has content."""
    out_dir.mkdir(parents=True, exist_ok=True)
    counts: dict[Subject, int] = {}
    for subject in Subject:
        questions = [q.to_dict() for level in levels for q in source.load(subject, level)]
        if not questions:
            continue
        path = out_dir / f"{subject.value}_questions.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"questions": questions}, f, indent=2, sort_keys=True, ensure_ascii=False)
        counts[subject] = len(questions)
        logger.info("Wrote %d %s questions to %s", len(questions), subject.value, path)
    return counts
