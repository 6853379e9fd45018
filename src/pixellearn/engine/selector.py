"""Non-repeating question selection with graceful degradation.

Fresh content first, then any content from the pool, then a fallback
question. Content exhaustion and absence are never errors; a bank that
fails to load a pool raises ``QuestionBankError`` for the caller to retry.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from pixellearn.config.settings import UsedQuestionScope
from pixellearn.engine.question_bank import QuestionBank
from pixellearn.engine.questions import QuestionRecord, Subject, fallback_question

logger = logging.getLogger(__name__)


async def select_question(
    bank: QuestionBank,
    subject: Subject,
    level: int,
    used_ids: frozenset[str],
    rng: Optional[random.Random] = None,
) -> tuple[QuestionRecord, frozenset[str]]:
    """Pick one question and return it with the updated used-id set."""
    rng = rng or random.Random()
    pool = await bank.pool(subject, level)

    unused = [q for q in pool if q.id not in used_ids]
    if unused:
        question = rng.choice(unused)
        return question, used_ids | {question.id}

    if pool:
        logger.debug("Pool %s/%d exhausted, reusing questions", subject.value, level)
        return rng.choice(pool), used_ids

    logger.info("No %s content for level %d, serving fallback", subject.value, level)
    return fallback_question(subject, level), used_ids


@dataclass
class SelectionState:
    used_ids: frozenset[str] = field(default_factory=frozenset)


class QuestionSelector:
    """Tracks shown questions within a scope and hands out the next one.

    With ``UsedQuestionScope.SESSION`` the used set is cleared whenever a
    quiz session begins; with ``GLOBAL`` it lives until an explicit
    ``reset_used_questions()``.
    """

    def __init__(
        self,
        bank: QuestionBank,
        scope: UsedQuestionScope = UsedQuestionScope.GLOBAL,
        rng: Optional[random.Random] = None,
    ):
        self.bank = bank
        self.scope = scope
        self.rng = rng or random.Random()
        self.state = SelectionState()

    async def select(self, subject: Subject, level: int) -> QuestionRecord:
        question, self.state.used_ids = await select_question(
            self.bank, subject, level, self.state.used_ids, self.rng
        )
        return question

    def begin_session(self) -> None:
        if self.scope is UsedQuestionScope.SESSION:
            self.reset_used_questions()

    def reset_used_questions(self) -> None:
        self.state.used_ids = frozenset()
