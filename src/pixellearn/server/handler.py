"""Server handler: dispatches JSON-lines requests to the quiz engine."""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Union

from pixellearn.config.settings import Settings
from pixellearn.engine.adaptive import AdaptiveLevelPolicy
from pixellearn.engine.question_bank import ContentSource, QuestionBank
from pixellearn.engine.questions import Subject
from pixellearn.engine.quiz_controller import QuizSessionController
from pixellearn.engine.selector import QuestionSelector
from pixellearn.engine.session import SessionEvent
from pixellearn.state.profiles import ProfileStore

from .protocol import Notification, Request

logger = logging.getLogger(__name__)


class ServerHandler:
    """Routes incoming requests to the session controller and profile store."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        bank: Optional[QuestionBank] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.policy = AdaptiveLevelPolicy.from_settings(self.settings)
        self.profiles = ProfileStore(
            db_path=self.settings.data_dir / "profiles.db",
            min_level=self.policy.min_level,
            max_level=self.policy.max_level,
        )
        self.bank = bank or QuestionBank(ContentSource.from_settings(self.settings))
        self.selector = QuestionSelector(
            self.bank,
            scope=self.settings.used_question_scope,
            rng=random.Random(self.settings.content.seed),
        )
        self.controller = QuizSessionController(
            self.selector, self.policy, on_event=self._publish
        )
        self._profile_id: Optional[int] = None

    def _publish(self, event: SessionEvent) -> None:
        self._write_notification(Notification(event.name, event.to_dict()))

    async def dispatch(self, msg: Union[Request, dict]) -> dict:
        """Route a request message to the appropriate handler method."""
        request = msg if isinstance(msg, Request) else Request.from_dict(msg)

        handler_map = {
            "listSubjects": self._list_subjects,
            "listProfiles": self._list_profiles,
            "createProfile": self._create_profile,
            "startSession": self._start_session,
            "getQuestion": self._get_question,
            "retryLoad": self._retry_load,
            "submitAnswer": self._submit_answer,
            "timeOut": self._time_out,
            "continue": self._continue,
            "getProgress": self._get_progress,
            "endSession": self._end_session,
            "resetUsedQuestions": self._reset_used_questions,
        }

        handler = handler_map.get(request.method)
        if handler is None:
            raise ValueError(f"Unknown method: {request.method}")

        return await handler(request.params)

    def _snapshot(self) -> dict:
        c = self.controller
        return {
            "state": c.state.value,
            "question": c.current_question.to_dict() if c.current_question else None,
            "isLoading": c.is_loading,
            "loadError": c.load_error,
            "lastResult": c.last_result.to_dict() if c.last_result else None,
            "progress": c.progress.to_dict(),
        }

    def _require_session(self) -> None:
        if self.controller.session is None:
            raise ValueError("No active session")

    async def _list_subjects(self, params: dict) -> dict:
        return {
            "subjects": [{"id": s.value, "name": s.display_name} for s in Subject],
            "minLevel": self.policy.min_level,
            "maxLevel": self.policy.max_level,
        }

    async def _list_profiles(self, params: dict) -> dict:
        return {"profiles": [p.to_dict() for p in self.profiles.list_profiles()]}

    async def _create_profile(self, params: dict) -> dict:
        profile = self.profiles.create_profile(params["name"], params.get("avatar", "person.fill"))
        return {"profile": profile.to_dict()}

    async def _start_session(self, params: dict) -> dict:
        subject = Subject.parse(params["subject"])
        profile_id = params.get("profileId")
        if profile_id is not None and self.profiles.get_profile(profile_id) is None:
            raise ValueError(f"Unknown profile: {profile_id}")

        level = params.get("level")
        if level is None:
            level = (
                self.profiles.get_level(profile_id, subject)
                if profile_id is not None
                else self.policy.min_level
            )

        self._profile_id = profile_id
        await self.controller.start_session(subject, int(level))
        return self._snapshot()

    async def _get_question(self, params: dict) -> dict:
        return self._snapshot()

    async def _retry_load(self, params: dict) -> dict:
        self._require_session()
        await self.controller.load_question()
        return self._snapshot()

    async def _submit_answer(self, params: dict) -> dict:
        self._require_session()
        result = self.controller.submit_answer(
            int(params["selectedIndex"]), int(params.get("responseTimeMs", 0))
        )
        return {"result": result.to_dict(), "progress": self.controller.progress.to_dict()}

    async def _time_out(self, params: dict) -> dict:
        self._require_session()
        result = self.controller.time_out(int(params.get("responseTimeMs", 0)))
        return {"result": result.to_dict(), "progress": self.controller.progress.to_dict()}

    async def _continue(self, params: dict) -> dict:
        self._require_session()
        await self.controller.continue_after_result()
        return self._snapshot()

    async def _get_progress(self, params: dict) -> dict:
        return {"progress": self.controller.progress.to_dict()}

    async def _end_session(self, params: dict) -> dict:
        session = self.controller.end_session()
        if session is None:
            return {"session": None}
        if self._profile_id is not None:
            self.profiles.record_session(self._profile_id, session)
            logger.info("Saved %s level %d for profile %d",
                        session.subject.value, session.current_level, self._profile_id)
        self._profile_id = None
        return {"session": session.to_dict()}

    async def _reset_used_questions(self, params: dict) -> dict:
        self.selector.reset_used_questions()
        return {"ok": True}
