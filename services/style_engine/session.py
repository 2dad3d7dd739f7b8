import logging
import math
import uuid
from enum import Enum
from typing import List, Optional

from services.style_engine.models import AssessmentScore, GeneratedQuestion, PhraseConfig, Response
from services.style_engine.scorer import score_assessment

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SessionStateError(Exception):
    """Raised on a transition the session state machine does not allow."""
    pass


class AssessmentSession:
    """
    One user's pass through a generated question set.

    NotStarted -> InProgress(0..N-1) -> Completed. Each submitted response advances the
    question index; the last one completes the session and scores it exactly once.
    A completed session never goes back; a new assessment needs fresh questions.
    """

    def __init__(self, questions: List[GeneratedQuestion], config: PhraseConfig, session_id: Optional[str] = None):
        self.id = session_id or uuid.uuid4().hex
        self.questions = list(questions)
        self.config = config
        self.state = SessionState.NOT_STARTED
        self.question_index = 0
        self.responses: List[Response] = []
        self.score: Optional[AssessmentScore] = None

    def start(self) -> None:
        if self.state != SessionState.NOT_STARTED:
            raise SessionStateError(f"Session {self.id} already started (state: {self.state.value})")
        if not self.questions:
            raise SessionStateError(f"Session {self.id} has no questions")
        self.state = SessionState.IN_PROGRESS
        self.question_index = 0
        logger.info(f"Session {self.id} started with {len(self.questions)} questions")

    @property
    def current_question(self) -> Optional[GeneratedQuestion]:
        if self.state != SessionState.IN_PROGRESS:
            return None
        return self.questions[self.question_index]

    @property
    def progress(self) -> float:
        """Share of questions answered, 0.0 to 1.0."""
        if not self.questions:
            return 0.0
        return len(self.responses) / len(self.questions)

    @property
    def questions_per_phase(self) -> int:
        return math.ceil(len(self.questions) / 2)

    @property
    def phase(self) -> int:
        """
        Phase of the current question. Dimension-focused questions carry their own phase;
        otherwise the sequence is split into two halves (Part 1 / Part 2).
        """
        index = min(self.question_index, len(self.questions) - 1)
        if index < 0:
            return 1
        question = self.questions[index]
        if question.phase is not None:
            return question.phase
        return 1 if index < self.questions_per_phase else 2

    def submit_response(self, value: int) -> Optional[AssessmentScore]:
        """
        Records the answer for the current question.

        Returns the AssessmentScore once the last question is answered, otherwise None.
        """
        if self.state != SessionState.IN_PROGRESS:
            raise SessionStateError(
                f"Cannot submit a response to session {self.id} in state '{self.state.value}'"
            )

        question = self.questions[self.question_index]
        # Validated before the state moves, so a bad value leaves the session untouched
        response = Response(question_id=question.id, value=value)
        self.responses.append(response)

        if self.question_index < len(self.questions) - 1:
            self.question_index += 1
            return None

        self.state = SessionState.COMPLETED
        try:
            self.score = score_assessment(self.questions, self.responses, self.config)
        except ValueError:
            logger.error(f"Scoring failed for session {self.id}; no result kept.")
            raise
        logger.info(f"Session {self.id} completed")
        return self.score
