"""AI feedback analysis for submitted practice videos.

An admin request creates a ``pending`` AI feedback row; :func:`schedule_analysis`
then runs :meth:`FeedbackAnalyzer.analyze` as a background ``asyncio.Task``
which moves the row through ``processing`` to ``completed`` (or ``failed``).

Usage::

    from mootcourt.services.analysis import schedule_analysis

    schedule_analysis(feedback.id)
"""

import asyncio
import logging
import random
import re
from collections.abc import Callable
from dataclasses import dataclass

from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import AIProviderError
from mootcourt.core.models import AnalysisStatus
from mootcourt.services.llm.base import ModelConfig
from mootcourt.services.llm.client import LLMClient
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """Please provide feedback on an oral advocacy video submission.

Based on typical advocacy performance criteria, provide constructive feedback covering:
1. Argument structure and legal reasoning
2. Voice projection and clarity
3. Pace and delivery
4. Use of authorities and precedents
5. Overall persuasiveness

Please rate the performance from 1-5 (where 1 is poor and 5 is excellent) and provide detailed, constructive feedback for improvement."""

PENDING_CONTENT = "AI analysis pending..."
PENDING_RATING = 3
TEXT_ANALYSIS_PREFIX = "[Text-based Analysis]\n\n"
FALLBACK_PREFIX = "[AI Analysis - Mock Response Due to Technical Issue]\n\n"
TEXT_ANALYSIS_CONFIDENCE = 70
EMPTY_RESPONSE_TEXT = "Unable to generate feedback"
DEFAULT_RATING = 3

# Tried in order; the first match wins
_RATING_PATTERNS = (
    re.compile(r"(?:rating|score):\s*(\d+)(?:/5)?", re.IGNORECASE),
    re.compile(r"(\d+)/5"),
    re.compile(r"(\d+)\s*out\s*of\s*5", re.IGNORECASE),
    re.compile(
        r"rate(?:d|s)?\s*(?:this|the)?\s*(?:performance|submission)?\s*(?:at|as)?\s*(\d+)",
        re.IGNORECASE,
    ),
)


@dataclass(frozen=True)
class MockFeedback:
    """Canned feedback used when no model is configured or the call fails."""

    content: str
    rating: int
    confidence_score: int


MOCK_FEEDBACK_OPTIONS: tuple[MockFeedback, ...] = (
    MockFeedback(
        content=(
            "Strong opening statement with clear identification of key legal issues. "
            "Good use of authorities, though could benefit from more detailed factual "
            "analysis. Voice projection and pace were appropriate for the courtroom setting."
        ),
        rating=4,
        confidence_score=85,
    ),
    MockFeedback(
        content=(
            "Excellent command of the facts and law. Persuasive argument structure with "
            "effective use of precedent. Consider addressing potential counterarguments "
            "more directly. Overall, a confident and well-prepared advocacy performance."
        ),
        rating=5,
        confidence_score=92,
    ),
    MockFeedback(
        content=(
            "Good foundation but could strengthen argument structure. Some hesitation "
            "noted - practice will help with fluency. Legal reasoning is sound, but "
            "consider reorganizing points for maximum impact. Voice clarity is good."
        ),
        rating=3,
        confidence_score=78,
    ),
)


def extract_rating(text: str) -> int:
    """Pull a 1-5 rating out of free-form model output.

    Falls back to :data:`DEFAULT_RATING` when nothing matches; values
    outside 1..5 are clamped.
    """
    for pattern in _RATING_PATTERNS:
        match = pattern.search(text)
        if match:
            return max(1, min(5, int(match.group(1))))
    return DEFAULT_RATING


def generate_mock_feedback(rng: random.Random | None = None) -> MockFeedback:
    return (rng or random).choice(MOCK_FEEDBACK_OPTIONS)


class FeedbackAnalyzer:
    """Runs one AI analysis against the default active model.

    Args:
        client_factory: Builds an :class:`LLMClient` for a model config
            (overridden in tests).
        rng: Random source for mock feedback selection.
    """

    def __init__(
        self,
        client_factory: Callable[[ModelConfig], LLMClient] = LLMClient,
        rng: random.Random | None = None,
    ) -> None:
        self._client_factory = client_factory
        self._rng = rng

    async def analyze(self, feedback_id: int) -> None:
        """Process a pending AI feedback row to completion.

        Provider failures degrade to mock feedback; any other failure marks
        the row ``failed``. Never raises.
        """
        try:
            async with get_session() as session:
                repo = TrainingRepository(session)
                await repo.update_feedback(
                    feedback_id, ai_analysis_status=AnalysisStatus.processing.value
                )
                default_model = await repo.get_default_ai_model()
                config = ModelConfig.from_record(default_model) if default_model else None

            if config is None:
                logger.info("No AI model configured, using mock feedback")
                mock = generate_mock_feedback(self._rng)
                await self._complete(feedback_id, mock.content, mock.rating, mock.confidence_score)
                return

            try:
                text = await self._client_factory(config).complete(ANALYSIS_PROMPT)
            except AIProviderError as exc:
                logger.error("AI API call failed, falling back to mock: %s", exc)
                mock = generate_mock_feedback(self._rng)
                await self._complete(
                    feedback_id,
                    FALLBACK_PREFIX + mock.content,
                    mock.rating,
                    mock.confidence_score,
                )
                return

            text = text or EMPTY_RESPONSE_TEXT
            rating = extract_rating(text)
            await self._complete(
                feedback_id, TEXT_ANALYSIS_PREFIX + text, rating, TEXT_ANALYSIS_CONFIDENCE
            )
            logger.info(
                "AI analysis completed for feedback %s using model %s (rating: %s)",
                feedback_id,
                config.name,
                rating,
            )
        except Exception:
            logger.exception("AI analysis failed for feedback %s", feedback_id)
            await self._mark_failed(feedback_id)

    async def _complete(
        self, feedback_id: int, content: str, rating: int, confidence: int
    ) -> None:
        async with get_session() as session:
            await TrainingRepository(session).update_feedback(
                feedback_id,
                content=content,
                rating=rating,
                ai_analysis_status=AnalysisStatus.completed.value,
                ai_confidence_score=confidence,
            )

    async def _mark_failed(self, feedback_id: int) -> None:
        try:
            async with get_session() as session:
                await TrainingRepository(session).update_feedback(
                    feedback_id, ai_analysis_status=AnalysisStatus.failed.value
                )
        except Exception:
            logger.exception("Could not mark feedback %s as failed", feedback_id)


# Strong references so pending analyses are not garbage-collected mid-flight
_pending: set[asyncio.Task] = set()


async def _run_after_delay(feedback_id: int, delay: float, analyzer: FeedbackAnalyzer) -> None:
    if delay > 0:
        await asyncio.sleep(delay)
    await analyzer.analyze(feedback_id)


def schedule_analysis(
    feedback_id: int,
    delay: float | None = None,
    analyzer: FeedbackAnalyzer | None = None,
) -> asyncio.Task:
    """Launch the analysis for *feedback_id* as a background task.

    Args:
        feedback_id: The pending AI feedback row.
        delay: Seconds to wait first; defaults to ``ai_analysis_delay_seconds``.
        analyzer: Optional analyzer instance (tests inject fakes).
    """
    if delay is None:
        delay = get_settings().ai_analysis_delay_seconds
    task = asyncio.create_task(
        _run_after_delay(feedback_id, delay, analyzer or FeedbackAnalyzer())
    )
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def cancel_pending() -> None:
    """Cancel analyses still waiting or running (application shutdown)."""
    tasks = list(_pending)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Cancelled %d pending AI analyses", len(tasks))
