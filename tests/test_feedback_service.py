import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.support import (  # noqa: E402
    JOB_DESCRIPTION,
    RESUME_TEXT,
    FakeCompletionClient,
    default_completion_responses,
    make_services,
)
from workify.core.errors import ConflictError, NotFoundError  # noqa: E402
from workify.scoring.experience import EXPERIENCE_ALIGNMENT_PROMPT  # noqa: E402
from workify.scoring.skills import SKILL_EXTRACTION_PROMPT  # noqa: E402
from workify.services.feedback_service import (  # noqa: E402
    FEEDBACK_INSIGHTS_PROMPT,
    MODEL_VERSION,
    selection_probability,
)


class SelectionProbabilityTests(unittest.TestCase):
    def test_weighted_example(self):
        self.assertEqual(selection_probability(90, 80, 50), 83)

    def test_bounds(self):
        self.assertEqual(selection_probability(100, 100, 100), 100)
        self.assertEqual(selection_probability(0, 0, 0), 0)

    def test_rounds_half_up(self):
        # 0.6 * 75 + 0.3 * 5 + 0.1 * 0 = 46.5
        self.assertEqual(selection_probability(75, 5, 0), 47)


class FeedbackAggregatorTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.client = FakeCompletionClient(default_completion_responses())
        self.services = make_services(self, completion_client=self.client)
        self.aggregator = self.services.feedback._aggregator

    async def test_combines_component_scores(self):
        scores = await self.aggregator.generate_feedback(RESUME_TEXT, JOB_DESCRIPTION, 90)

        # resume covers python, postgresql and aws but not kubernetes
        self.assertEqual(scores.skill_coverage_score, 75)
        self.assertEqual(scores.experience_alignment_score, 80)
        self.assertEqual(scores.semantic_similarity_score, 90)
        self.assertEqual(scores.selection_probability, selection_probability(90, 75, 80))
        self.assertEqual(scores.strengths[0].description, "Strong Python background")
        self.assertEqual(scores.gaps[0].severity, "medium")
        self.assertEqual(scores.recommendations[0].priority, "high")

        insight_calls = self.client.calls_for(FEEDBACK_INSIGHTS_PROMPT)
        self.assertEqual(len(insight_calls), 1)
        self.assertIn("Semantic Similarity: 90%", insight_calls[0]["user_prompt"])
        self.assertIn("Skill Coverage: 75%", insight_calls[0]["user_prompt"])

    async def test_falls_back_when_insights_fail(self):
        self.client.responses[FEEDBACK_INSIGHTS_PROMPT] = RuntimeError("model unavailable")

        with self.assertLogs("workify.services.feedback_service", level="WARNING"):
            scores = await self.aggregator.generate_feedback(RESUME_TEXT, JOB_DESCRIPTION, 85)

        self.assertEqual(scores.selection_probability, 68)
        self.assertEqual(scores.semantic_similarity_score, 85)
        self.assertEqual(scores.skill_coverage_score, 50)
        self.assertEqual(scores.experience_alignment_score, 50)
        self.assertEqual(scores.strengths, [])
        self.assertEqual(scores.gaps, [])
        self.assertEqual(scores.recommendations, [])

    async def test_falls_back_when_skill_extraction_fails(self):
        self.client.responses[SKILL_EXTRACTION_PROMPT] = RuntimeError("timeout")
        scores = await self.aggregator.generate_feedback(RESUME_TEXT, JOB_DESCRIPTION, 73)
        # 73 * 0.8 = 58.4
        self.assertEqual(scores.selection_probability, 58)
        self.assertEqual(self.client.calls_for(EXPERIENCE_ALIGNMENT_PROMPT), [])

    async def test_empty_skill_lists_do_not_break_scoring(self):
        self.client.responses[SKILL_EXTRACTION_PROMPT] = {"skills": []}
        scores = await self.aggregator.generate_feedback(RESUME_TEXT, JOB_DESCRIPTION, 70)
        self.assertEqual(scores.skill_coverage_score, 100)


class FeedbackServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.client = FakeCompletionClient(default_completion_responses())
        self.services = make_services(self, completion_client=self.client)
        self.store = self.services.store
        self.store.upsert_profile("user-1", RESUME_TEXT)
        job = self.store.create_job(
            user_id="user-1",
            title="Backend Engineer",
            company="Acme",
            description=JOB_DESCRIPTION,
        )
        self.tailor = self.store.create_tailor(
            job_id=job.id,
            user_id="user-1",
            tailored_resume="R",
            cover_letter="C",
            portfolio="P",
            fit_score=82,
            token_usage=120,
        )

    async def test_generate_for_tailor_stores_record_once(self):
        service = self.services.feedback
        first = await service.generate_for_tailor(self.tailor.id, RESUME_TEXT, JOB_DESCRIPTION)
        second = await service.generate_for_tailor(self.tailor.id, RESUME_TEXT, JOB_DESCRIPTION)

        self.assertIsNotNone(first)
        self.assertIsNone(second)
        self.assertEqual(first.semantic_similarity_score, 82)
        self.assertEqual(first.model_version, MODEL_VERSION)
        records, total = self.store.list_feedback(user_id="user-1")
        self.assertEqual(total, 1)
        self.assertEqual(records[0].tailor_id, self.tailor.id)

    async def test_missing_tailor_is_a_noop(self):
        result = await self.services.feedback.generate_for_tailor("missing", RESUME_TEXT, JOB_DESCRIPTION)
        self.assertIsNone(result)
        self.assertEqual(self.client.calls, [])

    async def test_generate_now_conflicts_on_second_call(self):
        record = await self.services.feedback.generate_now("user-1", self.tailor.id)
        self.assertEqual(record.user_id, "user-1")
        with self.assertRaises(ConflictError):
            await self.services.feedback.generate_now("user-1", self.tailor.id)

    async def test_generate_now_is_owner_scoped(self):
        with self.assertRaises(NotFoundError):
            await self.services.feedback.generate_now("user-2", self.tailor.id)

    async def test_generate_now_requires_resume(self):
        other_job = self.store.create_job(user_id="user-4", title="T", company="C", description=JOB_DESCRIPTION)
        tailor = self.store.create_tailor(
            job_id=other_job.id,
            user_id="user-4",
            tailored_resume="",
            cover_letter="",
            portfolio="",
            fit_score=75,
            token_usage=0,
        )
        with self.assertRaises(NotFoundError) as ctx:
            await self.services.feedback.generate_now("user-4", tailor.id)
        self.assertIn("Resume", str(ctx.exception))

    async def test_get_for_tailor(self):
        with self.assertRaises(NotFoundError):
            self.services.feedback.get_for_tailor("user-1", self.tailor.id)
        await self.services.feedback.generate_for_tailor(self.tailor.id, RESUME_TEXT, JOB_DESCRIPTION)
        record = self.services.feedback.get_for_tailor("user-1", self.tailor.id)
        self.assertEqual(record.tailor_id, self.tailor.id)
        with self.assertRaises(NotFoundError):
            self.services.feedback.get_for_tailor("user-2", self.tailor.id)


if __name__ == "__main__":
    unittest.main()
