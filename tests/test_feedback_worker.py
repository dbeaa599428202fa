import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from workify.services.feedback_worker import FeedbackTask, FeedbackWorker  # noqa: E402


class RecordingService:
    def __init__(self, fail_for=(), delay=0.0):
        self.fail_for = set(fail_for)
        self.delay = delay
        self.seen = []

    async def generate_for_tailor(self, tailor_id, resume_text, job_description):
        if self.delay:
            await asyncio.sleep(self.delay)
        if tailor_id in self.fail_for:
            raise RuntimeError(f"failed {tailor_id}")
        self.seen.append(tailor_id)


def task(tailor_id):
    return FeedbackTask(tailor_id=tailor_id, resume_text="resume", job_description="job")


class FeedbackWorkerTests(unittest.IsolatedAsyncioTestCase):
    async def test_processes_submitted_tasks(self):
        service = RecordingService()
        worker = FeedbackWorker(service, queue_size=10, workers=2)
        worker.start()
        self.addAsyncCleanup(worker.stop)

        for tailor_id in ("t1", "t2", "t3"):
            self.assertTrue(worker.submit(task(tailor_id)))
        await worker.join()

        self.assertEqual(sorted(service.seen), ["t1", "t2", "t3"])

    async def test_failures_are_logged_and_worker_continues(self):
        service = RecordingService(fail_for={"bad"})
        worker = FeedbackWorker(service, queue_size=10)
        worker.start()
        self.addAsyncCleanup(worker.stop)

        with self.assertLogs("workify.services.feedback_worker", level="ERROR"):
            worker.submit(task("bad"))
            worker.submit(task("good"))
            await worker.join()

        self.assertEqual(service.seen, ["good"])

    async def test_full_queue_drops_without_blocking(self):
        service = RecordingService(delay=0.05)
        worker = FeedbackWorker(service, queue_size=1)
        worker.start()
        self.addAsyncCleanup(worker.stop)

        self.assertTrue(worker.submit(task("t1")))
        await asyncio.sleep(0)
        self.assertTrue(worker.submit(task("t2")))
        with self.assertLogs("workify.services.feedback_worker", level="WARNING"):
            self.assertFalse(worker.submit(task("t3")))
        await worker.join()
        self.assertEqual(service.seen, ["t1", "t2"])

    async def test_submit_before_start_is_dropped(self):
        worker = FeedbackWorker(RecordingService())
        with self.assertLogs("workify.services.feedback_worker", level="WARNING"):
            self.assertFalse(worker.submit(task("t1")))
        self.assertEqual(worker.pending(), 0)

    async def test_stop_cancels_workers(self):
        worker = FeedbackWorker(RecordingService(), workers=3)
        worker.start()
        self.assertTrue(worker.running)
        await worker.stop()
        self.assertFalse(worker.running)

    async def test_stop_logs_queued_tasks_it_drops(self):
        worker = FeedbackWorker(RecordingService(delay=0.5), queue_size=5)
        worker.start()

        for tailor_id in ("t1", "t2", "t3"):
            worker.submit(task(tailor_id))
        await asyncio.sleep(0)

        with self.assertLogs("workify.services.feedback_worker", level="WARNING") as captured:
            await worker.stop()

        self.assertEqual(len(captured.output), 1)
        self.assertIn("count=2", captured.output[0])
        self.assertIn("tailor_ids=t2,t3", captured.output[0])
        self.assertEqual(worker.pending(), 0)


if __name__ == "__main__":
    unittest.main()
