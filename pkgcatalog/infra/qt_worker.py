import time
from typing import Any, Callable

from logly import logger
from PySide6.QtCore import QObject, QThread, Signal, Slot


class TaskWorker(QObject):
    """Runs one unit of work in a background Qt thread.

    The worker is meant to be moved to a `QThread` and started via a signal/slot.
    It always emits exactly one `finished_with_job`; an escaping exception is
    logged and reported as a None result.
    """

    finished_with_job = Signal(int, object)

    def __init__(self, task: Callable[[], Any], job_id: int = 0, label: str = ""):
        super().__init__()
        self._task = task
        self._job_id = job_id
        self._label = label

    @Slot()
    def run(self):
        """Executes the task and emits `finished_with_job`."""
        start = time.perf_counter()
        try:
            result = self._task()
        except Exception:
            logger.exception(f"Task {self._label or self._job_id} failed")
            result = None
        elapsed = time.perf_counter() - start
        logger.debug(f"Task {self._label or self._job_id} finished in {elapsed:.3f}s")
        self.finished_with_job.emit(self._job_id, result)


class QtTaskRunner(QObject):
    """Dispatches tasks to worker threads and calls back on the owning thread.

    Each task gets its own `QThread`. Completion is routed through a slot of this
    object, so `on_done` callbacks run on the thread the runner lives on (the GUI
    thread), never on a worker.
    """

    busy_changed = Signal(bool)

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._next_job_id = 0
        self._callbacks: dict[int, Callable[[Any], None]] = {}
        self._threads: dict[int, tuple[QThread, TaskWorker]] = {}

    def is_busy(self) -> bool:
        return bool(self._callbacks)

    def submit(self, task: Callable[[], Any], on_done: Callable[[Any], None], label: str = "") -> int:
        """Starts `task` on a new worker thread.

        Args:
            task: Self-contained callable; must not touch GUI-thread state.
            on_done: Receives the task's return value on the runner's thread.
            label: Name used in log messages.

        Returns:
            The job id assigned to the task.
        """
        self._next_job_id += 1
        job_id = self._next_job_id

        thread = QThread()
        worker = TaskWorker(task, job_id=job_id, label=label)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)

        worker.finished_with_job.connect(self._on_worker_finished)
        worker.finished_with_job.connect(thread.quit)
        worker.finished_with_job.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(lambda jid=job_id: self._on_thread_finished(jid))

        was_busy = self.is_busy()
        self._callbacks[job_id] = on_done
        self._threads[job_id] = (thread, worker)
        thread.start()
        if not was_busy:
            self.busy_changed.emit(True)
        return job_id

    @Slot(int, object)
    def _on_worker_finished(self, job_id: int, result: object) -> None:
        on_done = self._callbacks.pop(job_id, None)
        if on_done is None:
            return
        on_done(result)
        if not self.is_busy():
            self.busy_changed.emit(False)

    def _on_thread_finished(self, job_id: int) -> None:
        """Drops thread references once the thread has really stopped."""
        self._threads.pop(job_id, None)
