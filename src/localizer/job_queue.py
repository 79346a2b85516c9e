"""
Queue - отложенное выполнение задач перевода.

FileJobQueue - очередь в файловой системе (по умолчанию для CLI):
    .localizer/queue/
        20261019T101500-<uuid>.json   - ожидающие задачи
        failed/                       - упавшие задачи (с текстом ошибки)

`localizer translate` только кладёт задачу в очередь, `localizer work`
выполняет её в отдельном процессе.

ExecutorJobQueue - передача задачи в ThreadPoolExecutor внутри процесса
(для встраивания в веб-приложение).
"""

import json
import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .jobs import TranslateLocaleJob

logger = logging.getLogger(__name__)

JobHandler = Callable[[TranslateLocaleJob], Any]

JOB_TYPES = {TranslateLocaleJob.name: TranslateLocaleJob}


def job_from_payload(payload: Dict[str, Any]) -> TranslateLocaleJob:
    """Восстанавливает задачу из JSON-payload."""
    if not isinstance(payload, dict):
        raise ValueError(f"Payload задачи должен быть объектом, получено: {type(payload).__name__}")
    job_cls = JOB_TYPES.get(payload.get("job", ""))
    if job_cls is None:
        raise ValueError(f"Неизвестный тип задачи: {payload.get('job')!r}")
    return job_cls.from_payload(payload)


class FileJobQueue:
    """Очередь задач в директории: один JSON-файл на задачу."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def failed_path(self) -> Path:
        return self.path / "failed"

    def push(self, job: TranslateLocaleJob) -> Path:
        """Кладёт задачу в очередь, возвращает путь файла."""
        self.path.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        job_path = self.path / f"{stamp}-{uuid.uuid4().hex[:8]}.json"

        payload = job.to_payload()
        payload["queued_at"] = datetime.now(timezone.utc).isoformat()
        with open(job_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

        logger.info("Задача поставлена в очередь: %s", job_path.name)
        return job_path

    def pending(self) -> List[Path]:
        if not self.path.is_dir():
            return []
        return sorted(self.path.glob("*.json"))

    def __len__(self) -> int:
        return len(self.pending())

    def pop(self) -> Optional[Tuple[Path, TranslateLocaleJob]]:
        """
        Забирает самую старую задачу (файл переименовывается в .running).

        Returns:
            (путь .running файла, задача) или None, если очередь пуста
        """
        for job_path in self.pending():
            running = job_path.with_suffix(".running")
            try:
                job_path.rename(running)
            except FileNotFoundError:
                # Забрал другой воркер
                continue

            try:
                with open(running, "r", encoding="utf-8") as f:
                    payload = json.load(f)
                return running, job_from_payload(payload)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                self._fail(running, exc)
        return None

    def work(self, handler: JobHandler, once: bool = False) -> Dict[str, int]:
        """
        Выполняет задачи до опустошения очереди.

        Args:
            handler: Вызывается для каждой задачи
            once: Выполнить только одну задачу

        Returns:
            {"processed": n, "failed": m}
        """
        stats = {"processed": 0, "failed": 0}
        while True:
            item = self.pop()
            if item is None:
                break

            running, job = item
            try:
                handler(job)
            except Exception as exc:
                logger.error("Задача %s упала: %s", running.name, exc)
                self._fail(running, exc)
                stats["failed"] += 1
            else:
                running.unlink()
                stats["processed"] += 1
                logger.info("Задача выполнена: %s", running.name)

            if once:
                break
        return stats

    def _fail(self, running: Path, error: Exception) -> None:
        """Переносит задачу в failed/ с текстом ошибки."""
        self.failed_path.mkdir(parents=True, exist_ok=True)
        try:
            with open(running, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError):
            payload = {}
        if not isinstance(payload, dict):
            payload = {"payload": payload}

        payload["error"] = f"{type(error).__name__}: {error}"
        payload["failed_at"] = datetime.now(timezone.utc).isoformat()
        target = self.failed_path / running.with_suffix(".json").name
        with open(target, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        running.unlink()

    def retry_failed(self) -> int:
        """Возвращает упавшие задачи в очередь."""
        if not self.failed_path.is_dir():
            return 0
        count = 0
        for path in sorted(self.failed_path.glob("*.json")):
            path.rename(self.path / path.name)
            count += 1
        return count


class ExecutorJobQueue:
    """Очередь поверх ThreadPoolExecutor (в рамках процесса)."""

    def __init__(self, handler: JobHandler, max_workers: int = 1):
        self.handler = handler
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="localizer-job")

    def push(self, job: TranslateLocaleJob) -> Future:
        logger.info("Задача передана в пул: %s -> %s",
                    job.source_locale, job.target_locale)
        future = self._executor.submit(self.handler, job)
        future.add_done_callback(self._log_result)
        return future

    @staticmethod
    def _log_result(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("Фоновая задача перевода упала: %s", error)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
