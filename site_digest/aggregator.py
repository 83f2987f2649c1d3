# File: site_digest/aggregator.py
"""site_digest.aggregator: Результаты пакетного запуска по сайтам и итоговая сводка."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from site_digest.logger import logger


@dataclass(slots=True)
class StepOutcome:
    """Итог одного подшага сайта (screenshot, text или image): сообщение либо ошибка."""

    step: str
    message: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"step": self.step, "ok": self.ok}
        if self.ok:
            data["message"] = self.message
        else:
            data["error"] = {"type": type(self.error).__name__, "message": str(self.error)}
        return data


@dataclass(slots=True)
class SiteResult:
    """Слот результата для одного URL. Подшаги хранятся независимо друг от друга."""

    url: str
    steps: List[StepOutcome] = field(default_factory=list)

    @classmethod
    def failed(cls, url: str, error: BaseException, step: str = "site") -> SiteResult:
        return cls(url, [StepOutcome(step, error=error)])

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)

    @property
    def messages(self) -> List[str]:
        return [s.message for s in self.steps if s.ok and s.message]

    @property
    def errors(self) -> List[BaseException]:
        return [s.error for s in self.steps if s.error is not None]

    @property
    def error(self) -> Optional[BaseException]:
        """Первая ошибка или None."""
        errors = self.errors
        return errors[0] if errors else None

    def step(self, name: str) -> Optional[StepOutcome]:
        for s in self.steps:
            if s.step == name:
                return s
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "ok": self.ok, "steps": [s.to_dict() for s in self.steps]}


@dataclass(slots=True)
class BatchReport:
    """Результаты в порядке входного списка: ``results[i]`` соответствует ``urls[i]``."""

    results: List[SiteResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def messages(self) -> List[str]:
        """Все сообщения об успехе, по порядку сайтов."""
        return [m for r in self.results for m in r.messages]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": len(self.results),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "sites": [r.to_dict() for r in self.results],
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def log_failures(report: BatchReport) -> int:
    """Логирует каждую ошибку с URL сайта. Ничего не пробрасывает; возвращает число ошибок."""
    count = 0
    for result in report.results:
        for outcome in result.steps:
            if outcome.error is not None:
                logger.error("Error for %s [%s]: %s", result.url, outcome.step, outcome.error)
                count += 1
    return count
