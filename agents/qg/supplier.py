"""Question supply cascade: remote generation, template pool, generic sentence."""
from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Set

from agents import content_service
from agents.types import DIFFICULTY_ORDER, TIER_TOPICS, Question, Slot
from config.settings import settings
from services.cascade import Outcome, attempt, first_success

from .templates import GENERIC_QUESTION, GENERIC_VARIANT, pool_for

logger = logging.getLogger(__name__)

RemoteGenerator = Callable[[str, str], Question]


def normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def tier_counts(total: int) -> Dict[str, int]:
    """Split ``total`` into easy/medium/hard counts.

    Each tier gets ``total // 3``; leftover slots go round-robin from easy.
    """

    if total < 0:
        raise ValueError("total must be >= 0")
    base = total // 3
    counts = {difficulty: base for difficulty in DIFFICULTY_ORDER}
    for idx in range(total - base * len(DIFFICULTY_ORDER)):
        counts[DIFFICULTY_ORDER[idx]] += 1
    return counts


def plan_slots(total: int) -> List[Slot]:
    slots: List[Slot] = []
    for difficulty, count in tier_counts(total).items():
        for _ in range(count):
            slots.append(Slot(index=len(slots), difficulty=difficulty, topic=TIER_TOPICS[difficulty]))
    return slots


class QuestionSupplier:
    """Produce exactly N ordered, pairwise-distinct questions."""

    def __init__(
        self,
        generate: Optional[RemoteGenerator] = None,
        *,
        rng: Optional[random.Random] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._generate = generate or content_service.generate_question
        self._rng = rng or random.Random()
        self._timeout_s = timeout_s

    def supply(self, total_questions: int) -> List[Question]:
        slots = plan_slots(total_questions)
        if not slots:
            return []
        remote = self._fan_out(slots)
        used: Set[str] = set()
        questions: List[Question] = []
        for slot in slots:
            question = self._resolve(slot, remote[slot.index], used)
            used.add(normalize(question.text))
            questions.append(question)
        logger.info(
            "supplied questions total=%d sources=%s",
            len(questions),
            ",".join(question.generated_by for question in questions),
        )
        return questions

    def _fan_out(self, slots: List[Slot]) -> List[Outcome[Question]]:
        limit = settings.REMOTE_TIMEOUT_S if self._timeout_s is None else self._timeout_s
        pool = ThreadPoolExecutor(max_workers=len(slots), thread_name_prefix="question-supply")
        try:
            futures = [pool.submit(attempt, "remote", self._generate, slot.topic, slot.difficulty) for slot in slots]
            wait(futures, timeout=limit)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        results: List[Outcome[Question]] = []
        for future in futures:
            if future.done() and not future.cancelled():
                results.append(future.result())
            else:
                results.append(Outcome.failure("remote", f"no reply within {limit:.1f}s"))
        return results

    def _resolve(self, slot: Slot, remote: Outcome[Question], used: Set[str]) -> Question:
        outcome = first_success(
            [
                ("remote", lambda: self._accept_remote(slot, remote, used)),
                ("template", lambda: self._from_pool(slot, used)),
                ("fallback", lambda: self._generic(slot, used)),
            ]
        )
        return outcome.value

    def _accept_remote(self, slot: Slot, remote: Outcome[Question], used: Set[str]) -> Outcome[Question]:
        if not remote.ok:
            return remote
        text = remote.value.text.strip()
        if not text or normalize(text) in used:
            return Outcome.failure("remote", "duplicate question text")
        return Outcome.success(
            "remote",
            Question(id=remote.value.id, text=text, difficulty=slot.difficulty, topic=slot.topic, generated_by="remote"),
        )

    def _from_pool(self, slot: Slot, used: Set[str]) -> Outcome[Question]:
        unused = [text for text in pool_for(slot.difficulty, slot.topic) if normalize(text) not in used]
        if not unused:
            return Outcome.failure("template", f"pool exhausted for {slot.difficulty}/{slot.topic}")
        text = self._rng.choice(unused)
        return Outcome.success(
            "template",
            Question(text=text, difficulty=slot.difficulty, topic=slot.topic, generated_by="template"),
        )

    def _generic(self, slot: Slot, used: Set[str]) -> Question:
        text = GENERIC_QUESTION.format(topic=slot.topic)
        n = 2
        while normalize(text) in used:
            text = GENERIC_VARIANT.format(topic=slot.topic, n=n)
            n += 1
        return Question(text=text, difficulty=slot.difficulty, topic=slot.topic, generated_by="fallback")


__all__ = ["QuestionSupplier", "normalize", "plan_slots", "tier_counts"]
