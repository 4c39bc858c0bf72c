"""
Step 2 — Paper Assembly Engine

Builds one student's question set from the course's per-CO pools so that the
paper meets the quotas exactly and its marks are spread as evenly as possible
across COs.

Pass 1 (even distribution): every CO gets floor(total_marks / C) marks,
    2-mark questions first while they fit, then 1-mark questions.
Pass 2 (remainder): the leftover marks are drawn from whatever is still
    unselected in any CO, again preferring 2-mark questions while >= 2 marks
    remain.

The greedy order is a fixed heuristic, not an optimal packing. If the pools
cannot satisfy the quotas the call fails; a short paper is never returned.
"""

import logging
import random
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from assessment.errors import InsufficientQuestionPool, NoCourseOutcomes
from assessment.schemas import CoPool, PaperSelection, PoolQuestion, Quotas, co_label

log = logging.getLogger("assessment.engine")


def build_co_pools(questions: Iterable[PoolQuestion], co_count: int) -> Dict[int, CoPool]:
    """
    Group a course's questions into CO1..COn pools.

    Questions tagged with a CO outside 1..co_count, or with a weightage other
    than 1 or 2, are not eligible for the paper and are left out.
    """
    pools: Dict[int, CoPool] = {co: CoPool() for co in range(1, co_count + 1)}
    by_label = {co_label(co): co for co in pools}

    for q in questions:
        co = by_label.get(q.co_number)
        if co is None:
            continue
        if q.weightage == 1:
            pools[co].weightage1.append(q.id)
        elif q.weightage == 2:
            pools[co].weightage2.append(q.id)

    for co, pool in pools.items():
        log.info(
            f"[ASSEMBLY] {co_label(co)} - Weightage 1: {len(pool.weightage1)}, "
            f"Weightage 2: {len(pool.weightage2)}"
        )
    return pools


def _shuffled(ids: List[int], rng: random.Random) -> List[int]:
    out = list(ids)
    rng.shuffle(out)
    return out


def _even_pass(
    remaining: Dict[int, Tuple[List[int], List[int]]],
    marks_per_co: int,
    selection: PaperSelection,
    rng: random.Random,
) -> None:
    """Pass 1: fill each CO up to marks_per_co, 2-mark questions first."""
    for co, (w1_left, w2_left) in remaining.items():
        w1 = _shuffled(w1_left, rng)
        w2 = _shuffled(w2_left, rng)
        marks = 0

        while marks + 2 <= marks_per_co and w2:
            selection.phase2.append(w2.pop(0))
            marks += 2

        while marks < marks_per_co and w1:
            selection.phase1.append(w1.pop(0))
            marks += 1

        remaining[co] = (w1, w2)


def _remainder_pass(
    remaining: Dict[int, Tuple[List[int], List[int]]],
    remainder: int,
    selection: PaperSelection,
    rng: random.Random,
) -> None:
    """Pass 2: place the leftover marks on any CO's unselected questions."""
    while remainder > 0:
        all_w1 = [(co, qid) for co, (w1, _) in remaining.items() for qid in w1]
        all_w2 = [(co, qid) for co, (_, w2) in remaining.items() for qid in w2]
        rng.shuffle(all_w1)
        rng.shuffle(all_w2)

        if remainder >= 2 and all_w2:
            co, qid = all_w2[0]
            selection.phase2.append(qid)
            remaining[co][1].remove(qid)
            remainder -= 2
        elif all_w1:
            co, qid = all_w1[0]
            selection.phase1.append(qid)
            remaining[co][0].remove(qid)
            remainder -= 1
        else:
            break


def assemble_paper(
    quotas: Quotas,
    co_pools: Mapping[int, CoPool],
    rng: Optional[random.Random] = None,
) -> PaperSelection:
    """
    Assemble a CO-balanced, randomized paper.

    Args:
        quotas: required weight-1 / weight-2 counts (see compute_quotas)
        co_pools: CO number → CoPool; one entry per course outcome
        rng: random source; a fresh OS-seeded Random is created per call when
            omitted so concurrent calls never share state

    Returns:
        PaperSelection with len(phase1) == quotas.w1 and len(phase2) == quotas.w2

    Raises:
        NoCourseOutcomes: co_pools is empty
        InsufficientQuestionPool: the pools could not produce the quotas
    """
    co_count = len(co_pools)
    if co_count == 0:
        raise NoCourseOutcomes(co_count=0)

    if rng is None:
        rng = random.Random()

    total_marks = quotas.total_marks
    marks_per_co = total_marks // co_count
    remainder = total_marks - marks_per_co * co_count
    log.info(f"[ASSEMBLY] Marks per CO: {marks_per_co}, Remaining marks: {remainder}, CO count: {co_count}")

    # Working copies; callers' pools are never mutated
    remaining: Dict[int, Tuple[List[int], List[int]]] = {
        co: (list(pool.weightage1), list(pool.weightage2))
        for co, pool in sorted(co_pools.items())
    }
    selection = PaperSelection()

    _even_pass(remaining, marks_per_co, selection, rng)
    log.info(
        f"[ASSEMBLY] After even distribution: Phase 1: {len(selection.phase1)}, "
        f"Phase 2: {len(selection.phase2)}"
    )

    _remainder_pass(remaining, remainder, selection, rng)
    log.info(
        f"[ASSEMBLY] Final selection: Phase 1: {len(selection.phase1)}, "
        f"Phase 2: {len(selection.phase2)}"
    )

    if len(selection.phase1) != quotas.w1 or len(selection.phase2) != quotas.w2:
        raise InsufficientQuestionPool(
            required_w1=quotas.w1,
            required_w2=quotas.w2,
            obtained_w1=len(selection.phase1),
            obtained_w2=len(selection.phase2),
        )

    return selection
