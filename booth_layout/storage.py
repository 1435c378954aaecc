from __future__ import annotations

import json
import logging
from pathlib import Path

from .plan import BoothPlan, PlanError

logger = logging.getLogger(__name__)


def load_plan(path: str | Path) -> BoothPlan:
    p = Path(path)
    if not p.exists():
        raise PlanError(f"plan file not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise PlanError(f"failed to read plan JSON: {e}") from e

    return BoothPlan.from_dict(data)


def save_plan(plan: BoothPlan, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(plan.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("saved plan %r to %s", plan.name, p)


def maybe_init_plan(path: str | Path, *, name: str = "Untitled Draft", overwrite: bool = False) -> BoothPlan:
    p = Path(path)
    if p.exists() and not overwrite:
        return load_plan(p)

    plan = BoothPlan(name=name)
    save_plan(plan, p)
    return plan
