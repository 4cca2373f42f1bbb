"""Option catalogs and wizard step configuration for the client."""

from fastapi import APIRouter

from src.pedagogy.constants import DURATION_OPTIONS, INCOMPATIBLE_COMBOS, get_steps, all_options
from src.pedagogy.types import PlanMode

router = APIRouter()


@router.get("/options")
async def get_options():
    return {
        **{key: [o.model_dump() for o in opts] for key, opts in all_options().items()},
        "durations": DURATION_OPTIONS,
        "incompatible_combos": [c.model_dump() for c in INCOMPATIBLE_COMBOS],
        "steps": {mode.value: [s.model_dump() for s in get_steps(mode)] for mode in PlanMode},
    }
