"""
Quality endpoints - advisory plan checks and per-phase differentiation.
"""

from fastapi import APIRouter

from src.api.deps import Checker, CurrentSession
from src.engines.differentiation import DifferentiationContext, DifferentiationEngine, PhaseInput
from src.engines.quality import CompatibilityChecker
from src.schemas.plan import DifferentiationRequest, DifferentiationResponse, QualityResponse

router = APIRouter()


@router.get("/plan/quality", response_model=QualityResponse)
async def get_quality(session: CurrentSession, checker: Checker):
    """
    Run all quality checks against the current plan.

    Warnings never block the wizard; they are sorted errors first.
    """
    plan = session.plan
    return QualityResponse(
        warnings=checker.run(plan),
        compatibility=CompatibilityChecker.check(plan.didactic_slots),
    )


@router.post("/differentiation", response_model=DifferentiationResponse)
async def differentiate_phase(data: DifferentiationRequest):
    phase = PhaseInput(name=data.name, description=data.description, social_form=data.social_form)
    context = DifferentiationContext(subject=data.subject, level=data.level)
    return DifferentiationResponse(
        phase_type=DifferentiationEngine.detect_phase_type(phase.name, phase.description).value,
        differentiation=DifferentiationEngine.generate(phase, data.class_profile, context),
    )
