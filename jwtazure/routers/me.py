from __future__ import annotations

from fastapi import APIRouter, Depends

from jwtazure.entra.claims import UserClaims
from jwtazure.schemas.claims import ClaimsOut
from jwtazure.security.dependencies import get_current_claims

router = APIRouter(tags=["me"])


@router.get("/me", response_model=ClaimsOut)
def read_me(claims: UserClaims = Depends(get_current_claims)) -> ClaimsOut:
    return ClaimsOut.model_validate(claims)
