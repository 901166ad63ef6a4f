"""RFC 2324 teapot endpoint.

Kept as a deliberately strict rate limited route (one brew attempt per
window) that exercises the gate shape end to end.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from admission.core.policies import Action
from admission.core.rate_limit import get_rate_limiter
from admission.core.responses import rate_limit_headers

router = APIRouter(tags=["Teapot"])

TEAPOT_STATUS = 418
RFC_URL = "https://datatracker.ietf.org/doc/html/rfc2324"


async def _teapot_response(request: Request, body: dict, headers: dict[str, str]) -> JSONResponse:
    limiter = get_rate_limiter(request)
    rejection = await limiter.gate(request, Action.TEAPOT)
    if rejection is not None:
        return rejection

    return JSONResponse(
        status_code=TEAPOT_STATUS,
        content={"error": "I'm a teapot", "status": TEAPOT_STATUS, **body},
        headers={**rate_limit_headers(limiter.policy(Action.TEAPOT)), **headers},
    )


@router.get("/teapot")
async def brew_coffee(request: Request) -> JSONResponse:
    return await _teapot_response(
        request,
        {
            "message": "The server refuses to brew coffee because it is, permanently, a teapot.",
            "tip": "Try tipping me over and pouring me out instead.",
            "rfc": RFC_URL,
        },
        {"X-Teapot": "short-and-stout"},
    )


@router.post("/teapot")
async def brew_coffee_post(request: Request) -> JSONResponse:
    return await _teapot_response(
        request,
        {
            "message": "You cannot BREW coffee with a teapot. This is not a HTCPCP compliant coffee pot.",
        },
        {},
    )
