"""
Function gateway routes: generic CRUD dispatch, clan analytics and the
superadmin surface
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from clanchain.api.deps import read_json_body
from clanchain.core.auth import Identity, get_current_identity, require_superadmin
from clanchain.core.database import get_db
from clanchain.functions.clan_analytics import (AnalyticsRequest,
                                                analytics_registry)
from clanchain.functions.clan_api import clan_api_registry
from clanchain.functions.superadmin_api import (SuperadminRequest,
                                                superadmin_registry)

router = APIRouter(prefix="/functions/v1", tags=["functions"])


@router.api_route("/clan-api/{resource}", methods=["GET", "POST", "PUT", "DELETE"])
async def clan_api(
    resource: str,
    request: Request,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_current_identity),
):
    """CRUD over the named resource; the id travels as a query parameter"""
    body = await read_json_body(request) if request.method in ("POST", "PUT") else None
    status_code, payload = clan_api_registry.dispatch(
        resource,
        request.method,
        db,
        dict(request.query_params),
        body=body,
        identity=identity,
    )
    return JSONResponse(status_code=status_code, content=payload)


@router.api_route("/clan-analytics", methods=["GET", "POST", "PUT", "DELETE"])
async def clan_analytics(request: Request, db: Session = Depends(get_db)):
    """Community reports; `type` selects one, anything else gets the overview"""
    result = analytics_registry.dispatch(
        db, AnalyticsRequest(method=request.method, params=dict(request.query_params))
    )
    return JSONResponse(content=result)


@router.api_route("/superadmin-api/{action}", methods=["GET", "POST", "PUT", "DELETE"])
async def superadmin_api(
    action: str,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_superadmin),
):
    """Platform administration; the superadmin gate runs before dispatch"""
    body = await read_json_body(request) if request.method in ("POST", "PUT") else None
    result = superadmin_registry.dispatch(
        action,
        db,
        SuperadminRequest(
            method=request.method,
            identity=identity,
            params=dict(request.query_params),
            body=body,
        ),
    )
    return JSONResponse(content=result)
