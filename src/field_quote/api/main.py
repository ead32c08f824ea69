from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional

from field_quote import __version__
from field_quote.config.logging import configure_logging
from field_quote.config.settings import get_settings
from field_quote.data.catalog_loader import CatalogProvider
from field_quote.data.integrity import check_catalog
from field_quote.engine import (
    CatalogSnapshot,
    ConfigurationError,
    QuoteRequest,
    QuoteResolver,
    RequestLine,
    ValidationError,
)
from field_quote.engine.zone_resolver import ZoneResolver
from field_quote.api import state

configure_logging()

app = FastAPI(
    title="Field Quote API",
    description="Quote resolution for field-service pricing",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class LineIn(BaseModel):
    service_id: str
    quantity: int
    selected_option_ids: List[str] = Field(default_factory=list)


class QuoteIn(BaseModel):
    tenant: Optional[str] = None
    neighborhood: str = ""
    lines: List[LineIn]
    additional_ids: List[str] = Field(default_factory=list)


def _provider() -> CatalogProvider:
    return state.provider


def _snapshot(tenant: Optional[str]) -> CatalogSnapshot:
    tenant = tenant or get_settings().default_tenant
    try:
        return _provider().get(tenant)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown tenant: {tenant}")
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())


@app.get("/")
async def root():
    return {"status": "online", "message": "Field Quote API Active"}


@app.post("/quote")
def create_quote(req: QuoteIn):
    snapshot = _snapshot(req.tenant)
    request = QuoteRequest(
        neighborhood=req.neighborhood,
        lines=tuple(
            RequestLine(
                service_id=line.service_id,
                quantity=line.quantity,
                selected_option_ids=tuple(line.selected_option_ids),
            )
            for line in req.lines
        ),
        additional_ids=tuple(req.additional_ids),
    )
    try:
        quote = QuoteResolver(snapshot, get_settings().tier_policy).resolve(request)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())
    return quote.to_dict()


@app.get("/zones/resolve")
def resolve_zone(neighborhood: str, tenant: Optional[str] = None):
    snapshot = _snapshot(tenant)
    try:
        match = ZoneResolver(snapshot.zones).match(neighborhood)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())
    return {
        "neighborhood": neighborhood,
        "zone_id": match.zone.zone_id,
        "zone_name": match.zone.name,
        "matched": match.matched,
        "requires_quote": match.zone.requires_quote,
        "conflicting_zone_ids": match.conflicting_zone_ids,
    }


@app.get("/catalog/{tenant}/integrity")
def catalog_integrity(tenant: str):
    return check_catalog(_snapshot(tenant)).to_dict()


@app.get("/system/status")
def get_status():
    settings = get_settings()
    provider = _provider()
    return {
        "engine_active": True,
        "version": __version__,
        "catalog_root": str(provider.root),
        "tenants": provider.tenants(),
        "default_tenant": settings.default_tenant,
        "tier_policy": {
            "apply_modifiers_to_tiers": settings.apply_modifiers_to_tiers,
            "tier_total_quantum": str(settings.tier_total_quantum),
            "strict_tier_coverage": settings.strict_tier_coverage,
        },
    }


@app.post("/system/reload")
def reload_catalogs(tenant: Optional[str] = None):
    _provider().reload(tenant)
    return {"reloaded": tenant or "all"}
