from fastapi import APIRouter, HTTPException, Query
from palma.domain.locations import find_city, get_cities, get_villages, resolve_location_name

router = APIRouter(prefix="/locations", tags=["locations"])

@router.get("/cities")
def list_cities(lang: str = Query("ar", pattern="^(ar|en)$")):
    return [
        {"id": c.id, "name": c.name(lang), "region_id": c.region_id, "region_name": c.region_name}
        for c in get_cities()
    ]

@router.get("/cities/{city_id}/villages")
def list_villages(city_id: int, lang: str = Query("ar", pattern="^(ar|en)$")):
    if not find_city(city_id):
        raise HTTPException(status_code=404, detail="City not found")
    return [{"id": v.id, "name": v.name_en if lang == "en" else v.name_ar} for v in get_villages(city_id)]

@router.get("/resolve")
def resolve_name(id: int, kind: str = Query(..., pattern="^(city|village)$"),
                 lang: str = Query("ar", pattern="^(ar|en)$")):
    return {"id": id, "kind": kind, "name": resolve_location_name(id, kind, lang)}
