from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_services
from app.pipeline import Services, time_of_day

router = APIRouter()


@router.get("/weather")
def get_weather(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    services: Services = Depends(get_services),
) -> dict:
    if lat == 0 and lon == 0:
        raise HTTPException(status_code=400, detail="Invalid coordinates.")

    weather = services.weather.current(lat, lon)
    if weather is None:
        raise HTTPException(status_code=502, detail="Failed to fetch weather.")

    return {"weather": weather, "time_of_day": time_of_day()}
