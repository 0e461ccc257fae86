from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, NaiveDatetime

from travel_allowance.catalog import MissingRateError, UnknownGradeError
from travel_allowance.models import Leg
from travel_allowance.services import AllowanceService, ItineraryValidationError, ReconciliationError

app = FastAPI(title="Travel Allowance API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

service = AllowanceService()


class LegIn(BaseModel):
    from_country: str
    to_country: str
    departure: NaiveDatetime
    arrival: NaiveDatetime

    def to_leg(self) -> Leg:
        return Leg(
            from_country=self.from_country,
            to_country=self.to_country,
            departure=self.departure,
            arrival=self.arrival,
        )


class AllowanceRequest(BaseModel):
    grade: str
    funding_source: Literal["government", "external"] = "government"
    outbound: List[LegIn] = Field(min_length=1)
    return_legs: List[LegIn] = Field(min_length=1)
    itinerary_id: Optional[str] = None


@app.get("/countries")
def list_countries():
    catalog = service.catalog
    return {
        "home_country": catalog.home_country,
        "countries": {
            name: {
                "full_day": str(rate.full_day),
                "breakfast": str(rate.breakfast),
                "lunch": str(rate.lunch),
                "dinner": str(rate.dinner),
                "accommodation": str(rate.accommodation),
            }
            for name, rate in sorted(catalog.rates.items())
        },
    }


@app.get("/grades")
def list_grades():
    return {
        grade: {
            "multiplier": str(policy.multiplier),
            "representation_percent": str(policy.representation_percent),
        }
        for grade, policy in service.grades.grades.items()
    }


@app.post("/allowances")
def calculate_allowances(payload: AllowanceRequest):
    try:
        return service.calculate(
            grade=payload.grade,
            funding_source=payload.funding_source,
            outbound=[leg.to_leg() for leg in payload.outbound],
            return_legs=[leg.to_leg() for leg in payload.return_legs],
            itinerary_id=payload.itinerary_id,
        )
    except (MissingRateError, UnknownGradeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc.args[0])) from exc
    except (ItineraryValidationError, ReconciliationError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.get("/health")
def health():
    return {"status": "ok"}
