from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models import PredictedResult, PredictionStatus, User
from ..services import placement

router = APIRouter(prefix="/api/predictions", tags=["predictions"])


class PredictionCreate(BaseModel):
    game_id: str
    predicted_winner: PredictedResult
    predicted_home_score: Optional[int] = Field(default=None, ge=0)
    predicted_away_score: Optional[int] = Field(default=None, ge=0)


class PredictionUpdate(BaseModel):
    predicted_winner: Optional[PredictedResult] = None
    predicted_home_score: Optional[int] = Field(default=None, ge=0)
    predicted_away_score: Optional[int] = Field(default=None, ge=0)


class PredictionResponse(BaseModel):
    id: int
    game_id: str
    predicted_winner: PredictedResult
    predicted_home_score: Optional[int] = None
    predicted_away_score: Optional[int] = None
    status: PredictionStatus
    points_earned: int
    created_at: datetime
    resolved_at: Optional[datetime] = None


@router.get("", response_model=List[PredictionResponse])
async def get_user_predictions(
    status_filter: Optional[PredictionStatus] = None,
    limit: int = 50,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Get the current user's predictions, newest first."""
    # Cap the page size
    return placement.list_predictions(db, current_user.id, status_filter, min(limit, 100))


@router.post("", response_model=PredictionResponse, status_code=status.HTTP_201_CREATED)
async def submit_prediction(
    prediction_data: PredictionCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return placement.create_prediction(
        db,
        current_user.id,
        prediction_data.game_id,
        prediction_data.predicted_winner,
        prediction_data.predicted_home_score,
        prediction_data.predicted_away_score
    )


@router.put("/{prediction_id}", response_model=PredictionResponse)
async def change_prediction(
    prediction_id: int,
    prediction_data: PredictionUpdate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Change a prediction until its game closes."""
    return placement.update_prediction(
        db,
        current_user.id,
        prediction_id,
        prediction_data.predicted_winner,
        prediction_data.predicted_home_score,
        prediction_data.predicted_away_score
    )


@router.delete("/{prediction_id}")
async def delete_prediction(
    prediction_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    placement.delete_prediction(db, current_user.id, prediction_id)
    return {"message": "Prediction deleted successfully"}
