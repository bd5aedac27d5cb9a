from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

Exercise = Literal["Squats", "Pushups", "Plank", "Lunges"]

EXERCISES = ("Squats", "Pushups", "Plank", "Lunges")

MIN_REPS = 1
MAX_REPS = 999

# How-to videos shown next to the workout logger
EXERCISE_VIDEOS = {
    "Squats": "https://www.youtube.com/embed/gcNh17Ckjgg",
    "Pushups": "https://www.youtube.com/embed/IODxDxX7oi4",
    "Plank": "https://www.youtube.com/embed/pSHjTRCQxIw",
    "Lunges": "https://www.youtube.com/embed/wrwwXE_67X8",
}


class WorkoutCreate(BaseModel):
    exercise: Exercise
    reps: int = Field(..., ge=MIN_REPS, le=MAX_REPS)
    notes: Optional[str] = Field(None, max_length=1000)
    # Optional post-workout mood, written best-effort after the workout
    mood_score: Optional[int] = Field(None, ge=1, le=10)


class Workout(BaseModel):
    id: str
    user_id: str
    exercise: Exercise
    reps: int = Field(..., ge=MIN_REPS, le=MAX_REPS)
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "Workout":
        return cls(id=doc.id, **{k: v for k, v in doc.data.items() if k in cls.model_fields and k != "id"})


class MoodCreate(BaseModel):
    workout_id: str = Field(..., min_length=1)
    score: int = Field(..., ge=1, le=10)
    notes: Optional[str] = Field(None, max_length=1000)


class Mood(BaseModel):
    id: str
    user_id: str
    workout_id: str
    score: int = Field(..., ge=1, le=10)
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "Mood":
        return cls(id=doc.id, **{k: v for k, v in doc.data.items() if k in cls.model_fields and k != "id"})


class WorkoutStats(BaseModel):
    total_workouts: int
    total_reps: int
    favorite_exercise: Optional[str] = None
    this_week: int
    this_month: int
