from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import get_store
from app.core.errors import NotFoundError
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.goal import GoalCreate, GoalInDB, GoalStatus, GoalUpdate
from app.utils.stats import round2

router = APIRouter()


def with_progress(goal: Dict[str, Any]) -> Dict[str, Any]:
    target = float(goal.get("target_amount", 0))
    current = float(goal.get("current_amount", 0))
    return {
        **goal,
        "progress": round2(current / target * 100) if target > 0 else 0.0,
        "remaining": round2(target - current),
    }


@router.get("/")
def list_goals(
    status_filter: Optional[GoalStatus] = Query(None, alias="status"),
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    goals = store.get_goals(user_id, status_filter.value if status_filter else None)
    return success([with_progress(goal) for goal in goals])


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_goal(goal: GoalCreate, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    goal_db = GoalInDB(user_id=user_id, **goal.model_dump()).model_dump(mode="json")
    if not store.put_goal(goal_db):
        raise HTTPException(status_code=500, detail="Failed to save goal")
    return success(with_progress(goal_db))


@router.get("/{goal_id}")
def get_goal(goal_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    goal = store.get_goal(user_id, goal_id)
    if not goal:
        raise NotFoundError("Goal", goal_id)
    return success(with_progress(goal))


@router.patch("/{goal_id}")
def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    mutable_fields = goal_update.model_dump(mode="json", exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = store.update_goal(user_id, goal_id, mutable_fields)
    if not updated:
        raise NotFoundError("Goal", goal_id)
    return success(with_progress(updated))


@router.delete("/{goal_id}")
def delete_goal(goal_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    if not store.delete_goal(user_id, goal_id):
        raise NotFoundError("Goal", goal_id)
    return success({"message": "Goal deleted successfully"})
