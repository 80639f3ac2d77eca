# medilens/api/v1/users.py
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from medilens.core.dependencies import get_current_user, get_db
from medilens.schemas.user import PreferenceIn, PreferenceOut, UserOut
from medilens.services.preference_service import PreferenceStore

router = APIRouter()


@router.get("/me", response_model=UserOut)
def read_me(user: UserOut = Depends(get_current_user)):
    return user


@router.get("/me/preferences", response_model=Dict[str, str])
def list_preferences(db: Session = Depends(get_db), user: UserOut = Depends(get_current_user)):
    return PreferenceStore(db, user.id).all()


@router.get("/me/preferences/{key}", response_model=PreferenceOut)
def read_preference(key: str, db: Session = Depends(get_db), user: UserOut = Depends(get_current_user)):
    value = PreferenceStore(db, user.id).get(key)
    if value is None:
        raise HTTPException(status_code=404, detail="Preference not set")
    return {"key": key, "value": value}


@router.put("/me/preferences/{key}", response_model=PreferenceOut)
def write_preference(
    key: str,
    payload: PreferenceIn,
    db: Session = Depends(get_db),
    user: UserOut = Depends(get_current_user),
):
    value = PreferenceStore(db, user.id).set(key, payload.value)
    return {"key": key, "value": value}


@router.delete("/me/preferences/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_preference(key: str, db: Session = Depends(get_db), user: UserOut = Depends(get_current_user)):
    if not PreferenceStore(db, user.id).delete(key):
        raise HTTPException(status_code=404, detail="Preference not set")
